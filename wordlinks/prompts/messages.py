import random
from enum import Enum
from typing import Dict, List, Optional


class MessageCategory(str, Enum):
    NEXT_WORD = "next_word"
    INCORRECT = "incorrect"
    GAME_OVER = "game_over"
    VICTORY = "victory"
    INVALID_WORD = "invalid_word"
    NAVIGATION = "navigation"      # Link to a game that can still be played
    REVIEW = "review"              # Link to a game that is already finished
    SERVER_ERROR = "server_error"


INCORRECT_MESSAGES = [
    "🙄 Nope! Here's a hint:",
    "😬 Wrong! Take this hint:",
    "🤦‍♂️ Not quite! Hint time:",
    "😅 Oops! Here's some help:",
    "🫤 Incorrect! Throwing you a bone:",
]

INVALID_WORD_MESSAGES = [
    "🤨 That's not a real word! Try again.",
    "😕 Invalid word! Check your spelling.",
    "🔤 Not in my dictionary! Try another.",
    "📚 That word doesn't exist! Keep trying.",
    "❓ Not a valid word! Give it another shot.",
]

SERVER_ERROR_MESSAGES = [
    "🤖 Our servers are having a moment. We'll be back soon!",
    "💥 Oops! Our backend decided to take a coffee break.",
    "🛠️ Technical difficulties! Even our code needs therapy sometimes.",
    "🙄 Servers are being dramatic again. Please check back later.",
    "😅 Houston, we have a problem... but we're working on it!",
    "🤦‍♂️ Our servers are playing hide and seek. They're really good at it.",
    "☕ Server maintenance in progress. Blame the developers.",
    "🎭 The servers are having an existential crisis. Give them some time.",
]

TODAY_MESSAGES: Dict[MessageCategory, List[str]] = {
    MessageCategory.NEXT_WORD: [
        "🤔 What word comes after",
        "🧐 Next up, what follows",
        "🤓 Alright genius, what comes after",
        "😏 Think you can guess what follows",
        "🙄 Obviously, what comes after",
    ],
    MessageCategory.INCORRECT: INCORRECT_MESSAGES,
    MessageCategory.GAME_OVER: [
        "💀 Game Over! Maybe tomorrow?",
        "😵 Yikes! Better luck next time.",
        "🪦 RIP. Try again tomorrow!",
        "😬 Oof. See you tomorrow!",
        "💔 Game Over! Don't give up!",
    ],
    MessageCategory.VICTORY: [
        "🎉 Holy cow! You actually did it!",
        "🤯 Wow! Didn't see that coming!",
        "👏 Impressive! You solved it!",
        "🥳 Look who's the word wizard!",
        "🏆 Victory! You're pretty good at this!",
    ],
    MessageCategory.INVALID_WORD: INVALID_WORD_MESSAGES,
    MessageCategory.NAVIGATION: [
        "🕰️ Missed [yesterday]? Tap to play!",
        "⏮️ [Yesterday]'s puzzle awaits you!",
        "🎯 [Yesterday]'s game is ready!",
        "📅 Catch up on [yesterday]'s puzzle!",
        "🎮 [Yesterday]'s challenge waits!",
    ],
    MessageCategory.REVIEW: [
        "📊 Tap to view [yesterday]'s result!",
        "✅ Check out [yesterday]'s game!",
        "🔍 See how you did [yesterday]!",
        "📈 Review [yesterday]'s puzzle!",
        "🎉 Revisit [yesterday]'s victory!",
    ],
    MessageCategory.SERVER_ERROR: SERVER_ERROR_MESSAGES,
}

PRIOR_DAY_MESSAGES: Dict[MessageCategory, List[str]] = {
    MessageCategory.NEXT_WORD: [
        "🤔 What word came after",
        "🧐 Yesterday, what followed",
        "🤓 Alright genius, what came after",
        "😏 Think you can guess what followed",
        "🙄 Obviously, what came after",
    ],
    MessageCategory.INCORRECT: INCORRECT_MESSAGES,
    MessageCategory.GAME_OVER: [
        "💀 Game Over! At least today's fresh!",
        "😵 Yikes! Better luck with today's puzzle.",
        "🪦 RIP. Today awaits you!",
        "😬 Oof. Try today's game instead!",
        "💔 Game Over! Today's puzzle is ready!",
    ],
    MessageCategory.VICTORY: [
        "🎉 Holy cow! You solved yesterday's puzzle!",
        "🤯 Wow! Yesterday defeated at last!",
        "👏 Impressive! Yesterday conquered!",
        "🥳 Look who caught up on yesterday!",
        "🏆 Victory! Yesterday's puzzle crushed!",
    ],
    MessageCategory.INVALID_WORD: INVALID_WORD_MESSAGES,
    MessageCategory.NAVIGATION: [
        "🕰️ Ready for [today]'s puzzle? Tap to play!",
        "⏮️ [Today]'s fresh challenge awaits!",
        "🎯 Time for [today]'s game!",
        "📅 Jump back to [today]'s puzzle!",
        "🎮 [Today]'s challenge is ready!",
    ],
    MessageCategory.SERVER_ERROR: [
        "😅 Yesterday's puzzle isn't available right now. Try today's game instead!",
    ],
}

COUNTDOWN_TEMPLATE = "⏰ Next puzzle in {remaining}"
NEW_PUZZLE_MESSAGE = "🎯 New puzzle available! Restart the app."


def pick_message(pool: List[str], exclude: Optional[str] = None, rng: Optional[random.Random] = None) -> str:
    """
    Random message from the pool, never `exclude` unless nothing else is left.
    """
    if not pool:
        raise ValueError("Message pool is empty")
    rng = rng or random
    available = [m for m in pool if m != exclude]
    return rng.choice(available or pool)


class MessageHistory:
    """
    Remembers the last message shown per category so it is not repeated
    back to back.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.last: Dict[MessageCategory, str] = {}

    def pick(self, category: MessageCategory, pool: List[str]) -> str:
        message = pick_message(pool, self.last.get(category), self.rng)
        self.last[category] = message
        return message

    def reset(self):
        self.last.clear()
