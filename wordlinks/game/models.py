from datetime import date, datetime
from enum import Enum
from pydantic import BaseModel, Field, field_validator

DATE_FORMAT = "%Y-%m-%d"  # Storage and API format


class AnimationTiming(BaseModel):
    first_line_speed: float = 0.025     # Seconds per character
    word_chain_speed: float = 0.05
    wipe_fast: float = 0.005
    wipe_normal: float = 0.015
    type_fast: float = 0.008
    type_normal: float = 0.025


class GameConfig(BaseModel):
    max_lives: int = Field(default=10, ge=1)
    expected_word_count: int = 12
    starting_word_index: int = 1        # First word to guess is the second in the chain
    min_word_length: int = 2
    game_over_delay: float = 2.5        # Seconds before the score line appears
    countdown_start_delay: float = 1.5
    countdown_interval: float = 1.0
    timing: AnimationTiming = Field(default_factory=AnimationTiming)


class DisplayLines:
    FIRST_LINE = 1
    WORD_CHAIN_START = 3
    PROMPT = 18
    STREAK = 20
    NAVIGATION = 22


class Puzzle(BaseModel):
    date: str                    # "2025-01-08"
    words: list[str]             # Anchors at both ends

    @field_validator("words")
    @classmethod
    def _normalize_words(cls, words: list[str]) -> list[str]:
        words = [w.strip().upper() for w in words]
        if len(words) < 3:
            raise ValueError("A puzzle needs two anchor words and at least one word to guess")
        if any(not w for w in words):
            raise ValueError("Puzzle words must not be empty")
        return words


class PuzzleResponse(BaseModel):
    puzzles: list[Puzzle]


FALLBACK_PUZZLE = Puzzle(
    date="fallback",
    words=[
        "ROAD", "KILL", "TIME", "ZONE", "DEFENSE", "SYSTEM",
        "ERROR", "MESSAGE", "BOARD", "GAME", "OVER", "DRIVE",
    ],
)


class GameResult(str, Enum):
    IN_PROGRESS = "in_progress"
    WON = "won"
    LOST = "lost"


class SessionState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    PRESENTING = "presenting"
    AWAITING_GUESS = "awaiting_guess"
    TERMINAL = "terminal"
    COUNTDOWN = "countdown"
    SERVER_ERROR = "server_error"


class GuessOutcome(str, Enum):
    REJECTED = "rejected"          # Not accepting input right now
    EMPTY = "empty"
    INVALID = "invalid"            # Not a dictionary word
    CORRECT = "correct"
    INCORRECT = "incorrect"        # Hint revealed
    AUTO_ADVANCED = "auto_advanced"
    WON = "won"
    LOST = "lost"
    SERVER_ERROR = "server_error"


class WordStatus(str, Enum):
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"
    IN_PROGRESS = "in_progress"
    NOT_STARTED = "not_started"


class SessionRecord(BaseModel):
    game_date: str
    is_completed: bool = False
    did_win: bool = False
    completion_date: datetime | None = None
    lives_used: int = 0
    total_words: int = 0
    words_completed: int = 0
    current_word_index: int = 1          # For resuming unfinished games
    revealed_letters: dict[int, int] = Field(default_factory=dict)

    def mark_completed(self, lives_used: int, did_win: bool):
        self.is_completed = True
        self.did_win = did_win
        self.completion_date = datetime.now()
        self.lives_used = lives_used
        # words_completed keeps whatever progress was recorded

    @property
    def display_date(self) -> str:
        try:
            parsed = datetime.strptime(self.game_date, DATE_FORMAT)
        except ValueError:
            return self.game_date
        return f"{parsed.strftime('%B')} {parsed.day}, {parsed.year}"


class CompletionStats(BaseModel):
    total_completed: int = 0
    games_won: int = 0
    win_rate: float = 0.0
    current_streak: int = 0


def date_key(day: date) -> str:
    return day.strftime(DATE_FORMAT)


def display_date(day: date) -> str:
    """
    M/D/YYYY, as shown on the first terminal line.
    """
    return f"{day.month}/{day.day}/{day.year}"
