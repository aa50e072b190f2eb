import logging
import random
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional
from pydantic import BaseModel
from wordlinks.game.models import (
    DisplayLines,
    GameConfig,
    GameResult,
    GuessOutcome,
    Puzzle,
    SessionRecord,
    SessionState,
    date_key,
    display_date,
)
from wordlinks.game.rules import (
    COMPLETED_MARK,
    build_chain_target,
    format_countdown,
    initial_revealed_letters,
    is_correct_guess,
    masked_word,
    next_midnight,
    reveal_hint,
    time_until,
)
from wordlinks.notifications.scheduler import NotificationScheduler
from wordlinks.prompts.messages import (
    COUNTDOWN_TEMPLATE,
    NEW_PUZZLE_MESSAGE,
    PRIOR_DAY_MESSAGES,
    TODAY_MESSAGES,
    MessageCategory,
    MessageHistory,
)
from wordlinks.puzzles.source import PuzzleError, PuzzleSource
from wordlinks.storage.base import SessionStore, StorageError
from wordlinks.terminal.clock import Clock, Timer
from wordlinks.terminal.commands import ReplaceLine, SetLine, WriteLine
from wordlinks.terminal.scheduler import TerminalScheduler
from wordlinks.words.bank import Dictionary

logger = logging.getLogger(__name__)


class SessionProfile(BaseModel):
    """
    What differs between playing today's puzzle and catching up on an older one.
    """
    name: str
    header: str
    first_line: str                          # Formatted with {date}
    messages: Dict[MessageCategory, List[str]]
    score_line: str                          # Formatted with {correct}, {total}, {streak}
    run_countdown: bool
    notify_on_complete: bool
    review_link: bool                        # Link to a finished yesterday reads as "review"


TODAY_PROFILE = SessionProfile(
    name="today",
    header="Links/daily",
    first_line="Can you solve today's links? {date}",
    messages=TODAY_MESSAGES,
    score_line="📊 You got {correct}/{total} correct! 🔥 {streak} day streak!",
    run_countdown=True,
    notify_on_complete=True,
    review_link=True,
)

# No streak, countdown or reminder cancelling for older puzzles
PRIOR_DAY_PROFILE = SessionProfile(
    name="yesterday",
    header="Links/yesterday",
    first_line="Playing yesterday's puzzle: {date}",
    messages=PRIOR_DAY_MESSAGES,
    score_line="📊 You got {correct}/{total} correct on yesterday's puzzle!",
    run_countdown=False,
    notify_on_complete=False,
    review_link=False,
)


class PuzzleSession:
    """
    Game state for one player against one day's puzzle.

    All output goes through the terminal scheduler as queued display commands;
    completion callbacks on that queue bring control back here between
    animation phases.
    """

    def __init__(
        self,
        game_date: date,
        scheduler: TerminalScheduler,
        clock: Clock,
        puzzle_source: PuzzleSource,
        store: SessionStore,
        dictionary: Dictionary,
        notifier: Optional[NotificationScheduler] = None,
        profile: SessionProfile = TODAY_PROFILE,
        config: Optional[GameConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.game_date = game_date
        self.key = date_key(game_date)
        self.scheduler = scheduler
        self.clock = clock
        self.puzzle_source = puzzle_source
        self.store = store
        self.dictionary = dictionary
        self.notifier = notifier
        self.profile = profile
        self.config = config or GameConfig()
        self.messages = MessageHistory(rng)

        self.puzzle: Optional[Puzzle] = None
        self.record: Optional[SessionRecord] = None
        self.state = SessionState.IDLE
        self.display_enabled = True
        self._timers: Dict[str, Timer] = {}
        self._reset_progress()

    def _reset_progress(self):
        self.result = GameResult.IN_PROGRESS
        self.current_word_index = self.config.starting_word_index
        self.lives_remaining = self.config.max_lives
        self.revealed_letters: Dict[int, int] = initial_revealed_letters(self.words)

    # Observers

    @property
    def words(self) -> List[str]:
        return self.puzzle.words if self.puzzle else []

    @property
    def is_completed(self) -> bool:
        return self.result != GameResult.IN_PROGRESS

    @property
    def has_server_error(self) -> bool:
        return self.state == SessionState.SERVER_ERROR

    @property
    def is_active(self) -> bool:
        """
        True while a guess would be accepted.
        """
        return (
            self.state == SessionState.AWAITING_GUESS
            and self.display_enabled
            and not self.scheduler.is_animating
        )

    @property
    def lives_used(self) -> int:
        return self.config.max_lives - self.lives_remaining

    @property
    def words_completed(self) -> int:
        return self.current_word_index - self.config.starting_word_index

    def chain_target(self) -> List[str]:
        return build_chain_target(
            self.words, self.current_word_index, self.revealed_letters, self.is_completed
        )

    # Loading

    async def start(self):
        """
        Loads the puzzle if needed, then (re)draws the whole game on the terminal.
        """
        self.display_enabled = True
        if self.puzzle is not None:
            self._present()
            return
        if self.state == SessionState.LOADING:
            return

        self.state = SessionState.LOADING
        logger.info(f"Loading {self.profile.name} puzzle for {self.key}")
        try:
            puzzle = await self.puzzle_source.fetch_puzzle(self.key)
        except PuzzleError as e:
            logger.error(f"Failed to fetch puzzle for {self.key}: {e}")
            self._show_server_error()
            return
        except Exception as e:
            logger.exception(f"Puzzle source crashed for {self.key}: {e}")
            self._show_server_error()
            return

        if self.state != SessionState.LOADING:
            # Reset while the fetch was in flight
            return

        self.puzzle = puzzle
        self._restore_or_create()
        self._present()

    def _restore_or_create(self):
        self._reset_progress()
        try:
            record = self.store.get(self.key)
        except StorageError as e:
            logger.error(f"Could not read session for {self.key}, starting fresh: {e}")
            record = None

        if record is None:
            try:
                record = self.store.create(self.key, len(self.words))
            except StorageError as e:
                logger.error(f"Could not create session for {self.key}: {e}")
                record = SessionRecord(game_date=self.key, total_words=len(self.words))
            self.record = record
            return

        self.record = record
        last = len(self.words) - 1
        self.lives_remaining = max(0, self.config.max_lives - record.lives_used)
        self.current_word_index = min(max(record.current_word_index, 1), last)
        for index, count in record.revealed_letters.items():
            if 0 < index < last:
                self.revealed_letters[index] = max(1, min(count, len(self.words[index])))

        if record.is_completed:
            self.result = GameResult.WON if record.did_win else GameResult.LOST
        logger.info(f"Restored {self.key}: word {self.current_word_index}, lives {self.lives_remaining}")

    # Presentation

    def _present(self):
        if not self.display_enabled:
            return
        self.state = SessionState.PRESENTING
        timing = self.config.timing

        self.scheduler.write_line(
            DisplayLines.FIRST_LINE,
            self.profile.first_line.format(date=display_date(self.game_date)),
            timing.first_line_speed,
        )
        self.scheduler.parallel([
            WriteLine(index=DisplayLines.WORD_CHAIN_START + i, text=text, speed=timing.word_chain_speed)
            for i, text in enumerate(self.chain_target())
        ])

        if self.is_completed:
            self.scheduler.write_line(DisplayLines.PROMPT, self._result_message(), timing.type_normal)
            self.scheduler.on_completion(self._enter_terminal)
        else:
            self.scheduler.write_line(DisplayLines.PROMPT, self._next_word_prompt(), timing.type_normal)
            self.scheduler.on_completion(self._activate)

    def _activate(self):
        if self.state == SessionState.PRESENTING and self.display_enabled:
            self.state = SessionState.AWAITING_GUESS

    def _next_word_prompt(self) -> str:
        pool = self.profile.messages[MessageCategory.NEXT_WORD]
        previous = self.words[self.current_word_index - 1]
        if self.current_word_index == self.config.starting_word_index:
            return f"{pool[0]} {previous}?"
        return f"{self.messages.pick(MessageCategory.NEXT_WORD, pool)} {previous}?"

    def _result_message(self) -> str:
        category = MessageCategory.VICTORY if self.result == GameResult.WON else MessageCategory.GAME_OVER
        return self.messages.pick(category, self.profile.messages[category])

    def _show_server_error(self):
        self.state = SessionState.SERVER_ERROR
        if not self.display_enabled:
            return
        pool = self.profile.messages[MessageCategory.SERVER_ERROR]
        message = self.messages.pick(MessageCategory.SERVER_ERROR, pool)
        self.scheduler.write_line(DisplayLines.FIRST_LINE, message, self.config.timing.first_line_speed)

    def _replace_prompt(self, text: str) -> ReplaceLine:
        timing = self.config.timing
        return ReplaceLine(
            index=DisplayLines.PROMPT, text=text,
            wipe_speed=timing.wipe_normal, type_speed=timing.type_normal,
        )

    # Guessing

    def submit_guess(self, text: str) -> GuessOutcome:
        if not self.is_active:
            return GuessOutcome.REJECTED

        guess = text.strip()
        if not guess:
            return GuessOutcome.EMPTY

        try:
            valid = self.dictionary.is_valid_word(guess)
        except Exception as e:
            logger.exception(f"Dictionary lookup failed for {guess!r}: {e}")
            self.scheduler.clear_all_immediate()
            self._show_server_error()
            return GuessOutcome.SERVER_ERROR

        if not valid:
            pool = self.profile.messages[MessageCategory.INVALID_WORD]
            self.scheduler.enqueue(self._replace_prompt(self.messages.pick(MessageCategory.INVALID_WORD, pool)))
            return GuessOutcome.INVALID

        if is_correct_guess(guess, self.words[self.current_word_index]):
            return self._advance_word(GuessOutcome.CORRECT)
        return self._wrong_guess()

    def _wrong_guess(self) -> GuessOutcome:
        self.lives_remaining = max(0, self.lives_remaining - 1)
        self._persist(self.store.update_lives_used, self.key, self.lives_used)
        if self.record:
            self.record.lives_used = self.lives_used

        if self.lives_remaining == 0:
            self._persist_progress()
            self._finish(GameResult.LOST)
            return GuessOutcome.LOST

        index = self.current_word_index
        word = self.words[index]
        revealed = reveal_hint(word, self.revealed_letters.get(index, 1))
        self.revealed_letters[index] = revealed

        if revealed >= len(word):
            # Hints spelled out the whole word: counts as solved
            return self._advance_word(GuessOutcome.AUTO_ADVANCED)

        self._persist_progress()
        pool = self.profile.messages[MessageCategory.INCORRECT]
        self.scheduler.parallel([
            SetLine(index=DisplayLines.WORD_CHAIN_START + index, text=masked_word(word, revealed)),
            self._replace_prompt(self.messages.pick(MessageCategory.INCORRECT, pool)),
        ])
        return GuessOutcome.INCORRECT

    def _advance_word(self, outcome: GuessOutcome) -> GuessOutcome:
        solved = self.current_word_index
        self.current_word_index += 1
        self._persist_progress()

        if self.current_word_index >= len(self.words) - 1:
            self._finish(GameResult.WON)
            return GuessOutcome.WON

        self.scheduler.parallel([
            SetLine(
                index=DisplayLines.WORD_CHAIN_START + solved,
                text=f"{self.words[solved]} {COMPLETED_MARK}",
            ),
            self._replace_prompt(self._next_word_prompt()),
        ])
        return outcome

    def _finish(self, result: GameResult):
        self.result = result
        self.state = SessionState.TERMINAL
        did_win = result == GameResult.WON
        logger.info(f"{self.key} finished: {'VICTORY' if did_win else 'DEFEAT'}, {self.lives_used} lives used")

        self._persist(self.store.mark_completed, self.key, self.lives_used, did_win)
        if self.record:
            self.record.mark_completed(lives_used=self.lives_used, did_win=did_win)

        if self.profile.notify_on_complete and self.notifier is not None:
            try:
                self.notifier.cancel_today_reminder()
            except Exception as e:
                logger.error(f"Could not cancel today's reminder: {e}")

        # Redraw the chain lines whose markers changed, together with the verdict
        timing = self.config.timing
        members = [
            ReplaceLine(
                index=DisplayLines.WORD_CHAIN_START + i, text=text,
                wipe_speed=timing.wipe_fast, type_speed=timing.type_fast,
            )
            for i, text in enumerate(self.chain_target())
            if self.scheduler.content(DisplayLines.WORD_CHAIN_START + i) != text
        ]
        members.append(self._replace_prompt(self._result_message()))
        self.scheduler.parallel(members)
        self.scheduler.on_completion(self._enter_terminal)

    # Persistence

    def _persist(self, operation: Callable, *args):
        try:
            operation(*args)
        except StorageError as e:
            # In-memory state stays authoritative for this run
            logger.error(f"Could not persist {self.key}: {e}")

    def _persist_progress(self):
        self._persist(
            self.store.update, self.key, self.words_completed,
            self.current_word_index, dict(self.revealed_letters),
        )
        if self.record:
            self.record.words_completed = self.words_completed
            self.record.current_word_index = self.current_word_index
            self.record.revealed_letters = dict(self.revealed_letters)

    # Game over sequence

    def _later(self, name: str, delay: float, callback: Callable[[], None]):
        def fire():
            self._timers.pop(name, None)
            if self.display_enabled:
                callback()

        previous = self._timers.pop(name, None)
        if previous is not None:
            previous.cancel()
        self._timers[name] = self.clock.call_later(delay, fire)

    def _cancel_timers(self):
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

    def _enter_terminal(self):
        if not self.display_enabled:
            return
        self.state = SessionState.TERMINAL
        self._later("game_over", self.config.game_over_delay, self._show_score)

    def _show_score(self):
        streak = 0
        if self.profile.run_countdown:
            try:
                streak = self.store.current_streak(self.clock.datetime_now().date())
            except StorageError as e:
                logger.error(f"Could not compute streak: {e}")

        message = self.profile.score_line.format(
            correct=self.words_completed, total=max(0, len(self.words) - 2), streak=streak
        )
        self.scheduler.write_line(DisplayLines.STREAK, message, self.config.timing.type_normal)
        self.scheduler.on_completion(self._show_navigation)

    def _show_navigation(self):
        if not self.display_enabled:
            return
        category = MessageCategory.NAVIGATION
        if self.profile.review_link and self._yesterday_completed():
            category = MessageCategory.REVIEW
        message = self.messages.pick(category, self.profile.messages[category])
        self.scheduler.write_line(DisplayLines.NAVIGATION, message, self.config.timing.type_normal)

        if self.profile.run_countdown:
            self.scheduler.on_completion(
                lambda: self._later("countdown", self.config.countdown_start_delay, self._start_countdown)
            )

    def _yesterday_completed(self) -> bool:
        try:
            return self.store.is_completed(date_key(self.game_date - timedelta(days=1)))
        except StorageError as e:
            logger.error(f"Could not read yesterday's session: {e}")
            return False

    def _countdown_text(self) -> Optional[str]:
        # Fixed deadline: the midnight that ends this puzzle's day
        remaining = time_until(next_midnight(self.game_date), self.clock.datetime_now())
        if remaining == (0, 0, 0):
            return None
        return COUNTDOWN_TEMPLATE.format(remaining=format_countdown(*remaining))

    def _start_countdown(self):
        self.state = SessionState.COUNTDOWN
        text = self._countdown_text() or NEW_PUZZLE_MESSAGE
        self.scheduler.enqueue(self._replace_prompt(text))
        if text != NEW_PUZZLE_MESSAGE:
            self._later("countdown", self.config.countdown_interval, self._tick_countdown)

    def _tick_countdown(self):
        text = self._countdown_text()
        if text is None:
            logger.info("Countdown reached midnight")
            self.scheduler.set_line(DisplayLines.PROMPT, NEW_PUZZLE_MESSAGE)
            return
        self.scheduler.set_line(DisplayLines.PROMPT, text)
        self._later("countdown", self.config.countdown_interval, self._tick_countdown)

    # Lifecycle

    def pause(self):
        """
        Stops drawing and timers without touching game progress.
        """
        logger.debug(f"Pausing {self.profile.name} session")
        self.display_enabled = False
        self._cancel_timers()

    def resume(self):
        logger.debug(f"Resuming {self.profile.name} session")
        self.display_enabled = True

    def reset(self):
        self._cancel_timers()
        self.display_enabled = True
        self.puzzle = None
        self.record = None
        self.state = SessionState.IDLE
        self.messages.reset()
        self._reset_progress()
