import logging
import random
from datetime import date, timedelta
from enum import Enum
from typing import Dict, List, Optional
from wordlinks.game.engine import PRIOR_DAY_PROFILE, TODAY_PROFILE, PuzzleSession, SessionProfile
from wordlinks.game.models import DisplayLines, GameConfig, GuessOutcome, date_key
from wordlinks.notifications.scheduler import NotificationScheduler
from wordlinks.puzzles.source import PuzzleSource
from wordlinks.storage.base import SessionStore, StorageError
from wordlinks.terminal.clock import Clock
from wordlinks.terminal.scheduler import TerminalScheduler
from wordlinks.words.bank import Dictionary

logger = logging.getLogger(__name__)


class GameMode(str, Enum):
    TODAY = "today"
    PRIOR_DAY = "prior_day"


class SessionCoordinator:
    """
    Shares one terminal between today's session and older ones.

    Exactly one session is in the foreground. The others are paused: their
    timers are cancelled and their display flag is off, so nothing they still
    have scheduled can reach the terminal.
    """

    def __init__(
        self,
        scheduler: TerminalScheduler,
        clock: Clock,
        puzzle_source: PuzzleSource,
        store: SessionStore,
        dictionary: Dictionary,
        notifier: Optional[NotificationScheduler] = None,
        config: Optional[GameConfig] = None,
        rng: Optional[random.Random] = None,
        today: Optional[date] = None,
    ):
        self.scheduler = scheduler
        self.clock = clock
        self.puzzle_source = puzzle_source
        self.store = store
        self.dictionary = dictionary
        self.notifier = notifier
        self.config = config or GameConfig()
        self.rng = rng

        self.today = today or clock.datetime_now().date()
        self.today_session = self._make_session(self.today, TODAY_PROFILE)
        self.prior_sessions: Dict[str, PuzzleSession] = {}
        self.mode = GameMode.TODAY
        self.foreground = self.today_session

    def _make_session(self, game_date: date, profile: SessionProfile) -> PuzzleSession:
        return PuzzleSession(
            game_date,
            self.scheduler,
            self.clock,
            self.puzzle_source,
            self.store,
            self.dictionary,
            notifier=self.notifier,
            profile=profile,
            config=self.config,
            rng=self.rng,
        )

    @property
    def sessions(self) -> List[PuzzleSession]:
        return [self.today_session, *self.prior_sessions.values()]

    @property
    def header(self) -> str:
        return self.foreground.profile.header

    @property
    def lives_remaining(self) -> int:
        return self.foreground.lives_remaining

    @property
    def is_animating(self) -> bool:
        return self.scheduler.is_animating

    @property
    def is_active(self) -> bool:
        return self.foreground.is_active

    async def start(self):
        await self.foreground.start()

    def submit(self, text: str) -> GuessOutcome:
        return self.foreground.submit_guess(text)

    async def switch_to_today(self):
        logger.info("Switching to today mode")
        await self._switch(self.today_session, GameMode.TODAY)

    async def switch_to_prior_day(self, game_date: Optional[date] = None):
        game_date = game_date or self.today - timedelta(days=1)
        key = date_key(game_date)
        if key not in self.prior_sessions:
            self.prior_sessions[key] = self._make_session(game_date, PRIOR_DAY_PROFILE)
        logger.info(f"Switching to prior day mode for {key}")
        await self._switch(self.prior_sessions[key], GameMode.PRIOR_DAY)

    async def _switch(self, incoming: PuzzleSession, mode: GameMode):
        outgoing = self.foreground
        if outgoing is not incoming:
            outgoing.pause()

        # 1. Nothing from the outgoing session may survive on screen or in the queue
        self.scheduler.clear_all_immediate()

        # 2. Hand the terminal over
        self.foreground = incoming
        self.mode = mode
        incoming.resume()
        await incoming.start()

    async def follow_navigation_link(self) -> bool:
        """
        Switches mode when the screen offers a [yesterday] or [today] link.
        The navigation line is checked first, then the whole screen.
        """
        navigation = self.scheduler.content(DisplayLines.NAVIGATION).lower()
        screen = " ".join(
            self.scheduler.content(i) for i in range(self.scheduler.total_lines)
        ).lower()

        for text in (navigation, screen):
            if self.mode == GameMode.TODAY and "[yesterday]" in text:
                await self.switch_to_prior_day()
                return True
            if self.mode == GameMode.PRIOR_DAY and "[today]" in text:
                await self.switch_to_today()
                return True
        return False

    async def full_reset(self):
        """
        Forgets everything: timers, screen, stored sessions and notifications,
        then loads today's puzzle from scratch.
        """
        logger.warning("Full reset requested")
        for session in self.sessions:
            session.reset()
        self.scheduler.clear_all_immediate()

        try:
            self.store.wipe_all()
        except StorageError as e:
            logger.error(f"Could not wipe stored sessions: {e}")

        if self.notifier is not None:
            try:
                self.notifier.clear_all()
            except Exception as e:
                logger.error(f"Could not clear notifications: {e}")

        self.prior_sessions.clear()
        self.today = self.clock.datetime_now().date()
        self.today_session = self._make_session(self.today, TODAY_PROFILE)
        self.foreground = self.today_session
        self.mode = GameMode.TODAY

        if self.notifier is not None:
            try:
                self.notifier.schedule_upcoming()
            except Exception as e:
                logger.error(f"Could not reschedule notifications: {e}")

        await self.start()
