import asyncio
import random
import pytest
from conftest import TODAY_KEY, YESTERDAY_KEY
from wordlinks.coordinator.coordinator import GameMode, SessionCoordinator
from wordlinks.game.models import DisplayLines, GameConfig, GameResult, GuessOutcome
from wordlinks.puzzles.source import StaticPuzzleSource

KILL_LINE = DisplayLines.WORD_CHAIN_START + 1


@pytest.fixture
def coordinator(clock, scheduler, source, storage, dictionary, notifier):
    return SessionCoordinator(
        scheduler, clock, source, storage, dictionary, notifier,
        GameConfig(max_lives=3), rng=random.Random(5),
    )


def play(coordinator, clock, *guesses):
    outcomes = []
    for text in guesses:
        outcomes.append(coordinator.submit(text))
        clock.advance(5)
    return outcomes


async def test_starts_with_today(coordinator, clock, scheduler):
    await coordinator.start()
    clock.advance(10)

    assert coordinator.mode == GameMode.TODAY
    assert coordinator.header == "Links/daily"
    assert coordinator.is_active
    assert scheduler.content(DisplayLines.FIRST_LINE) == "Can you solve today's links? 1/15/2025"
    assert play(coordinator, clock, "kill") == [GuessOutcome.CORRECT]


async def test_switch_to_prior_day(coordinator, clock, scheduler, source):
    await coordinator.start()
    clock.advance(10)

    await coordinator.switch_to_prior_day()
    clock.advance(10)

    assert coordinator.mode == GameMode.PRIOR_DAY
    assert coordinator.header == "Links/yesterday"
    assert not coordinator.today_session.display_enabled
    assert scheduler.content(DisplayLines.FIRST_LINE) == "Playing yesterday's puzzle: 1/14/2025"
    assert scheduler.content(DisplayLines.WORD_CHAIN_START) == "FIRE"
    assert scheduler.content(DisplayLines.PROMPT) == "🤔 What word came after FIRE?"
    assert source.requests == [TODAY_KEY, YESTERDAY_KEY]


async def test_sessions_keep_their_progress_across_switches(coordinator, clock, scheduler, source):
    await coordinator.start()
    clock.advance(10)
    play(coordinator, clock, "KILL", "XYZ")

    await coordinator.switch_to_prior_day()
    clock.advance(10)
    assert coordinator.lives_remaining == 3
    assert play(coordinator, clock, "work") == [GuessOutcome.CORRECT]

    await coordinator.switch_to_today()
    clock.advance(10)
    assert coordinator.lives_remaining == 2
    assert scheduler.content(KILL_LINE) == "KILL ✓"
    assert scheduler.content(KILL_LINE + 1) == "TI__"

    await coordinator.switch_to_prior_day()
    clock.advance(10)
    assert scheduler.content(KILL_LINE) == "WORK ✓"
    # Cached session, no second fetch
    assert source.requests.count(YESTERDAY_KEY) == 1


async def test_background_session_cannot_draw(coordinator, clock, scheduler, storage):
    await coordinator.start()
    clock.advance(10)
    play(coordinator, clock, "XYZ", "ABC")

    assert coordinator.submit("DEF") == GuessOutcome.LOST
    await coordinator.switch_to_prior_day()
    clock.advance(60)

    assert coordinator.today_session.result == GameResult.LOST
    assert storage.get(TODAY_KEY).is_completed
    # Today's game over sequence never reaches the screen
    assert scheduler.content(DisplayLines.STREAK) == ""
    assert not scheduler.content(DisplayLines.PROMPT).startswith("⏰")
    assert scheduler.content(DisplayLines.WORD_CHAIN_START) == "FIRE"


async def test_navigation_link_switches_modes(coordinator, clock, scheduler):
    await coordinator.start()
    clock.advance(10)
    assert not await coordinator.follow_navigation_link()

    play(coordinator, clock, "XYZ", "ABC", "DEF")
    clock.advance(30)
    assert "[yesterday]" in scheduler.content(DisplayLines.NAVIGATION).lower()

    assert await coordinator.follow_navigation_link()
    assert coordinator.mode == GameMode.PRIOR_DAY
    clock.advance(10)
    assert not await coordinator.follow_navigation_link()

    play(coordinator, clock, "XYZ", "ABC", "DEF")
    clock.advance(30)
    assert "[today]" in scheduler.content(DisplayLines.NAVIGATION).lower()
    # Older puzzles have no streak or countdown
    assert "streak" not in scheduler.content(DisplayLines.STREAK)
    assert not scheduler.content(DisplayLines.PROMPT).startswith("⏰")

    assert await coordinator.follow_navigation_link()
    assert coordinator.mode == GameMode.TODAY


async def test_full_reset_starts_over(coordinator, clock, scheduler, storage, notifier):
    await coordinator.start()
    clock.advance(10)
    play(coordinator, clock, "KILL")
    await coordinator.switch_to_prior_day()
    clock.advance(10)
    play(coordinator, clock, "XYZ")

    await coordinator.full_reset()
    clock.advance(10)

    assert coordinator.mode == GameMode.TODAY
    assert coordinator.prior_sessions == {}
    assert coordinator.lives_remaining == 3
    assert scheduler.content(KILL_LINE) == "K___"
    assert storage.get(YESTERDAY_KEY) is None
    assert storage.get(TODAY_KEY).current_word_index == 1
    assert notifier.cleared == 1
    assert notifier.scheduled == 1


class BlockingSource(StaticPuzzleSource):
    """
    Holds the fetch for one date until `release` is set.
    """

    def __init__(self, puzzles, blocked_date: str):
        super().__init__(puzzles)
        self.blocked_date = blocked_date
        self.release = asyncio.Event()

    async def fetch_puzzle(self, game_date: str):
        if game_date == self.blocked_date:
            await self.release.wait()
        return await super().fetch_puzzle(game_date)


async def test_switch_while_outgoing_puzzle_is_loading(clock, scheduler, source, storage, dictionary, notifier):
    blocking = BlockingSource(source.puzzles.values(), blocked_date=TODAY_KEY)
    coordinator = SessionCoordinator(
        scheduler, clock, blocking, storage, dictionary, notifier,
        GameConfig(max_lives=3), rng=random.Random(5),
    )

    loading = asyncio.create_task(coordinator.start())
    await asyncio.sleep(0)
    assert not loading.done()

    await coordinator.switch_to_prior_day()
    clock.advance(10)

    # Today's fetch finishes while the prior day owns the terminal
    blocking.release.set()
    await loading
    clock.advance(10)

    assert coordinator.mode == GameMode.PRIOR_DAY
    assert scheduler.content(DisplayLines.FIRST_LINE) == "Playing yesterday's puzzle: 1/14/2025"
    assert scheduler.content(DisplayLines.WORD_CHAIN_START) == "FIRE"
    assert scheduler.content(KILL_LINE) == "W___"

    await coordinator.switch_to_today()
    clock.advance(10)

    assert scheduler.content(DisplayLines.FIRST_LINE) == "Can you solve today's links? 1/15/2025"
    assert scheduler.content(DisplayLines.WORD_CHAIN_START) == "ROAD"
    assert coordinator.is_active
    assert blocking.requests.count(TODAY_KEY) == 1
    assert play(coordinator, clock, "kill") == [GuessOutcome.CORRECT]
