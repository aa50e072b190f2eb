from datetime import datetime
import pytest
from wordlinks.game.models import FALLBACK_PUZZLE, Puzzle
from wordlinks.notifications.scheduler import NotificationScheduler
from wordlinks.puzzles.source import StaticPuzzleSource
from wordlinks.storage.json_store import JsonStorage
from wordlinks.terminal.clock import FakeClock
from wordlinks.terminal.scheduler import TerminalScheduler
from wordlinks.words.bank import Dictionary

NOON = datetime(2025, 1, 15, 12, 0, 0)
TODAY_KEY = "2025-01-15"
YESTERDAY_KEY = "2025-01-14"

CHAIN = list(FALLBACK_PUZZLE.words)
YESTERDAY_CHAIN = ["FIRE", "WORK", "SHOP", "LIFT", "OFF", "SIDE", "WALK", "WAY", "POINT", "BLANK", "CHECK", "MATE"]
FILLER_WORDS = ["XYZ", "ABC", "DEF", "GHI", "JKL", "CAT", "DOG", "SUN", "MOON"]


class RecordingNotifier(NotificationScheduler):
    def __init__(self):
        self.cancelled = 0
        self.cleared = 0
        self.scheduled = 0

    def cancel_today_reminder(self):
        self.cancelled += 1

    def clear_all(self):
        self.cleared += 1

    def schedule_upcoming(self, days=None):
        self.scheduled += 1


@pytest.fixture
def clock():
    return FakeClock(NOON)


@pytest.fixture
def scheduler(clock):
    return TerminalScheduler(clock)


@pytest.fixture
def dictionary():
    return Dictionary(CHAIN + YESTERDAY_CHAIN + FILLER_WORDS)


@pytest.fixture
def storage(tmp_path):
    return JsonStorage(str(tmp_path / "results"))


@pytest.fixture
def source():
    return StaticPuzzleSource([
        Puzzle(date=TODAY_KEY, words=CHAIN),
        Puzzle(date=YESTERDAY_KEY, words=YESTERDAY_CHAIN),
    ])


@pytest.fixture
def notifier():
    return RecordingNotifier()
