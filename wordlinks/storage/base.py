from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional
from wordlinks.game.models import CompletionStats, SessionRecord


class StorageError(Exception):
    """
    A session record could not be read or written.
    """


class SessionStore(ABC):
    """
    Persists one SessionRecord per puzzle date.
    Implementations must tolerate repeated update() calls with the same values.
    """

    @abstractmethod
    def get(self, game_date: str) -> Optional[SessionRecord]:
        pass

    @abstractmethod
    def create(self, game_date: str, total_words: int) -> SessionRecord:
        pass

    @abstractmethod
    def update(
        self,
        game_date: str,
        words_completed: int,
        current_word_index: int,
        revealed_letters: dict[int, int],
    ):
        pass

    @abstractmethod
    def update_lives_used(self, game_date: str, lives_used: int):
        pass

    @abstractmethod
    def mark_completed(self, game_date: str, lives_used: int, did_win: bool):
        pass

    @abstractmethod
    def load_all(self) -> List[SessionRecord]:
        pass

    @abstractmethod
    def wipe_all(self):
        pass

    @abstractmethod
    def current_streak(self, today: date) -> int:
        pass

    @abstractmethod
    def completion_stats(self, today: date) -> CompletionStats:
        pass

    def is_completed(self, game_date: str) -> bool:
        record = self.get(game_date)
        return record is not None and record.is_completed
