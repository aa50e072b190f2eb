import json
import logging
from datetime import date, timedelta
from pathlib import Path
from typing import List, Optional
from pydantic import ValidationError
from wordlinks.game.models import DATE_FORMAT, CompletionStats, SessionRecord
from wordlinks.game.rules import daily_streak
from wordlinks.storage.base import SessionStore, StorageError

logger = logging.getLogger(__name__)


class JsonStorage(SessionStore):
    """
    Handles persistence of session records, one JSON file per puzzle date.
    """

    def __init__(self, base_path: str = "results"):
        self.base_path = Path(base_path)
        self.sessions_path = self.base_path / "sessions"

        # Ensure directories exist
        self.sessions_path.mkdir(parents=True, exist_ok=True)

    def _path(self, game_date: str) -> Path:
        return self.sessions_path / f"session_{game_date}.json"

    def _save(self, record: SessionRecord):
        try:
            with open(self._path(record.game_date), 'w') as f:
                f.write(record.model_dump_json(indent=2))
        except OSError as e:
            raise StorageError(f"Could not save session {record.game_date}: {e}") from e

    def get(self, game_date: str) -> Optional[SessionRecord]:
        file_path = self._path(game_date)
        if not file_path.exists():
            return None
        try:
            with open(file_path, 'r') as f:
                return SessionRecord.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise StorageError(f"Could not read session {game_date}: {e}") from e

    def create(self, game_date: str, total_words: int) -> SessionRecord:
        record = SessionRecord(game_date=game_date, total_words=total_words)
        self._save(record)
        logger.info(f"Created session record for {game_date}")
        return record

    def _require(self, game_date: str) -> SessionRecord:
        record = self.get(game_date)
        if record is None:
            raise StorageError(f"No session record for {game_date}")
        return record

    def update(
        self,
        game_date: str,
        words_completed: int,
        current_word_index: int,
        revealed_letters: dict[int, int],
    ):
        record = self._require(game_date)
        record.words_completed = words_completed
        record.current_word_index = current_word_index
        record.revealed_letters = dict(revealed_letters)
        self._save(record)
        logger.debug(f"Updated progress for {game_date}: {words_completed}/{record.total_words} words")

    def update_lives_used(self, game_date: str, lives_used: int):
        record = self._require(game_date)
        record.lives_used = lives_used
        self._save(record)

    def mark_completed(self, game_date: str, lives_used: int, did_win: bool):
        record = self._require(game_date)
        record.mark_completed(lives_used=lives_used, did_win=did_win)
        self._save(record)
        logger.info(f"Marked {game_date} completed with {lives_used} lives used - {'VICTORY' if did_win else 'DEFEAT'}")

    def load_all(self) -> List[SessionRecord]:
        records = []
        for file in sorted(self.sessions_path.glob("session_*.json")):
            try:
                with open(file, 'r') as f:
                    records.append(SessionRecord.model_validate(json.load(f)))
            except (OSError, json.JSONDecodeError, ValidationError) as e:
                logger.error(f"Skipping unreadable session file {file.name}: {e}")
        return records

    def current_streak(self, today: date) -> int:
        return daily_streak(self.load_all(), today)

    def completion_stats(self, today: date) -> CompletionStats:
        completed = [r for r in self.load_all() if r.is_completed]
        won = sum(1 for r in completed if r.did_win)
        return CompletionStats(
            total_completed=len(completed),
            games_won=won,
            win_rate=won / len(completed) if completed else 0.0,
            current_streak=daily_streak(completed, today),
        )

    def cleanup_old_records(self, today: date, keep_days: int = 30) -> int:
        cutoff = (today - timedelta(days=keep_days)).strftime(DATE_FORMAT)
        removed = 0
        for record in self.load_all():
            if record.game_date < cutoff:
                self._path(record.game_date).unlink(missing_ok=True)
                removed += 1
        logger.info(f"Cleaned up {removed} old session records")
        return removed

    def wipe_all(self):
        removed = 0
        for file in self.sessions_path.glob("session_*.json"):
            try:
                file.unlink()
            except OSError as e:
                raise StorageError(f"Could not delete {file.name}: {e}") from e
            removed += 1
        logger.warning(f"Wiped {removed} session records")
