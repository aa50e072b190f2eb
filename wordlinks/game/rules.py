from datetime import date, datetime, timedelta
from typing import Iterable
from wordlinks.game.models import DATE_FORMAT, SessionRecord, WordStatus

COMPLETED_MARK = "✓"
INCOMPLETE_MARK = "✗"
PLACEHOLDER = "_"


def is_anchor(index: int, words: list[str]) -> bool:
    return index == 0 or index == len(words) - 1


def masked_word(word: str, revealed: int) -> str:
    """
    First `revealed` letters of the word followed by placeholders.
    """
    revealed = max(0, min(revealed, len(word)))
    return word[:revealed] + PLACEHOLDER * (len(word) - revealed)


def is_fully_revealed(index: int, words: list[str], revealed_letters: dict[int, int]) -> bool:
    if index >= len(words):
        return False
    return revealed_letters.get(index, 1) >= len(words[index])


def word_status(
    index: int,
    words: list[str],
    current_index: int,
    revealed_letters: dict[int, int],
    is_completed: bool = False,
) -> WordStatus:
    # Anchors never carry a marker
    if is_anchor(index, words):
        return WordStatus.NOT_STARTED

    if index < current_index or is_fully_revealed(index, words, revealed_letters):
        return WordStatus.COMPLETED
    if is_completed:
        return WordStatus.INCOMPLETE
    if index == current_index:
        return WordStatus.IN_PROGRESS
    return WordStatus.NOT_STARTED


def chain_line(
    index: int,
    words: list[str],
    current_index: int,
    revealed_letters: dict[int, int],
    is_completed: bool = False,
) -> str:
    word = words[index]
    if is_anchor(index, words) or index < current_index:
        text = word
    elif index == current_index:
        text = masked_word(word, revealed_letters.get(index, 1))
    else:
        text = masked_word(word, 1)

    status = word_status(index, words, current_index, revealed_letters, is_completed)
    if status == WordStatus.COMPLETED:
        text += f" {COMPLETED_MARK}"
    elif status == WordStatus.INCOMPLETE:
        text += f" {INCOMPLETE_MARK}"
    return text


def build_chain_target(
    words: list[str],
    current_index: int,
    revealed_letters: dict[int, int],
    is_completed: bool = False,
) -> list[str]:
    """
    What every word-chain line should read for the given progress.
    """
    return [
        chain_line(i, words, current_index, revealed_letters, is_completed)
        for i in range(len(words))
    ]


def initial_revealed_letters(words: list[str]) -> dict[int, int]:
    return {i: 1 for i in range(1, len(words) - 1)}


def reveal_hint(word: str, revealed: int) -> int:
    return min(revealed + 1, len(word))


def is_correct_guess(guess: str, target: str) -> bool:
    return guess.strip().upper() == target.upper()


def daily_streak(records: Iterable[SessionRecord], today: date) -> int:
    """
    Consecutive won days ending today, or ending yesterday when today's
    puzzle has not been finished yet. A loss or a missing day ends the streak.
    """
    finished = {}
    for record in records:
        if not record.is_completed:
            continue
        try:
            day = datetime.strptime(record.game_date, DATE_FORMAT).date()
        except ValueError:
            continue
        finished[day] = record.did_win

    check = today if today in finished else today - timedelta(days=1)
    streak = 0
    while finished.get(check):
        streak += 1
        check -= timedelta(days=1)
    return streak


def next_midnight(day: date) -> datetime:
    return datetime.combine(day + timedelta(days=1), datetime.min.time())


def time_until(deadline: datetime, now: datetime) -> tuple[int, int, int]:
    """
    (hours, minutes, seconds) left before `deadline`, (0, 0, 0) once it has passed.
    """
    total = max(0, int((deadline - now).total_seconds()))
    return total // 3600, (total % 3600) // 60, total % 60


def format_countdown(hours: int, minutes: int, seconds: int) -> str:
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"
