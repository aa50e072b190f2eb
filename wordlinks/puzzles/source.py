import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, Optional
import aiohttp
from pydantic import ValidationError
from wordlinks.game.models import FALLBACK_PUZZLE, Puzzle, PuzzleResponse

logger = logging.getLogger(__name__)


class PuzzleError(Exception):
    """
    The puzzle for a date could not be obtained.
    """


class InvalidResponseError(PuzzleError):
    pass


class PuzzleServerError(PuzzleError):
    def __init__(self, status: int):
        super().__init__(f"Server error: {status}")
        self.status = status


class NoPuzzleForDateError(PuzzleError):
    def __init__(self, game_date: str):
        super().__init__(f"No puzzle available for {game_date}")
        self.game_date = game_date


class InvalidPuzzleFormatError(PuzzleError):
    pass


def select_puzzle(response: PuzzleResponse, game_date: str, expected_word_count: Optional[int]) -> Puzzle:
    """
    Finds the puzzle for `game_date` in a response envelope and checks its size.
    """
    puzzle = next((p for p in response.puzzles if p.date == game_date), None)
    if puzzle is None:
        raise NoPuzzleForDateError(game_date)
    if expected_word_count is not None and len(puzzle.words) != expected_word_count:
        raise InvalidPuzzleFormatError(
            f"Puzzle for {game_date} has {len(puzzle.words)} words, expected {expected_word_count}"
        )
    return puzzle


def parse_response(payload) -> PuzzleResponse:
    try:
        return PuzzleResponse.model_validate(payload)
    except ValidationError as e:
        raise InvalidResponseError(f"Malformed puzzle response: {e.error_count()} errors") from e


class PuzzleSource(ABC):
    """
    Provides the one puzzle of a given date.
    """

    def __init__(self, expected_word_count: Optional[int] = 12):
        self.expected_word_count = expected_word_count

    @abstractmethod
    async def fetch_puzzle(self, game_date: str) -> Puzzle:
        """
        Raises a PuzzleError subclass when no usable puzzle exists.
        """
        pass


class HttpPuzzleSource(PuzzleSource):
    """
    Fetches `{"puzzles": [...]}` from the puzzle API with a `date` query parameter.
    """

    def __init__(self, url: str, expected_word_count: Optional[int] = 12, timeout: float = 10.0):
        super().__init__(expected_word_count)
        self.url = url
        self.timeout = timeout

    async def fetch_puzzle(self, game_date: str) -> Puzzle:
        logger.info(f"Fetching puzzle for {game_date} from {self.url}")
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.get(self.url, params={"date": game_date}) as resp:
                    if resp.status != 200:
                        text = await resp.text()
                        logger.error(f"Puzzle API error: {resp.status} - {text}")
                        raise PuzzleServerError(resp.status)
                    payload = await resp.json(content_type=None)
        except aiohttp.ClientError as e:
            raise InvalidResponseError(f"Puzzle API unreachable: {e}") from e
        except json.JSONDecodeError as e:
            raise InvalidResponseError(f"Puzzle API returned invalid JSON: {e}") from e

        return select_puzzle(parse_response(payload), game_date, self.expected_word_count)


class FilePuzzleSource(PuzzleSource):
    """
    Reads the same envelope from a local JSON file. With `fallback=True`, dates
    missing from the file get the built-in chain instead of an error.
    """

    def __init__(self, path: str, expected_word_count: Optional[int] = 12, fallback: bool = False):
        super().__init__(expected_word_count)
        self.path = Path(path)
        self.fallback = fallback

    async def fetch_puzzle(self, game_date: str) -> Puzzle:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                payload = json.load(f)
        except FileNotFoundError:
            if self.fallback:
                return FALLBACK_PUZZLE.model_copy(update={"date": game_date})
            raise InvalidResponseError(f"Puzzle file {self.path} not found")
        except (OSError, json.JSONDecodeError) as e:
            raise InvalidResponseError(f"Could not read puzzle file {self.path}: {e}") from e

        try:
            return select_puzzle(parse_response(payload), game_date, self.expected_word_count)
        except NoPuzzleForDateError:
            if not self.fallback:
                raise
            logger.warning(f"No puzzle for {game_date} in {self.path}, using fallback")
            return FALLBACK_PUZZLE.model_copy(update={"date": game_date})


class StaticPuzzleSource(PuzzleSource):
    """
    In-memory puzzles keyed by date.
    """

    def __init__(self, puzzles: Iterable[Puzzle], expected_word_count: Optional[int] = None):
        super().__init__(expected_word_count)
        self.puzzles: Dict[str, Puzzle] = {p.date: p for p in puzzles}
        self.requests: list[str] = []

    async def fetch_puzzle(self, game_date: str) -> Puzzle:
        self.requests.append(game_date)
        response = PuzzleResponse(puzzles=list(self.puzzles.values()))
        return select_puzzle(response, game_date, self.expected_word_count)
