import json
from pathlib import Path
from typing import Iterable


class Dictionary:
    """
    Word list used to decide whether a guess is a real word.
    """

    def __init__(self, words: Iterable[str], min_length: int = 2):
        # Store as uppercase for consistent comparison
        self.all_words = {w.strip().upper() for w in words if w.strip()}
        self.min_length = min_length

    @classmethod
    def from_file(cls, filepath: str, min_length: int = 2):
        """
        Loads a JSON list of words, or a plain text file with one word per line.
        """
        path = Path(filepath)
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix == ".json":
                words = json.load(f)
            else:
                words = f.read().splitlines()
        return cls(words, min_length=min_length)

    def is_valid_word(self, text: str) -> bool:
        word = text.strip()
        # Cheap shape checks before the lookup
        if len(word) < self.min_length or not word.isalpha():
            return False
        return word.upper() in self.all_words

    def __contains__(self, word: str) -> bool:
        return self.is_valid_word(word)

    def __len__(self) -> int:
        return len(self.all_words)
