"""Text analysis shared by the index builder and the query engine.

Both sides of the index must turn text into terms the same way, otherwise a
word that was indexed can never be found again. The analyzer settings are
therefore stored inside the serialized index and the query engine rebuilds
its analyzer from them.
"""

import re
import unicodedata
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

_WORD_PATTERN = re.compile(r"\w+", re.UNICODE)

_SUFFIX_RULES: tuple[tuple[str, str], ...] = (
    ("ization", "ize"),
    ("ational", "ate"),
    ("fulness", "ful"),
    ("ousness", "ous"),
    ("iveness", "ive"),
    ("tional", "tion"),
    ("biliti", "ble"),
    ("entli", "ent"),
    ("izer", "ize"),
    ("ation", "ate"),
    ("ness", ""),
    ("ment", ""),
)

_SIMPLE_SUFFIXES: tuple[str, ...] = ("ingly", "edly", "ing", "ed", "ly", "es", "s")

_MIN_STEM_LENGTH = 3


@dataclass(frozen=True)
class Token:
    """A normalized term and its position within the analyzed text."""

    text: str
    position: int


def stem(word: str) -> str:
    """Strip common English suffixes from a lower-cased word.

    Args:
        word: Lower-cased word.

    Returns:
        The stemmed word, or the word unchanged if no rule applies.
    """
    for suffix, replacement in _SUFFIX_RULES:
        if word.endswith(suffix):
            candidate = word[: -len(suffix)] + replacement
            if len(candidate) >= _MIN_STEM_LENGTH:
                return candidate
    for suffix in _SIMPLE_SUFFIXES:
        if word.endswith(suffix) and not word.endswith("ss"):
            candidate = word[: -len(suffix)]
            if len(candidate) >= _MIN_STEM_LENGTH:
                return candidate
    return word


@dataclass(frozen=True)
class Analyzer:
    """Deterministic tokenizer: NFKC, lower-case, split on non-word characters.

    Stopwords are kept so that every word of a title stays searchable.
    """

    stemming: bool = True

    def tokens(self, text: str) -> Iterator[Token]:
        """Yield the tokens of ``text`` with their positions.

        Args:
            text: Raw text.

        Yields:
            Token instances in document order.
        """
        normalized = unicodedata.normalize("NFKC", text).lower()
        for position, match in enumerate(_WORD_PATTERN.finditer(normalized)):
            word = match.group(0)
            yield Token(text=stem(word) if self.stemming else word, position=position)

    def terms(self, text: str) -> list[str]:
        """Return the list of terms of ``text`` in order."""
        return [token.text for token in self.tokens(text)]

    def to_dict(self) -> dict[str, Any]:
        return {"stemming": self.stemming}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Analyzer":
        return cls(stemming=bool(data.get("stemming", True)))
