"""Exceptions raised while building and loading search indexes."""

from dataclasses import dataclass


class SearchIndexError(Exception):
    """Base class for all search index errors."""


@dataclass(frozen=True)
class RecordProblem:
    """A single reason a content record was rejected."""

    position: int
    reference: str
    reason: str

    def __str__(self) -> str:
        return f"record #{self.position} ({self.reference}): {self.reason}"


class DocumentValidationError(SearchIndexError, ValueError):
    """Raised when one or more records in a batch are invalid.

    The whole batch is rejected; ``problems`` lists every failing record.
    """

    def __init__(self, problems: list[RecordProblem]) -> None:
        self.problems = tuple(problems)
        details = "; ".join(str(problem) for problem in self.problems)
        super().__init__(f"{len(self.problems)} invalid record(s): {details}")


class RecordParseError(SearchIndexError, ValueError):
    """Raised when a records file cannot be decoded."""


class IndexIntegrityError(SearchIndexError):
    """Raised when a posting references a document missing from the index."""


class IndexLoadError(SearchIndexError):
    """Raised when a serialized index cannot be read."""


class IncompatibleIndexError(IndexLoadError):
    """Raised when a serialized index carries an unsupported format tag."""
