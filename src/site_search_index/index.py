"""Immutable inverted index and its canonical serialization."""

import json
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from site_search_index.analyzer import Analyzer
from site_search_index.errors import IncompatibleIndexError, IndexIntegrityError, IndexLoadError
from site_search_index.models import Posting, StoredDocument

FORMAT_TAG = "site-search-index/1"

FIELDS = ("title", "tags", "categories", "excerpt")


@dataclass(frozen=True)
class SearchIndex:
    """Postings plus the document table needed to render results.

    Documents are addressed by their ordinal (insertion order). The index is
    never mutated after construction and can be shared between threads.
    """

    analyzer: Analyzer
    field_weights: Mapping[str, float]
    documents: tuple[StoredDocument, ...]
    field_lengths: Mapping[str, tuple[int, ...]]
    postings: Mapping[str, tuple[Posting, ...]]

    def __post_init__(self) -> None:
        object.__setattr__(self, "field_weights", MappingProxyType(dict(self.field_weights)))
        object.__setattr__(self, "field_lengths", MappingProxyType(dict(self.field_lengths)))
        object.__setattr__(self, "postings", MappingProxyType(dict(self.postings)))
        self._check_integrity()

    def _check_integrity(self) -> None:
        doc_count = len(self.documents)
        if set(self.field_lengths) != set(self.field_weights):
            msg = (
                f"Field lengths cover {sorted(self.field_lengths)} "
                f"but weighted fields are {sorted(self.field_weights)}"
            )
            raise IndexIntegrityError(msg)
        for field_name, lengths in self.field_lengths.items():
            if len(lengths) != doc_count:
                msg = f"Field '{field_name}' has {len(lengths)} lengths for {doc_count} documents"
                raise IndexIntegrityError(msg)
        for term, postings in self.postings.items():
            for posting in postings:
                if not 0 <= posting.doc < doc_count:
                    msg = f"Posting for term '{term}' references missing document #{posting.doc}"
                    raise IndexIntegrityError(msg)
                if posting.field not in self.field_weights:
                    msg = f"Posting for term '{term}' references unknown field '{posting.field}'"
                    raise IndexIntegrityError(msg)
                if posting.frequency != len(posting.positions):
                    msg = (
                        f"Posting for term '{term}' in document #{posting.doc} has frequency "
                        f"{posting.frequency} but {len(posting.positions)} positions"
                    )
                    raise IndexIntegrityError(msg)

    @property
    def document_count(self) -> int:
        return len(self.documents)

    def average_field_length(self, field_name: str) -> float:
        lengths = self.field_lengths.get(field_name, ())
        if not lengths:
            return 0.0
        return sum(lengths) / len(lengths)

    def document_frequency(self, term: str) -> int:
        """Return the number of distinct documents containing ``term``."""
        return len({posting.doc for posting in self.postings.get(term, ())})

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": FORMAT_TAG,
            "analyzer": self.analyzer.to_dict(),
            "fields": dict(self.field_weights),
            "documents": [
                {
                    "id": doc.id,
                    "title": doc.title,
                    "url": doc.url,
                    "snippet": doc.snippet,
                    "teaser": doc.teaser,
                }
                for doc in self.documents
            ],
            "lengths": {name: list(lengths) for name, lengths in self.field_lengths.items()},
            "postings": {
                term: [[p.doc, p.field, p.frequency, list(p.positions)] for p in postings]
                for term, postings in self.postings.items()
            },
        }

    def serialize(self) -> bytes:
        """Serialize to canonical JSON bytes.

        Keys are sorted and separators fixed, so identical indexes always
        produce identical bytes.
        """
        text = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"), ensure_ascii=False)
        return (text + "\n").encode("utf-8")

    @classmethod
    def from_dict(cls, data: Any) -> "SearchIndex":
        """Rebuild an index from its dictionary form.

        Raises:
            IncompatibleIndexError: If the format tag is missing or unsupported.
            IndexLoadError: If the structure is malformed.
        """
        if not isinstance(data, dict):
            msg = "Serialized index must be a JSON object"
            raise IndexLoadError(msg)
        found = data.get("format")
        if found != FORMAT_TAG:
            msg = f"Unsupported index format {found!r}, expected {FORMAT_TAG!r}; rebuild the index"
            raise IncompatibleIndexError(msg)
        try:
            documents = tuple(
                StoredDocument(
                    id=doc["id"],
                    title=doc["title"],
                    url=doc["url"],
                    snippet=doc["snippet"],
                    teaser=doc.get("teaser"),
                )
                for doc in data["documents"]
            )
            postings = {
                term: tuple(
                    Posting(doc=doc, field=field_name, frequency=frequency, positions=tuple(positions))
                    for doc, field_name, frequency, positions in entries
                )
                for term, entries in data["postings"].items()
            }
            return cls(
                analyzer=Analyzer.from_dict(data["analyzer"]),
                field_weights={name: float(weight) for name, weight in data["fields"].items()},
                documents=documents,
                field_lengths={name: tuple(lengths) for name, lengths in data["lengths"].items()},
                postings=postings,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            msg = f"Malformed serialized index: {exc!r}"
            raise IndexLoadError(msg) from exc

    @classmethod
    def deserialize(cls, payload: bytes) -> "SearchIndex":
        """Parse serialized index bytes.

        Raises:
            IndexLoadError: If the payload is not valid JSON.
            IncompatibleIndexError: If the format tag is unsupported.
        """
        try:
            data = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            msg = f"Serialized index is not valid JSON: {exc}"
            raise IndexLoadError(msg) from exc
        return cls.from_dict(data)
