"""Data models for the site search index."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Document:
    """Represents a content record (a blog post) to be indexed."""

    id: str
    title: str
    url: str
    excerpt: str = ""
    categories: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    teaser: str | None = None


@dataclass(frozen=True)
class Posting:
    """Occurrence of a term in one field of one document."""

    doc: int
    field: str
    frequency: int
    positions: tuple[int, ...] = field(default=())


@dataclass(frozen=True)
class StoredDocument:
    """Per-document metadata needed to render a search result."""

    id: str
    title: str
    url: str
    snippet: str
    teaser: str | None = None


@dataclass(frozen=True)
class SearchResult:
    """Represents a search result."""

    url: str
    title: str
    snippet: str
    doc_id: str
    score: float
    teaser: str | None = None
