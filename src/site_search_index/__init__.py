"""Static search index builder and query engine for content sites."""

from site_search_index.engine import QueryEngine
from site_search_index.index import FORMAT_TAG, SearchIndex
from site_search_index.indexer import IndexBuilder
from site_search_index.models import Document, SearchResult

__all__ = ["FORMAT_TAG", "Document", "IndexBuilder", "QueryEngine", "SearchIndex", "SearchResult"]
