"""Query engine answering free-text queries against a built index."""

import heapq
import logging
import math
import time
from collections import defaultdict
from collections.abc import Callable, Iterator
from itertools import islice
from pathlib import Path

from site_search_index.index import SearchIndex
from site_search_index.models import SearchResult
from site_search_index.storage import IndexStore

logger = logging.getLogger(__name__)


def calculate_idf(doc_freq: int, total_docs: int) -> float:
    """Return the smoothed inverse document frequency of a term.

    The ``1 +`` inside the logarithm keeps the value positive even when a
    term occurs in every document of a small corpus.
    """
    if total_docs <= 0 or doc_freq <= 0:
        return 0.0
    df = min(doc_freq, total_docs)
    return math.log(1.0 + (total_docs - df + 0.5) / (df + 0.5))


def bm25(tf: int, field_length: int, avg_field_length: float, *, k1: float = 1.2, b: float = 0.75) -> float:
    """Compute the BM25 term weight without IDF."""
    if tf <= 0:
        return 0.0
    length_ratio = field_length / avg_field_length if avg_field_length > 0 else 1.0
    return (tf * (k1 + 1)) / (tf + k1 * (1 - b + b * length_ratio))


class QueryEngine:
    """Ranks indexed documents for free-text queries using BM25F.

    The engine only reads from its index, so one instance can serve
    concurrent queries without locking.
    """

    def __init__(
        self,
        index: SearchIndex,
        *,
        k1: float = 1.2,
        b: float = 0.75,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialise engine for an index.

        Args:
            index: Index to query.
            k1: BM25 term-frequency saturation.
            b: BM25 length normalisation.
            clock: Monotonic clock used to enforce query deadlines.
        """
        self.index = index
        self.k1 = k1
        self.b = b
        self.clock = clock
        self._avg_lengths = {name: index.average_field_length(name) for name in index.field_weights}

    @classmethod
    def from_path(cls, index_path: Path) -> "QueryEngine":
        """Load a published index and return an engine for it.

        Raises:
            IndexLoadError: If the index cannot be read.
            IncompatibleIndexError: If the index format is unsupported.
        """
        return cls(IndexStore(index_path).load())

    def query_terms(self, query: str | bytes) -> list[str]:
        """Tokenize a query the same way the index was built, dropping repeats.

        Args:
            query: Query text. Bytes are decoded as UTF-8 and undecodable
                sequences are ignored.

        Returns:
            Distinct terms in query order.

        Raises:
            TypeError: If the query is neither text nor bytes.
        """
        if isinstance(query, bytes):
            query = query.decode("utf-8", errors="ignore")
        if not isinstance(query, str):
            msg = f"Query must be str or bytes, got {type(query).__name__}"
            raise TypeError(msg)
        return list(dict.fromkeys(self.index.analyzer.terms(query)))

    def iter_results(self, query: str | bytes, deadline: float | None = None) -> Iterator[SearchResult]:
        """Yield results best-first.

        Scoring starts on the first ``next()``; results are then popped off a
        heap one at a time, so taking a prefix avoids sorting every candidate.
        Each call starts a fresh, independent ranking.

        Args:
            query: Free-text query.
            deadline: Optional time budget in seconds for scoring. When it
                runs out, documents scored so far are ranked and returned.

        Yields:
            SearchResult instances ordered by score, ties by insertion order.
        """
        terms = self.query_terms(query)
        if not terms:
            return

        scores = self._score(terms, deadline)
        heap = [(-score, doc) for doc, score in scores.items() if score > 0]
        heapq.heapify(heap)
        while heap:
            neg_score, doc = heapq.heappop(heap)
            stored = self.index.documents[doc]
            yield SearchResult(
                url=stored.url,
                title=stored.title,
                snippet=stored.snippet,
                doc_id=stored.id,
                score=-neg_score,
                teaser=stored.teaser,
            )

    def search(self, query: str | bytes, limit: int | None = 10, deadline: float | None = None) -> list[SearchResult]:
        """Search the index.

        Args:
            query: Free-text query. An empty query returns no results.
            limit: Maximum number of results, or None for all.
            deadline: Optional time budget in seconds for scoring.

        Returns:
            List of SearchResult instances ordered by relevance.

        Raises:
            ValueError: If ``limit`` is negative.
        """
        if limit is not None and limit < 0:
            msg = f"limit must be non-negative, got {limit}"
            raise ValueError(msg)
        return list(islice(self.iter_results(query, deadline=deadline), limit))

    def _score(self, terms: list[str], deadline: float | None) -> dict[int, float]:
        total_docs = self.index.document_count
        started = self.clock()
        scores: dict[int, float] = defaultdict(float)

        for term in terms:
            postings = self.index.postings.get(term)
            if not postings:
                continue
            idf = calculate_idf(self.index.document_frequency(term), total_docs)
            for posting in postings:
                if deadline is not None and self.clock() - started > deadline:
                    logger.warning("Query deadline of %.3fs exceeded, returning partial ranking", deadline)
                    return scores
                weight = self.index.field_weights[posting.field]
                field_length = self.index.field_lengths[posting.field][posting.doc]
                scores[posting.doc] += (
                    idf
                    * weight
                    * bm25(posting.frequency, field_length, self._avg_lengths[posting.field], k1=self.k1, b=self.b)
                )
        return scores
