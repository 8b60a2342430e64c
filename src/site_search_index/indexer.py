"""Index builder turning content records into a serialized search index."""

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

from site_search_index.analyzer import Analyzer
from site_search_index.config import Settings
from site_search_index.errors import DocumentValidationError, RecordProblem
from site_search_index.index import FIELDS, SearchIndex
from site_search_index.models import Document, Posting, StoredDocument
from site_search_index.parser import RecordParser
from site_search_index.snippet import make_snippet
from site_search_index.storage import IndexStore

logger = logging.getLogger(__name__)

# field -> term -> positions
DocumentAnalysis = dict[str, dict[str, list[int]]]


class IndexBuilder:
    """Builds search indexes from content records."""

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialise builder.

        Args:
            settings: Build settings; defaults are read from the environment.
        """
        self.settings = settings or Settings()
        self.analyzer = Analyzer(stemming=self.settings.stemming)
        self.parser = RecordParser()

    def build(self, documents: Iterable[Document]) -> SearchIndex:
        """Build an index from documents in insertion order.

        Args:
            documents: Documents to index.

        Returns:
            Immutable SearchIndex.

        Raises:
            DocumentValidationError: If any document is invalid; nothing is built.
        """
        batch = list(documents)
        self.validate(batch)

        logger.info("Indexing %d documents", len(batch))
        analyses = self._analyze_all(batch)

        postings: dict[str, list[Posting]] = defaultdict(list)
        field_lengths: dict[str, list[int]] = {name: [] for name in FIELDS}
        for ordinal, analysis in enumerate(analyses):
            for field_name in FIELDS:
                terms = analysis[field_name]
                field_lengths[field_name].append(sum(len(positions) for positions in terms.values()))
                for term, positions in terms.items():
                    postings[term].append(
                        Posting(doc=ordinal, field=field_name, frequency=len(positions), positions=tuple(positions))
                    )
            logger.debug("Indexed: %s", batch[ordinal].id)

        index = SearchIndex(
            analyzer=self.analyzer,
            field_weights=self.settings.field_weights(),
            documents=tuple(self._stored(doc) for doc in batch),
            field_lengths={name: tuple(lengths) for name, lengths in field_lengths.items()},
            postings={term: tuple(entries) for term, entries in postings.items()},
        )
        logger.info("Built index with %d documents and %d terms", index.document_count, len(index.postings))
        return index

    def build_from_records(self, records: Iterable[Any]) -> SearchIndex:
        """Parse raw records and build an index from them."""
        return self.build(self.parser.parse_records(records))

    def build_from_path(self, records_path: Path) -> SearchIndex:
        """Build an index from a records file.

        Args:
            records_path: JSON array or ``lunr-store.js`` file.

        Returns:
            Immutable SearchIndex.

        Raises:
            ValueError: If the records file does not exist.
        """
        if not records_path.exists():
            msg = f"Records file does not exist: {records_path}"
            raise ValueError(msg)
        return self.build(self.parser.load_file(records_path))

    def publish(self, documents: Iterable[Document], index_path: Path) -> SearchIndex:
        """Build an index and atomically replace the file at ``index_path``.

        The previously published index stays in place if anything fails.

        Args:
            documents: Documents to index.
            index_path: Destination file.

        Returns:
            The published SearchIndex.
        """
        index = self.build(documents)
        IndexStore(index_path).save(index)
        return index

    def rebuild_from_path(self, records_path: Path, index_path: Path) -> int:
        """Rebuild the published index from a records file.

        Args:
            records_path: JSON array or ``lunr-store.js`` file.
            index_path: Destination file.

        Returns:
            Number of documents indexed.
        """
        index = self.build_from_path(records_path)
        IndexStore(index_path).save(index)
        return index.document_count

    @staticmethod
    def validate(documents: Sequence[Document]) -> None:
        """Check required fields and id uniqueness across the batch.

        Args:
            documents: Documents to check.

        Raises:
            DocumentValidationError: Listing every failing document.
        """
        problems: list[RecordProblem] = []
        first_seen: dict[str, int] = {}
        for position, doc in enumerate(documents):
            reference = str(doc.id or doc.url or doc.title or "?")
            wrong_types = [name for name in ("id", "url", "title", "excerpt") if not isinstance(getattr(doc, name), str)]
            if wrong_types:
                problems.extend(
                    RecordProblem(position, reference, f"field '{name}' must be a string") for name in wrong_types
                )
                continue
            if not doc.id.strip():
                problems.append(RecordProblem(position, reference, "missing required field 'id'"))
            if not doc.url.strip():
                problems.append(RecordProblem(position, reference, "missing required field 'url'"))
            if not doc.id:
                continue
            if doc.id in first_seen:
                problems.append(
                    RecordProblem(position, reference, f"duplicate id, first used by record #{first_seen[doc.id]}")
                )
            else:
                first_seen[doc.id] = position

        if problems:
            for problem in problems:
                logger.error("Rejected %s", problem)
            raise DocumentValidationError(problems)

    def _analyze_all(self, documents: list[Document]) -> list[DocumentAnalysis]:
        """Tokenize documents, optionally in parallel.

        ``Executor.map`` yields results in input order, so the merge never
        depends on which worker finishes first.
        """
        workers = self.settings.workers
        if workers <= 1 or len(documents) <= 1:
            return [self._analyze(doc) for doc in documents]
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(self._analyze, documents))

    def _analyze(self, document: Document) -> DocumentAnalysis:
        values = {
            "title": document.title,
            "tags": " ".join(document.tags),
            "categories": " ".join(document.categories),
            "excerpt": document.excerpt,
        }
        analysis: DocumentAnalysis = {}
        for field_name in FIELDS:
            terms: dict[str, list[int]] = {}
            for token in self.analyzer.tokens(values[field_name]):
                terms.setdefault(token.text, []).append(token.position)
            analysis[field_name] = terms
        return analysis

    def _stored(self, document: Document) -> StoredDocument:
        return StoredDocument(
            id=document.id,
            title=document.title,
            url=document.url,
            snippet=make_snippet(document.excerpt, self.settings.snippet_length),
            teaser=document.teaser,
        )
