"""Parser for content records emitted by the site generator."""

import json
import logging
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import docutils.frontend  # type: ignore[import-untyped]
import docutils.nodes  # type: ignore[import-untyped]
import docutils.parsers.rst  # type: ignore[import-untyped]
import docutils.utils  # type: ignore[import-untyped]

from site_search_index.errors import DocumentValidationError, RecordParseError, RecordProblem
from site_search_index.models import Document

logger = logging.getLogger(__name__)

# Matches the "var store = " prefix of a lunr-store.js file.
_JS_ASSIGNMENT = re.compile(r"^\s*(?:var|let|const)\s+[A-Za-z_$][\w$]*\s*=\s*")

# Line starts that reStructuredText reads as an enumerated list item or a comment.
_BLOCK_MARKER = re.compile(r"^([ \t]*)(?=(?:\(?(?:\w+|#)[.)]|\.\.)(?:\s|$))", re.MULTILINE)


class TextContentVisitor(docutils.nodes.GenericNodeVisitor):  # type: ignore[misc]
    """Visitor to extract plain text from a parsed excerpt."""

    def __init__(self, document: docutils.nodes.document) -> None:
        """Initialise text content visitor.

        Args:
            document: Docutils document tree.
        """
        super().__init__(document)
        self._text_parts: list[str] = []

    def visit_comment(self, node: docutils.nodes.comment) -> None:
        """Skip comments.

        Raises:
            docutils.nodes.SkipNode: Always raised to skip comments.
        """
        raise docutils.nodes.SkipNode

    def visit_system_message(self, node: docutils.nodes.system_message) -> None:
        """Skip parser diagnostics attached to the tree.

        Raises:
            docutils.nodes.SkipNode: Always raised to skip diagnostics.
        """
        raise docutils.nodes.SkipNode

    def visit_Text(self, node: docutils.nodes.Text) -> None:  # noqa: N802
        """Collect text content."""
        self._text_parts.append(node.astext())

    def default_visit(self, node: docutils.nodes.Node) -> None:
        """Default visit handler (no-op)."""

    def default_departure(self, node: docutils.nodes.Node) -> None:
        """Separate block-level elements by whitespace."""
        if isinstance(node, docutils.nodes.TextElement) and not isinstance(node, docutils.nodes.Inline):
            self._text_parts.append(" ")

    def get_text(self) -> str:
        """Get collected text content.

        Returns:
            Concatenated text content with whitespace collapsed.
        """
        return re.sub(r"\s+", " ", "".join(self._text_parts)).strip()


class RecordParser:
    """Turns raw content records into Document instances."""

    def load_file(self, file_path: Path) -> list[Document]:
        """Load and parse a records file.

        Accepts either a bare JSON array or a ``lunr-store.js`` style
        ``var store = [...];`` assignment.

        Args:
            file_path: Path to the records file.

        Returns:
            Documents in file order.

        Raises:
            RecordParseError: If the file cannot be decoded.
            DocumentValidationError: If any record has the wrong shape.
        """
        try:
            source = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            msg = f"Cannot read records file {file_path}: {exc}"
            raise RecordParseError(msg) from exc

        records = self.decode(source)
        logger.info("Loaded %d records from %s", len(records), file_path)
        return self.parse_records(records)

    @staticmethod
    def decode(source: str) -> list[Any]:
        """Decode the text of a records file into a list of raw records.

        Args:
            source: File content.

        Returns:
            Raw records.

        Raises:
            RecordParseError: If the content is not a JSON array.
        """
        payload = _JS_ASSIGNMENT.sub("", source, count=1).strip()
        payload = payload.removesuffix(";").rstrip()
        try:
            records = json.loads(payload)
        except json.JSONDecodeError as exc:
            msg = f"Records are not valid JSON: {exc}"
            raise RecordParseError(msg) from exc
        if not isinstance(records, list):
            msg = f"Expected a JSON array of records, got {type(records).__name__}"
            raise RecordParseError(msg)
        return records

    def parse_records(self, records: Iterable[Any]) -> list[Document]:
        """Parse raw records, rejecting the whole batch on any malformed record.

        Args:
            records: Raw records (mappings).

        Returns:
            Documents in input order.

        Raises:
            DocumentValidationError: If any record has the wrong shape.
        """
        documents: list[Document] = []
        problems: list[RecordProblem] = []
        for position, record in enumerate(records):
            if not isinstance(record, Mapping):
                problems.append(RecordProblem(position, "?", f"expected an object, got {type(record).__name__}"))
                continue
            record_problems = self._check_record(record)
            if record_problems:
                reference = str(record.get("id") or record.get("url") or "?")
                problems.extend(RecordProblem(position, reference, reason) for reason in record_problems)
                continue
            documents.append(self.parse_record(record))

        if problems:
            raise DocumentValidationError(problems)
        return documents

    def parse_record(self, record: Mapping[str, Any]) -> Document:
        """Convert one well-formed record into a Document.

        The document id is the record's ``id`` when present, otherwise its
        ``url``, which is stable across site rebuilds.

        Args:
            record: Raw record.

        Returns:
            Document instance.
        """
        url = (record.get("url") or "").strip()
        raw_id = record.get("id")
        doc_id = str(raw_id).strip() if raw_id is not None else url
        return Document(
            id=doc_id,
            title=(record.get("title") or "").strip(),
            url=url,
            excerpt=self.strip_markup(record.get("excerpt") or ""),
            categories=self._unique(record.get("categories") or ()),
            tags=self._unique(record.get("tags") or ()),
            teaser=record.get("teaser") or None,
        )

    def strip_markup(self, excerpt: str) -> str:
        """Reduce an excerpt to plain text.

        Markdown links, headings and HTML tags are removed first, then the
        remaining inline markup (emphasis, strong, literals, roles) is
        resolved by the reStructuredText parser.

        Args:
            excerpt: Raw excerpt.

        Returns:
            Plain-text excerpt.
        """
        text = self._clean_content(excerpt)
        if not text:
            return ""
        try:
            doctree = self._parse_rst(text)
        except docutils.utils.SystemMessage:
            logger.debug("Excerpt markup could not be parsed, keeping cleaned text")
            return re.sub(r"\s+", " ", text).strip()
        visitor = TextContentVisitor(doctree)
        doctree.walkabout(visitor)
        return visitor.get_text()

    def _parse_rst(self, source: str) -> docutils.nodes.document:
        """Parse text into a docutils document tree.

        Args:
            source: Text to parse.

        Returns:
            Docutils document tree.
        """
        parser = docutils.parsers.rst.Parser()
        settings = docutils.frontend.get_default_settings(docutils.parsers.rst.Parser)
        settings.report_level = 5  # Suppress warnings
        settings.halt_level = 5
        document = docutils.utils.new_document("<excerpt>", settings)
        parser.parse(source, document)
        return document

    @staticmethod
    def _clean_content(content: str) -> str:
        """Remove markdown and HTML artifacts that docutils does not understand.

        Args:
            content: Raw excerpt.

        Returns:
            Cleaned excerpt.
        """
        # Markdown images and links ([text](url) -> text)
        content = re.sub(r"!?\[([^\]]*)\]\([^)]*\)", r"\1", content)
        # HTML tags
        content = re.sub(r"<[^>]+>", " ", content)
        # Markdown ATX headings
        content = re.sub(r"^\s{0,3}#{1,6}\s+", "", content, flags=re.MULTILINE)
        content = content.strip()
        # Escape list enumerators ("A.", "2020.", "(i)") and comment markers
        # starting a line so their text is kept as prose
        return _BLOCK_MARKER.sub(r"\1\\", content)

    @staticmethod
    def _check_record(record: Mapping[str, Any]) -> list[str]:
        reasons = []
        for key in ("title", "excerpt", "url", "teaser"):
            value = record.get(key)
            if value is not None and not isinstance(value, str):
                reasons.append(f"field '{key}' must be a string")
        for key in ("categories", "tags"):
            value = record.get(key)
            if value is None:
                continue
            if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                reasons.append(f"field '{key}' must be a list of strings")
        raw_id = record.get("id")
        if raw_id is not None and (isinstance(raw_id, bool) or not isinstance(raw_id, str | int)):
            reasons.append("field 'id' must be a string or an integer")
        return reasons

    @staticmethod
    def _unique(values: Iterable[str]) -> tuple[str, ...]:
        return tuple(dict.fromkeys(value.strip() for value in values if value.strip()))
