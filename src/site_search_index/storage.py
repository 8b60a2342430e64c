"""File storage for serialized search indexes."""

import logging
import os
import tempfile
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import IO

from site_search_index.errors import IndexLoadError
from site_search_index.index import SearchIndex

logger = logging.getLogger(__name__)


class IndexStore:
    """Reads and atomically publishes the serialized index file."""

    def __init__(self, index_path: Path) -> None:
        """Initialise store with the given path.

        Args:
            index_path: Path to the serialized index file.
        """
        self.index_path = index_path

    @contextmanager
    def _atomic_writer(self) -> Generator[IO[bytes], None, None]:
        """Context manager yielding a temporary file that replaces the index on success.

        The temporary file lives next to the target so ``os.replace`` stays
        on one filesystem. If the block raises, the temporary file is removed
        and the existing index is left untouched.

        Yields:
            Binary file handle.
        """
        self.index_path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(prefix=f".{self.index_path.name}.", suffix=".tmp", dir=self.index_path.parent)
        try:
            with os.fdopen(fd, "wb") as handle:
                yield handle
                handle.flush()
                os.fsync(handle.fileno())
            # mkstemp creates files readable by the owner only
            os.chmod(temp_name, 0o644)
            os.replace(temp_name, self.index_path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

    def save(self, index: SearchIndex) -> int:
        """Serialize and publish an index.

        Args:
            index: Index to publish.

        Returns:
            Number of bytes written.
        """
        payload = index.serialize()
        with self._atomic_writer() as handle:
            handle.write(payload)
        logger.info(
            "Published index with %d documents to %s (%d bytes)", index.document_count, self.index_path, len(payload)
        )
        return len(payload)

    def load(self) -> SearchIndex:
        """Read the published index.

        Returns:
            SearchIndex instance.

        Raises:
            IndexLoadError: If the file is missing or malformed.
            IncompatibleIndexError: If the file has an unsupported format tag.
        """
        try:
            payload = self.index_path.read_bytes()
        except OSError as exc:
            msg = f"Cannot read index file {self.index_path}: {exc}"
            raise IndexLoadError(msg) from exc
        index = SearchIndex.deserialize(payload)
        logger.debug("Loaded index with %d documents from %s", index.document_count, self.index_path)
        return index

    def exists(self) -> bool:
        """Return whether an index has been published."""
        return self.index_path.is_file()
