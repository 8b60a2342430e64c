"""Tests for index file storage and the serialized format."""

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from site_search_index.analyzer import Analyzer
from site_search_index.config import Settings
from site_search_index.errors import IncompatibleIndexError, IndexIntegrityError, IndexLoadError
from site_search_index.index import FORMAT_TAG, SearchIndex
from site_search_index.indexer import IndexBuilder
from site_search_index.models import Posting, StoredDocument
from site_search_index.storage import IndexStore


@pytest.fixture
def index(settings: Settings, sample_records: list[dict[str, Any]]) -> SearchIndex:
    """Build an index over the sample records.

    Returns:
        SearchIndex instance.
    """
    return IndexBuilder(settings).build_from_records(sample_records)


def test_save_and_load(index: SearchIndex, tmp_path: Path) -> None:
    """Test that a saved index loads back equal."""
    store = IndexStore(tmp_path / "search-index.json")
    written = store.save(index)
    loaded = store.load()

    assert written == len(index.serialize())
    assert store.exists()
    assert loaded.documents == index.documents
    assert dict(loaded.postings) == dict(index.postings)
    assert loaded.analyzer == index.analyzer
    assert loaded.serialize() == index.serialize()


def test_serialized_format_tag(index: SearchIndex) -> None:
    """Test that the serialized index carries its format tag."""
    data = json.loads(index.serialize())
    assert data["format"] == FORMAT_TAG


def test_load_missing_file(tmp_path: Path) -> None:
    """Test that a missing index file raises a load error."""
    store = IndexStore(tmp_path / "missing.json")

    assert not store.exists()
    with pytest.raises(IndexLoadError, match="Cannot read index file"):
        store.load()


def test_load_rejects_other_format_version(index: SearchIndex, tmp_path: Path) -> None:
    """Test that an index written by another format version is rejected."""
    data = index.to_dict()
    data["format"] = "site-search-index/0"
    path = tmp_path / "old.json"
    path.write_text(json.dumps(data), encoding="utf-8")

    with pytest.raises(IncompatibleIndexError, match="site-search-index/0"):
        IndexStore(path).load()


def test_load_rejects_missing_format(tmp_path: Path) -> None:
    """Test that a JSON file without a format tag is rejected."""
    path = tmp_path / "other.json"
    path.write_text('{"documents": []}', encoding="utf-8")

    with pytest.raises(IncompatibleIndexError):
        IndexStore(path).load()


def test_load_rejects_garbage(tmp_path: Path) -> None:
    """Test that non-JSON content raises a load error."""
    path = tmp_path / "garbage.json"
    path.write_bytes(b"\x00not json")

    with pytest.raises(IndexLoadError, match="not valid JSON"):
        IndexStore(path).load()


def test_load_rejects_truncated_structure(index: SearchIndex, tmp_path: Path) -> None:
    """Test that a tagged but incomplete index raises a load error."""
    data = index.to_dict()
    del data["postings"]
    path = tmp_path / "truncated.json"
    path.write_text(json.dumps(data), encoding="utf-8")

    with pytest.raises(IndexLoadError, match="Malformed serialized index"):
        IndexStore(path).load()


def test_posting_to_missing_document_rejected() -> None:
    """Test that the index refuses postings to unknown documents."""
    with pytest.raises(IndexIntegrityError, match="missing document"):
        SearchIndex(
            analyzer=Analyzer(),
            field_weights={"title": 1.0},
            documents=(StoredDocument(id="a", title="A", url="/a/", snippet=""),),
            field_lengths={"title": (1,)},
            postings={"a": (Posting(doc=1, field="title", frequency=1, positions=(0,)),)},
        )


def test_failed_write_keeps_previous_index(index: SearchIndex, tmp_path: Path) -> None:
    """Test that an I/O failure while publishing leaves the old file and no temp file."""
    index_path = tmp_path / "search-index.json"
    index_path.write_bytes(b"previous")
    store = IndexStore(index_path)

    with patch("site_search_index.storage.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(OSError, match="disk full"):
            store.save(index)

    assert index_path.read_bytes() == b"previous"
    assert list(tmp_path.iterdir()) == [index_path]


def test_load_rejects_missing_field_lengths(index: SearchIndex, tmp_path: Path) -> None:
    """Test that an index without lengths for its weighted fields fails on load."""
    data = index.to_dict()
    data["lengths"] = {}
    path = tmp_path / "no-lengths.json"
    path.write_text(json.dumps(data), encoding="utf-8")

    with pytest.raises(IndexIntegrityError, match="Field lengths cover"):
        IndexStore(path).load()


def test_load_rejects_frequency_position_mismatch(index: SearchIndex, tmp_path: Path) -> None:
    """Test that a posting whose frequency disagrees with its positions fails on load."""
    data = index.to_dict()
    data["postings"]["portfolio"][0][2] += 1
    path = tmp_path / "bad-frequency.json"
    path.write_text(json.dumps(data), encoding="utf-8")

    with pytest.raises(IndexIntegrityError, match="has frequency"):
        IndexStore(path).load()
