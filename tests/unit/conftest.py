"""Shared test fixtures."""

from pathlib import Path

import pytest

from notebundle.core.document.note import NoteDocument
from tests.unit.fakes import PHOTO_BYTES, SAMPLE_TEXT, RecordingObserver


@pytest.fixture
def photo(tmp_path: Path) -> Path:
    """A binary file to attach."""
    source = tmp_path / "sources" / "photo.png"
    source.parent.mkdir()
    source.write_bytes(PHOTO_BYTES)
    return source


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def document(observer: RecordingObserver) -> NoteDocument:
    """A fresh document with a recording observer attached."""
    doc = NoteDocument()
    doc.add_observer(observer)
    return doc


@pytest.fixture
def saved_package(tmp_path: Path, photo: Path) -> Path:
    """A package on disk with SAMPLE_TEXT and one attachment."""
    doc = NoteDocument()
    doc.replace_text(SAMPLE_TEXT)
    doc.add_attachment(photo)
    target = tmp_path / "Shopping.note"
    doc.write(target)
    return target
