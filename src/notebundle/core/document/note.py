"""The note document: rich text plus attachments, stored as a package tree."""

import os
from enum import Enum
from pathlib import Path

from loguru import logger

from notebundle.config import ATTACHMENTS_DIRECTORY, DOCUMENT_FILE, TEXT_FILE
from notebundle.core.bundle.filesystem import read_from_external_tree, write_to_external_path
from notebundle.core.document.summary import build_document_summary
from notebundle.core.richtext.rtf import decode_rtf, encode_rtf
from notebundle.errors import ErrorCode, NoteDocumentError
from notebundle.models.bundle import AttachmentRef, BundleNode
from notebundle.models.rich_text import RichText
from notebundle.protocols import ChangeObserver

ATTACHED_FILES_KEY = "attached_files"
TEXT_KEY = "text"


class DocumentState(Enum):
    """Lifecycle of one document instance."""

    UNOPENED = "unopened"
    LOADED = "loaded"
    LOAD_FAILED = "load_failed"
    MODIFIED = "modified"
    SAVED = "saved"


class NoteDocument:
    """A single note held in memory.

    ``document_tree`` mirrors the package on disk and is the only place
    attachments live. ``text`` is authoritative for the body until ``save()``
    flattens it into ``Text.rtf`` inside the tree.

    Every mutation is bracketed by ``will_change``/``did_change`` calls to the
    registered observers and bumps ``change_count`` by one. Failed operations
    leave text, tree and counter as they were.
    """

    def __init__(self) -> None:
        self._text = RichText()
        self.document_tree = BundleNode.directory()
        self.change_count = 0
        self._clean_change_count = 0
        self._observers: list[ChangeObserver] = []
        self._state = DocumentState.UNOPENED

    @classmethod
    def open(cls, path: str | Path) -> "NoteDocument":
        """Read the package at path into a new document."""
        document = cls()
        document.read(path)
        return document

    @property
    def text(self) -> RichText:
        return self._text

    @property
    def state(self) -> DocumentState:
        if self._state in (DocumentState.UNOPENED, DocumentState.LOAD_FAILED):
            return self._state
        if self.is_modified:
            return DocumentState.MODIFIED
        return self._state

    @property
    def is_modified(self) -> bool:
        """True if there are changes since the last load or successful write."""
        return self.change_count != self._clean_change_count

    def add_observer(self, observer: ChangeObserver) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: ChangeObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _will_change(self, key: str) -> None:
        for observer in list(self._observers):
            observer.will_change(self, key)

    def _did_change(self, key: str) -> None:
        for observer in list(self._observers):
            observer.did_change(self, key)

    def _update_change_count(self) -> None:
        self.change_count += 1
        if self._state is DocumentState.UNOPENED:
            self._state = DocumentState.LOADED

    # -- attachments -------------------------------------------------------

    def _attachments_directory(self) -> BundleNode | None:
        node = self.document_tree.child_named(ATTACHMENTS_DIRECTORY)
        if node is None or not node.is_directory:
            return None
        return node

    def attached_files(self) -> list[BundleNode] | None:
        """Children of the Attachments directory by name, or None if there is none."""
        attachments = self._attachments_directory()
        if attachments is None:
            return None
        return attachments.sorted_children()

    def attachment_refs(self) -> list[AttachmentRef]:
        return [AttachmentRef.from_node(node) for node in self.attached_files() or []]

    def add_attachment(self, source_path: str | Path) -> BundleNode:
        """Copy the file or directory at source_path into the Attachments directory.

        An attachment with the same name is replaced.

        Raises:
            NoteDocumentError: CANNOT_ACCESS_ATTACHMENTS if the document tree
                is not a directory.
            OSError: source_path could not be read.
        """
        if self.document_tree.children is None:
            raise NoteDocumentError(ErrorCode.CANNOT_ACCESS_ATTACHMENTS, source=str(source_path))

        existing = self.document_tree.child_named(ATTACHMENTS_DIRECTORY)
        if existing is not None and not existing.is_directory:
            raise NoteDocumentError(
                ErrorCode.CANNOT_ACCESS_ATTACHMENTS,
                f"{ATTACHMENTS_DIRECTORY!r} in the package is not a directory",
                source=str(source_path),
            )

        # Read before notifying so a failed read leaves no trace.
        # Content follows symlinks; the name is the one the caller gave.
        new_attachment = read_from_external_tree(os.path.abspath(source_path))
        name = new_attachment.preferred_name
        if not name:
            raise NoteDocumentError(
                ErrorCode.CANNOT_ACCESS_ATTACHMENTS,
                "Attachment source has no file name",
                source=str(source_path),
            )

        self._will_change(ATTACHED_FILES_KEY)
        attachments = existing
        if attachments is None:
            attachments = BundleNode.directory(ATTACHMENTS_DIRECTORY)
            self.document_tree.add_child(attachments)
        replaced = attachments.child_named(name) is not None
        attachments.add_child(new_attachment)
        self._update_change_count()
        self._did_change(ATTACHED_FILES_KEY)

        logger.debug(
            "{} attachment {!r} ({} bytes)",
            "Replaced" if replaced else "Added",
            new_attachment.preferred_name,
            new_attachment.total_size(),
        )
        return new_attachment

    def remove_attachment(self, name: str) -> None:
        """Remove the attachment called name.

        Raises:
            NoteDocumentError: NO_SUCH_ATTACHMENT if there is no such attachment.
        """
        attachments = self._attachments_directory()
        node = attachments.child_named(name) if attachments is not None else None
        if attachments is None or node is None:
            raise NoteDocumentError(ErrorCode.NO_SUCH_ATTACHMENT, name=name)

        self._will_change(ATTACHED_FILES_KEY)
        attachments.remove_child(node)
        self._update_change_count()
        self._did_change(ATTACHED_FILES_KEY)
        logger.debug("Removed attachment {!r}", name)

    # -- text --------------------------------------------------------------

    def replace_text(self, text: RichText) -> None:
        """Replace the body of the note."""
        if not isinstance(text, RichText):
            msg = f"Expected RichText, got {type(text).__name__}"
            raise TypeError(msg)
        self._will_change(TEXT_KEY)
        self._text = text
        self._update_change_count()
        self._did_change(TEXT_KEY)

    # -- load / save -------------------------------------------------------

    def load(self, bundle: BundleNode) -> None:
        """Replace text and tree with the contents of bundle.

        Raises:
            NoteDocumentError: CANNOT_LOAD_FILE_WRAPPERS if bundle is not a
                directory, CANNOT_LOAD_TEXT if Text.rtf is missing or is not RTF.
        """
        try:
            text = self._decode_bundle(bundle)
        except NoteDocumentError:
            if self._state is DocumentState.UNOPENED:
                self._state = DocumentState.LOAD_FAILED
            raise

        self._text = text
        self.document_tree = bundle
        self._clean_change_count = self.change_count
        self._state = DocumentState.LOADED
        logger.debug(
            "Loaded note: {} characters, {} attachment(s)",
            len(text),
            len(self.attached_files() or []),
        )

    @staticmethod
    def _decode_bundle(bundle: BundleNode) -> RichText:
        if bundle.children is None:
            raise NoteDocumentError(
                ErrorCode.CANNOT_LOAD_FILE_WRAPPERS, name=bundle.preferred_name
            )

        text_node = bundle.child_named(TEXT_FILE)
        if text_node is None or text_node.contents is None:
            raise NoteDocumentError(
                ErrorCode.CANNOT_LOAD_TEXT, f"{TEXT_FILE} is missing from the package"
            )

        try:
            return decode_rtf(text_node.contents)
        except ValueError as e:
            raise NoteDocumentError(
                ErrorCode.CANNOT_LOAD_TEXT, f"{TEXT_FILE} is not valid RTF: {e}"
            ) from e

    def read(self, path: str | Path) -> None:
        """Load the package stored at path.

        Raises:
            NoteDocumentError: as for load(); an unreadable path is reported
                as CANNOT_LOAD_FILE_WRAPPERS.
        """
        try:
            bundle = read_from_external_tree(path)
        except OSError as e:
            if self._state is DocumentState.UNOPENED:
                self._state = DocumentState.LOAD_FAILED
            raise NoteDocumentError(
                ErrorCode.CANNOT_LOAD_FILE_WRAPPERS, str(e), path=str(path)
            ) from e
        self.load(bundle)
        logger.debug("Opened {}", path)

    def save(self) -> BundleNode:
        """Flatten the text into the document tree and return the tree.

        Attachments are already live in the tree and are left alone.

        Raises:
            NoteDocumentError: CANNOT_SAVE_TEXT if the text cannot be encoded.
        """
        try:
            text_data = encode_rtf(self._text)
        except (ValueError, TypeError) as e:
            raise NoteDocumentError(ErrorCode.CANNOT_SAVE_TEXT, str(e)) from e
        summary_data = build_document_summary(self._attachments_directory())

        old_text = self.document_tree.child_named(TEXT_FILE)
        if old_text is not None:
            self.document_tree.remove_child(old_text)
        self.document_tree.add_regular_file(text_data, TEXT_FILE)

        old_summary = self.document_tree.child_named(DOCUMENT_FILE)
        if old_summary is not None:
            self.document_tree.remove_child(old_summary)
        self.document_tree.add_regular_file(summary_data, DOCUMENT_FILE)

        return self.document_tree

    def write(self, path: str | Path) -> None:
        """Save and flush the package to path.

        On success the document becomes clean. On failure it stays modified
        and the error propagates.
        """
        tree = self.save()
        write_to_external_path(tree, path)
        self._clean_change_count = self.change_count
        self._state = DocumentState.SAVED
        logger.debug("Saved {}", path)
