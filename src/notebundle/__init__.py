"""Note packages: rich text plus attachments stored as a directory bundle."""

from notebundle.core.bundle.filesystem import read_from_external_tree, write_to_external_path
from notebundle.core.document.note import DocumentState, NoteDocument
from notebundle.errors import ErrorCode, NoteDocumentError
from notebundle.models.bundle import AttachmentRef, BundleNode, NodeKind
from notebundle.models.rich_text import RichText, TextAttributes, TextRun
from notebundle.protocols import ChangeObserver

__all__ = [
    "AttachmentRef",
    "BundleNode",
    "ChangeObserver",
    "DocumentState",
    "ErrorCode",
    "NodeKind",
    "NoteDocument",
    "NoteDocumentError",
    "RichText",
    "TextAttributes",
    "TextRun",
    "read_from_external_tree",
    "write_to_external_path",
]
