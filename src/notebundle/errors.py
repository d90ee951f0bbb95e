"""Errors raised by note document operations.

All failures of the document layer share one domain and one flat set of
codes, so a host can render them without knowing which step failed.
I/O errors from reading attachments or flushing a tree to disk are not
wrapped and reach the host as plain ``OSError``.
"""

from enum import Enum
from typing import Any

ERROR_DOMAIN = "NotesErrorDomain"


class ErrorCode(Enum):
    """Things that can go wrong."""

    CANNOT_LOAD_FILE_WRAPPERS = 0
    CANNOT_LOAD_TEXT = 1
    CANNOT_ACCESS_ATTACHMENTS = 2
    CANNOT_SAVE_TEXT = 3
    NO_SUCH_ATTACHMENT = 4


_DEFAULT_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.CANNOT_LOAD_FILE_WRAPPERS: "Package is not a readable directory",
    ErrorCode.CANNOT_LOAD_TEXT: "Cannot load the note text",
    ErrorCode.CANNOT_ACCESS_ATTACHMENTS: "Cannot access the attachments of this note",
    ErrorCode.CANNOT_SAVE_TEXT: "Cannot save the note text",
    ErrorCode.NO_SUCH_ATTACHMENT: "No such attachment",
}


class NoteDocumentError(Exception):
    """A failed document operation.

    Attributes:
        code: Which operation failed and why.
        domain: Error domain shared by all codes.
        context: Extra details for the host (paths, names, ...).
    """

    domain = ERROR_DOMAIN

    def __init__(self, code: ErrorCode, message: str | None = None, **context: Any) -> None:
        self.code = code
        self.message = message or _DEFAULT_MESSAGES[code]
        self.context: dict[str, Any] = context
        super().__init__(self.message)

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={v!r}" for k, v in sorted(self.context.items()))
        return f"{self.message} ({details})"

    def to_dict(self) -> dict[str, Any]:
        """Structured form for hosts that render errors as data."""
        return {
            "domain": self.domain,
            "code": self.code.name,
            "message": self.message,
            "context": {k: str(v) for k, v in self.context.items()},
        }
