"""Configuration constants for notebundle."""

from pathlib import Path

# Names of files/directories inside a note package.
DOCUMENT_FILE: str = "Document.plist"
TEXT_FILE: str = "Text.rtf"
ATTACHMENTS_DIRECTORY: str = "Attachments"

# Key in Document.plist listing attachment names.
SUMMARY_ATTACHMENTS_KEY: str = "attachments"

# Suffix used for note packages created by the CLI.
BUNDLE_SUFFIX: str = ".note"

# Character attributes assumed by the RTF codec when none are given.
DEFAULT_FONT_FAMILY: str = "Helvetica"
DEFAULT_FONT_SIZE: float = 12.0

# Directory with notes. First directory which is found is used.
NOTES_DIRECTORIES: list[Path] = [
    Path("~/.local/share/notebundle").expanduser(),
    Path("~/Documents/Notes").expanduser(),
    Path("~/.notebundle").expanduser(),
]


def resolve_notes_directory() -> Path:
    """Return the first existing notes directory, or the first candidate."""
    for candidate in NOTES_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return NOTES_DIRECTORIES[0]
