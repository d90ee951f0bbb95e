"""Document.plist: a human-browsable index of the package contents."""

import plistlib
from typing import Any
from xml.parsers.expat import ExpatError

from notebundle.config import SUMMARY_ATTACHMENTS_KEY
from notebundle.models.bundle import BundleNode


def build_document_summary(attachments: BundleNode | None) -> bytes:
    """Serialize the summary for a package whose Attachments directory is attachments."""
    names = sorted(attachments.children or {}) if attachments is not None else []
    summary: dict[str, Any] = {SUMMARY_ATTACHMENTS_KEY: names}
    return plistlib.dumps(summary, fmt=plistlib.FMT_XML, sort_keys=True)


def read_document_summary(data: bytes) -> list[str] | None:
    """Return the attachment names listed in a summary.

    Returns:
        The list of names, or None if data is not a plist with a list of strings
        under the attachments key. The summary is informational; callers must
        not treat None as a broken package.
    """
    try:
        summary = plistlib.loads(data)
    except (plistlib.InvalidFileException, ExpatError, ValueError):
        return None
    if not isinstance(summary, dict):
        return None
    names = summary.get(SUMMARY_ATTACHMENTS_KEY)
    if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
        return None
    return names
