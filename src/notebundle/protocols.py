"""Protocols for observers of a note document."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ChangeObserver(Protocol):
    """Receives notifications around every mutation of a note document.

    ``key`` names the property being changed, ``"attached_files"`` or ``"text"``.
    ``will_change`` is always followed by exactly one ``did_change`` for the same key.
    """

    def will_change(self, document: Any, key: str) -> None:
        """Called before the property changes."""
        ...

    def did_change(self, document: Any, key: str) -> None:
        """Called after the property changed."""
        ...
