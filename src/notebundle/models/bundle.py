"""In-memory mirror of a directory-style note package."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum


class NodeKind(Enum):
    """What a bundle node stands for on disk."""

    DIRECTORY = "directory"
    REGULAR_FILE = "regular_file"


def _check_name(name: str | None) -> str:
    if not name:
        msg = "Bundle node needs a preferred name to be added to a directory"
        raise ValueError(msg)
    if "/" in name or "\0" in name or name in (".", ".."):
        msg = f"Path escapes bundle: {name!r}"
        raise ValueError(msg)
    return name


@dataclass(eq=False)
class BundleNode:
    """A node in a package tree: either a directory or a regular file.

    Directory children are keyed by their preferred name; adding a child whose
    name is already taken replaces the previous child.
    """

    kind: NodeKind
    preferred_name: str | None = None
    children: dict[str, "BundleNode"] | None = None
    contents: bytes | None = None

    def __post_init__(self) -> None:
        if self.kind is NodeKind.DIRECTORY:
            if self.contents is not None:
                msg = "Directory node cannot have contents"
                raise ValueError(msg)
            if self.children is None:
                self.children = {}
        else:
            if self.children is not None:
                msg = "Regular file node cannot have children"
                raise ValueError(msg)
            if self.contents is None:
                self.contents = b""

    @classmethod
    def directory(
        cls,
        preferred_name: str | None = None,
        children: list["BundleNode"] | None = None,
    ) -> "BundleNode":
        """Create a directory node, optionally populated with children."""
        node = cls(NodeKind.DIRECTORY, preferred_name)
        for child in children or []:
            node.add_child(child)
        return node

    @classmethod
    def regular_file(cls, contents: bytes, preferred_name: str | None = None) -> "BundleNode":
        """Create a regular file node holding contents."""
        return cls(NodeKind.REGULAR_FILE, preferred_name, contents=bytes(contents))

    @property
    def is_directory(self) -> bool:
        return self.kind is NodeKind.DIRECTORY

    @property
    def is_regular_file(self) -> bool:
        return self.kind is NodeKind.REGULAR_FILE

    def child_named(self, name: str) -> "BundleNode | None":
        """Return the child called name, or None if absent or self is a file."""
        if self.children is None:
            return None
        return self.children.get(name)

    def add_child(self, node: "BundleNode") -> "BundleNode":
        """Insert node under its preferred name, replacing any same-named child."""
        if self.children is None:
            msg = f"Cannot add {node.preferred_name!r} to regular file {self.preferred_name!r}"
            raise NotADirectoryError(msg)
        name = _check_name(node.preferred_name)
        self.children[name] = node
        return node

    def add_regular_file(self, contents: bytes, preferred_name: str) -> "BundleNode":
        """Create a regular file child and insert it."""
        return self.add_child(BundleNode.regular_file(contents, preferred_name))

    def remove_child(self, node: "BundleNode") -> None:
        """Remove the child with node's name. No-op if there is none."""
        if self.children is None or node.preferred_name is None:
            return
        self.children.pop(node.preferred_name, None)

    def sorted_children(self) -> list["BundleNode"]:
        """Children ordered by name; empty for regular files."""
        if self.children is None:
            return []
        return [self.children[name] for name in sorted(self.children)]

    def walk(self, prefix: str = "") -> Iterator[tuple[str, "BundleNode"]]:
        """Yield (relative path, node) for every descendant, depth first."""
        for child in self.sorted_children():
            rel = f"{prefix}{child.preferred_name}"
            yield rel, child
            if child.is_directory:
                yield from child.walk(rel + "/")

    def total_size(self) -> int:
        """Sum of the sizes of all regular files under this node."""
        if self.contents is not None:
            return len(self.contents)
        return sum(len(n.contents or b"") for _rel, n in self.walk())

    def same_structure(self, other: "BundleNode") -> bool:
        """True if both trees have the same names, kinds and file contents."""
        if self.kind is not other.kind:
            return False
        if self.is_regular_file:
            return self.contents == other.contents
        if self.children is None or other.children is None:
            return False
        if self.children.keys() != other.children.keys():
            return False
        return all(
            child.same_structure(other.children[name]) for name, child in self.children.items()
        )


@dataclass(frozen=True)
class AttachmentRef:
    """Summary of one attachment, as shown to hosts."""

    name: str
    kind: NodeKind
    size: int = 0
    entries: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_node(cls, node: BundleNode) -> "AttachmentRef":
        return cls(
            name=node.preferred_name or "",
            kind=node.kind,
            size=node.total_size(),
            entries=tuple(rel for rel, _n in node.walk()),
        )
