"""Tests for BundleNode, the in-memory package tree."""

import pytest

from notebundle.models.bundle import AttachmentRef, BundleNode, NodeKind


def test_directory_starts_empty() -> None:
    node = BundleNode.directory("Note.note")

    assert node.kind is NodeKind.DIRECTORY
    assert node.children == {}
    assert node.contents is None


def test_regular_file_holds_contents() -> None:
    node = BundleNode.regular_file(b"abc", "a.txt")

    assert node.is_regular_file
    assert node.contents == b"abc"
    assert node.children is None


def test_directory_cannot_have_contents() -> None:
    with pytest.raises(ValueError, match="cannot have contents"):
        BundleNode(NodeKind.DIRECTORY, "d", contents=b"x")


def test_child_named_finds_child() -> None:
    root = BundleNode.directory()
    child = root.add_regular_file(b"1", "one.txt")

    assert root.child_named("one.txt") is child
    assert root.child_named("two.txt") is None


def test_child_named_on_file_returns_none() -> None:
    node = BundleNode.regular_file(b"", "f")

    assert node.child_named("anything") is None


def test_add_child_replaces_same_name() -> None:
    """A name collision replaces the previous child."""
    root = BundleNode.directory()
    root.add_regular_file(b"old", "photo.png")
    root.add_regular_file(b"new", "photo.png")

    assert list(root.children or {}) == ["photo.png"]
    assert root.child_named("photo.png").contents == b"new"  # type: ignore[union-attr]


def test_add_child_to_file_raises() -> None:
    node = BundleNode.regular_file(b"", "f")

    with pytest.raises(NotADirectoryError):
        node.add_child(BundleNode.regular_file(b"", "g"))


@pytest.mark.parametrize("name", [None, "", ".", "..", "a/b", "nul\0"])
def test_add_child_rejects_bad_names(name: str | None) -> None:
    root = BundleNode.directory()

    with pytest.raises(ValueError):
        root.add_child(BundleNode.regular_file(b"", name))

    assert root.children == {}


def test_remove_child_by_name() -> None:
    root = BundleNode.directory()
    child = root.add_regular_file(b"1", "one.txt")

    root.remove_child(child)

    assert root.child_named("one.txt") is None


def test_remove_missing_child_is_noop() -> None:
    root = BundleNode.directory()
    root.add_regular_file(b"1", "one.txt")

    root.remove_child(BundleNode.regular_file(b"", "other.txt"))

    assert list(root.children or {}) == ["one.txt"]


def test_walk_yields_relative_paths_depth_first() -> None:
    root = BundleNode.directory(
        children=[
            BundleNode.regular_file(b"t", "Text.rtf"),
            BundleNode.directory(
                "Attachments",
                [BundleNode.regular_file(b"12", "b.bin"), BundleNode.regular_file(b"3", "a.bin")],
            ),
        ]
    )

    paths = [rel for rel, _node in root.walk()]

    assert paths == ["Attachments", "Attachments/a.bin", "Attachments/b.bin", "Text.rtf"]
    assert root.total_size() == 4


def test_same_structure_compares_names_and_contents() -> None:
    a = BundleNode.directory(children=[BundleNode.regular_file(b"x", "f")])
    b = BundleNode.directory("other-root-name", [BundleNode.regular_file(b"x", "f")])
    c = BundleNode.directory(children=[BundleNode.regular_file(b"y", "f")])

    assert a.same_structure(b)
    assert not a.same_structure(c)


def test_same_structure_recurses_into_directories() -> None:
    def tree(data: bytes) -> BundleNode:
        inner = BundleNode.directory("d", [BundleNode.regular_file(data, "f")])
        return BundleNode.directory(children=[inner])

    as_file = BundleNode.directory(children=[BundleNode.regular_file(b"1", "d")])

    assert tree(b"1").same_structure(tree(b"1"))
    assert not tree(b"1").same_structure(tree(b"2"))
    assert not tree(b"1").same_structure(as_file)
    assert not tree(b"1").same_structure(BundleNode.directory())


def test_attachment_ref_summarizes_directory() -> None:
    folder = BundleNode.directory(
        "drafts", [BundleNode.regular_file(b"abc", "one.txt"), BundleNode.regular_file(b"", "two")]
    )

    ref = AttachmentRef.from_node(folder)

    assert ref.name == "drafts"
    assert ref.kind is NodeKind.DIRECTORY
    assert ref.size == 3
    assert ref.entries == ("one.txt", "two")
