"""Tests for reading and writing bundle trees on disk."""

import os
from pathlib import Path

import pytest

from notebundle.core.bundle import filesystem
from notebundle.core.bundle.filesystem import read_from_external_tree, write_to_external_path
from notebundle.models.bundle import BundleNode


def _make_tree(root: Path) -> None:
    (root / "Attachments" / "folder").mkdir(parents=True)
    (root / "Text.rtf").write_bytes(b"{\\rtf1 hi}")
    (root / "Attachments" / "photo.png").write_bytes(b"\x89PNG\x00\xff")
    (root / "Attachments" / "folder" / "inner.txt").write_text("inner")


def test_read_mirrors_directory_structure(tmp_path: Path) -> None:
    pkg = tmp_path / "a.note"
    _make_tree(pkg)

    node = read_from_external_tree(pkg)

    assert node.is_directory
    assert node.preferred_name == "a.note"
    assert node.child_named("Text.rtf").contents == b"{\\rtf1 hi}"  # type: ignore[union-attr]
    attachments = node.child_named("Attachments")
    assert attachments is not None and attachments.is_directory
    photo = attachments.child_named("photo.png")
    assert photo is not None and photo.contents == b"\x89PNG\x00\xff"
    folder = attachments.child_named("folder")
    assert folder.child_named("inner.txt").contents == b"inner"  # type: ignore[union-attr]


def test_read_single_file(tmp_path: Path) -> None:
    source = tmp_path / "notes.txt"
    source.write_bytes(b"plain")

    node = read_from_external_tree(source)

    assert node.is_regular_file
    assert node.preferred_name == "notes.txt"
    assert node.contents == b"plain"


def test_read_missing_path_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        read_from_external_tree(tmp_path / "missing.note")


def test_write_then_read_round_trips(tmp_path: Path) -> None:
    src = tmp_path / "src.note"
    _make_tree(src)
    tree = read_from_external_tree(src)

    write_to_external_path(tree, tmp_path / "copy.note")

    assert read_from_external_tree(tmp_path / "copy.note").same_structure(tree)


def test_write_replaces_existing_contents(tmp_path: Path) -> None:
    target = tmp_path / "a.note"
    _make_tree(target)
    (target / "stale.txt").write_text("old")

    tree = BundleNode.directory(children=[BundleNode.regular_file(b"new", "Text.rtf")])
    write_to_external_path(tree, target)

    assert sorted(p.name for p in target.iterdir()) == ["Text.rtf"]
    assert (target / "Text.rtf").read_bytes() == b"new"


def test_write_leaves_no_staging_directories(tmp_path: Path) -> None:
    tree = BundleNode.directory(children=[BundleNode.regular_file(b"x", "Text.rtf")])

    write_to_external_path(tree, tmp_path / "a.note")
    write_to_external_path(tree, tmp_path / "a.note")

    assert [p.name for p in tmp_path.iterdir()] == ["a.note"]


def test_write_failure_keeps_previous_package(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A failure while flattening propagates and leaves the old package intact."""
    target = tmp_path / "a.note"
    _make_tree(target)
    before = read_from_external_tree(target)

    def disk_full(node: BundleNode, dest: Path) -> int:
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(filesystem, "_flatten", disk_full)
    tree = BundleNode.directory(children=[BundleNode.regular_file(b"new", "Text.rtf")])

    with pytest.raises(OSError, match="No space left"):
        write_to_external_path(tree, target)

    assert read_from_external_tree(target).same_structure(before)
    assert [p.name for p in tmp_path.iterdir()] == ["a.note"]


def test_write_regular_file_node(tmp_path: Path) -> None:
    write_to_external_path(BundleNode.regular_file(b"data", "x.bin"), tmp_path / "out.bin")

    assert (tmp_path / "out.bin").read_bytes() == b"data"


@pytest.mark.skipif(os.geteuid() == 0, reason="root ignores directory permissions")
def test_read_unreadable_directory_raises(tmp_path: Path) -> None:
    pkg = tmp_path / "locked.note"
    pkg.mkdir()
    pkg.chmod(0)
    try:
        with pytest.raises(PermissionError):
            read_from_external_tree(pkg)
    finally:
        pkg.chmod(0o755)


@pytest.fixture
def umask_022():
    previous = os.umask(0o022)
    yield
    os.umask(previous)


def _mode(path: Path) -> int:
    return path.stat().st_mode & 0o777


@pytest.mark.usefixtures("umask_022")
def test_new_package_gets_umask_permissions(tmp_path: Path) -> None:
    tree = BundleNode.directory(children=[BundleNode.regular_file(b"x", "Text.rtf")])

    write_to_external_path(tree, tmp_path / "a.note")

    assert _mode(tmp_path / "a.note") == 0o755
    assert _mode(tmp_path / "a.note" / "Text.rtf") == 0o644


@pytest.mark.usefixtures("umask_022")
def test_rewrite_keeps_package_permissions(tmp_path: Path) -> None:
    target = tmp_path / "shared.note"
    _make_tree(target)
    target.chmod(0o775)
    tree = BundleNode.directory(children=[BundleNode.regular_file(b"new", "Text.rtf")])

    write_to_external_path(tree, target)

    assert _mode(target) == 0o775


@pytest.mark.usefixtures("umask_022")
def test_regular_file_node_gets_umask_permissions(tmp_path: Path) -> None:
    out = tmp_path / "out.bin"
    write_to_external_path(BundleNode.regular_file(b"data", "x.bin"), out)
    assert _mode(out) == 0o644

    out.chmod(0o600)
    write_to_external_path(BundleNode.regular_file(b"again", "x.bin"), out)
    assert _mode(out) == 0o600
