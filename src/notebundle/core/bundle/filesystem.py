"""Read bundle trees from disk and write them back.

These two functions are the only places that touch the filesystem for a
package; the document layer works on ``BundleNode`` trees only.
"""

import os
import shutil
import stat
import tempfile
from pathlib import Path

from loguru import logger

from notebundle.models.bundle import BundleNode


def read_from_external_tree(path: str | Path) -> BundleNode:
    """Build an in-memory tree mirroring the file or directory at path.

    Everything is read eagerly; no file handle outlives this call.
    Symlinks are followed.

    Raises:
        OSError: path does not exist or something under it is unreadable.
    """
    p = Path(path)
    if p.is_dir():
        node = BundleNode.directory(p.name)
        with os.scandir(p) as entries:
            names = sorted(entry.name for entry in entries)
        for name in names:
            node.add_child(read_from_external_tree(p / name))
        return node

    with open(p, "rb") as f:
        contents = f.read()
    return BundleNode.regular_file(contents, p.name)


def _flatten(node: BundleNode, target: Path) -> int:
    """Write node's children into the existing directory target. Returns file count."""
    written = 0
    for child in node.sorted_children():
        dest = target / (child.preferred_name or "")
        if child.is_directory:
            dest.mkdir()
            written += _flatten(child, dest)
        else:
            with open(dest, "wb") as f:
                f.write(child.contents or b"")
            written += 1
    return written


def _target_mode(dest: Path, *, directory: bool) -> int:
    """Permission bits for a new file or directory that replaces dest.

    An existing destination of the same kind keeps its mode; otherwise the
    process umask applies, as it would for a plain open() or mkdir().
    """
    if dest.exists() and dest.is_dir() == directory:
        return stat.S_IMODE(dest.stat().st_mode)
    umask = os.umask(0)
    os.umask(umask)
    return (0o777 if directory else 0o666) & ~umask


def write_to_external_path(node: BundleNode, path: str | Path) -> None:
    """Write node to path, replacing whatever is there.

    A directory node is first written into a staging directory beside path and
    then swapped into place, so a failure (disk full, permissions, ...) leaves
    the previous package untouched. The staging directory is removed and the
    underlying ``OSError`` re-raised.
    """
    dest = Path(path)
    dest.parent.mkdir(parents=True, exist_ok=True)

    if node.is_regular_file:
        mode = _target_mode(dest, directory=False)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.name}.", dir=dest.parent)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(node.contents or b"")
            os.chmod(tmp_name, mode)
            if dest.is_dir():
                shutil.rmtree(dest)
            os.replace(tmp_name, dest)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Wrote file {} ({} bytes)", dest, len(node.contents or b""))
        return

    staging = Path(tempfile.mkdtemp(prefix=f".{dest.name}.", suffix=".tmp", dir=dest.parent))
    try:
        written = _flatten(node, staging)
        staging.chmod(_target_mode(dest, directory=True))
    except OSError:
        shutil.rmtree(staging, ignore_errors=True)
        raise

    backup: Path | None = None
    if dest.exists() or dest.is_symlink():
        backup = staging.with_suffix(".old")
        os.replace(dest, backup)
    try:
        os.replace(staging, dest)
    except OSError:
        if backup is not None:
            os.replace(backup, dest)
        shutil.rmtree(staging, ignore_errors=True)
        raise

    if backup is not None:
        if backup.is_dir() and not backup.is_symlink():
            shutil.rmtree(backup)
        else:
            backup.unlink()
    logger.debug("Wrote package {} ({} files)", dest, written)
