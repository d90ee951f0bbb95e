"""CLI for note packages (create, show, attach, detach, set-text, list)."""

import json
from dataclasses import replace
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from notebundle.config import BUNDLE_SUFFIX, DOCUMENT_FILE, resolve_notes_directory
from notebundle.core.document.note import NoteDocument
from notebundle.core.document.summary import read_document_summary
from notebundle.errors import NoteDocumentError
from notebundle.logging_config import configure_logging
from notebundle.models.rich_text import RichText, TextAttributes

app = typer.Typer(help="Note packages: rich text with attachments, stored as a directory.")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


def _bundle_path(path: Path) -> Path:
    path = path.expanduser()
    if not path.suffix:
        path = path.with_suffix(BUNDLE_SUFFIX)
    return path


def _open(path: Path) -> NoteDocument:
    """Open a note package, exiting with an error message if it cannot be loaded."""
    try:
        return NoteDocument.open(path)
    except NoteDocumentError as e:
        logger.error("Cannot open {}: {}", path, e)
        raise typer.Exit(1) from e


def _write(document: NoteDocument, path: Path) -> None:
    try:
        document.write(path)
    except NoteDocumentError as e:
        logger.error("Cannot save {}: {}", path, e)
        raise typer.Exit(1) from e
    except OSError as e:
        logger.error("Cannot write {}: {}", path, e)
        raise typer.Exit(1) from e


def _styled(
    text: str, *, bold: bool, italic: bool, font: str | None, size: float | None
) -> RichText:
    attrs = TextAttributes(bold=bold, italic=italic)
    if font is not None:
        attrs = replace(attrs, font_family=font)
    if size is not None:
        attrs = replace(attrs, font_size=size)
    return RichText.plain(text, attrs)


@app.command()
def create(
    path: Path = typer.Argument(..., help="Package to create (.note is added if no suffix)"),
    text: Annotated[
        str | None,
        typer.Option("--text", "-t", help="Initial text of the note"),
    ] = None,
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing package"),
) -> None:
    """Create a new, empty note package."""
    target = _bundle_path(path)
    if target.exists() and not force:
        logger.error("{} already exists (use --force to overwrite)", target)
        raise typer.Exit(1)

    document = NoteDocument()
    if text:
        document.replace_text(RichText.plain(text))
    _write(document, target)
    typer.echo(f"Created {target}")


@app.command()
def show(
    path: Path = typer.Argument(..., help="Note package"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Print the text and attachments of a note."""
    target = _bundle_path(path)
    document = _open(target)
    refs = document.attachment_refs()

    if output_json:
        summary_node = document.document_tree.child_named(DOCUMENT_FILE)
        summary = None
        if summary_node is not None and summary_node.contents is not None:
            summary = read_document_summary(summary_node.contents)
        data = {
            "path": str(target),
            "text": document.text.text,
            "runs": [
                {
                    "text": run.text,
                    "bold": run.attributes.bold,
                    "italic": run.attributes.italic,
                    "underline": run.attributes.underline,
                    "strikethrough": run.attributes.strikethrough,
                    "font_family": run.attributes.font_family,
                    "font_size": run.attributes.font_size,
                }
                for run in document.text.runs
            ],
            "attachments": [
                {"name": r.name, "kind": r.kind.value, "size": r.size} for r in refs
            ],
            "summary": summary,
        }
        typer.echo(json.dumps(data, indent=2))
        return

    typer.echo(document.text.text)
    if refs:
        typer.echo(f"\n{len(refs)} attachment(s):")
        for r in refs:
            suffix = "/" if r.kind.value == "directory" else ""
            typer.echo(f"  {r.name}{suffix}  ({r.size} bytes)")


@app.command()
def attach(
    path: Path = typer.Argument(..., help="Note package"),
    files: list[Path] = typer.Argument(..., help="Files or directories to attach"),
) -> None:
    """Attach files to a note. Attachments with the same name are replaced."""
    target = _bundle_path(path)
    document = _open(target)
    for source in files:
        try:
            node = document.add_attachment(source)
        except NoteDocumentError as e:
            logger.error("Cannot attach {}: {}", source, e)
            raise typer.Exit(1) from e
        except OSError as e:
            logger.error("Cannot read {}: {}", source, e)
            raise typer.Exit(1) from e
        typer.echo(f"Attached {node.preferred_name}")
    _write(document, target)


@app.command()
def detach(
    path: Path = typer.Argument(..., help="Note package"),
    name: str = typer.Argument(..., help="Name of the attachment to remove"),
) -> None:
    """Remove an attachment from a note."""
    target = _bundle_path(path)
    document = _open(target)
    try:
        document.remove_attachment(name)
    except NoteDocumentError as e:
        logger.error("Cannot detach {!r}: {}", name, e)
        raise typer.Exit(1) from e
    _write(document, target)
    typer.echo(f"Removed {name}")


@app.command(name="set-text")
def set_text(
    path: Path = typer.Argument(..., help="Note package"),
    text: Annotated[
        str | None,
        typer.Argument(help="New text; read from --from-file if omitted"),
    ] = None,
    from_file: Annotated[
        Path | None,
        typer.Option("--from-file", "-F", help="Read plain text from this file"),
    ] = None,
    bold: bool = typer.Option(False, "--bold", "-b", help="Make the text bold"),
    italic: bool = typer.Option(False, "--italic", "-i", help="Make the text italic"),
    font: Annotated[
        str | None,
        typer.Option("--font", help="Font family"),
    ] = None,
    size: Annotated[
        float | None,
        typer.Option("--size", help="Font size in points"),
    ] = None,
) -> None:
    """Replace the text of a note."""
    if text is None and from_file is None:
        logger.error("Give the text as an argument or with --from-file")
        raise typer.Exit(1)
    if text is None and from_file is not None:
        try:
            text = from_file.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("Cannot read {}: {}", from_file, e)
            raise typer.Exit(1) from e

    target = _bundle_path(path)
    document = _open(target)
    document.replace_text(_styled(text, bold=bold, italic=italic, font=font, size=size))
    _write(document, target)
    typer.echo(f"Updated {target}")


@app.command(name="list")
def list_notes(
    notes_dir: Annotated[
        Path | None,
        typer.Option("--notes-dir", "-d", help="Directory with note packages"),
    ] = None,
) -> None:
    """List note packages in the notes directory."""
    directory = (notes_dir or resolve_notes_directory()).expanduser()
    if not directory.is_dir():
        logger.error("Notes directory not found: {}", directory)
        raise typer.Exit(1)

    bundles = sorted(p for p in directory.glob(f"*{BUNDLE_SUFFIX}") if p.is_dir())
    typer.echo(f"{len(bundles)} notes:\n")
    for bundle in bundles:
        try:
            document = NoteDocument.open(bundle)
        except NoteDocumentError as e:
            typer.echo(f"  {bundle.name}  [unreadable: {e.code.name}]")
            continue
        first_line = document.text.text.split("\n", 1)[0]
        count = len(document.attached_files() or [])
        typer.echo(f"  {bundle.name}  {first_line[:60]!r}  ({count} attachment(s))")
