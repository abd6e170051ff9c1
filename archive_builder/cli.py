"""archive-builder CLI: pack directories into jar/zip/tar archives.

Commands:
- pack    build an archive straight from command-line file sets
- build   build from a JSON build file (archive.json)
- init    scaffold an archive.json
- list    show the entries of an archive
- verify  check an archive against a digest or its .sha256 sidecar
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from jsonschema import ValidationError as SchemaError
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from archive_builder.builder import builder_for
from archive_builder.core import build_from_file
from archive_builder.digest import verify_sha256, verify_sidecar, write_sidecar
from archive_builder.listing import list_entries
from archive_builder.logging import set_level
from archive_builder.validator import write_scaffold

app = typer.Typer(add_completion=False, help="Assemble deterministic jar/zip/tar archives")
console = Console()


def _fail(message: str) -> typer.Exit:
    rprint(f"[red]Error:[/red] {escape(message)}")
    return typer.Exit(code=1)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    set_level(logging.DEBUG if verbose else logging.INFO)


@app.command()
def pack(
    output: str = typer.Argument(..., help="Archive to write (parents are created)"),
    format_: str | None = typer.Option(
        None, "--format", help="jar | zip | tar | tar.gz (default: from suffix)"
    ),
    fileset: list[str] | None = typer.Option(
        None, "--fileset", help="Required source directory (repeatable)", show_default=False
    ),
    optional: list[str] | None = typer.Option(
        None, "--optional", help="Optional source directory (repeatable)", show_default=False
    ),
    directory: list[str] | None = typer.Option(
        None, "--dir", help="Extra directory entry (repeatable)", show_default=False
    ),
    digest: bool = typer.Option(False, "--sha256", help="Write a .sha256 sidecar"),
) -> None:
    try:
        builder = builder_for(output, format_)
        for root in fileset or []:
            builder.file_set(root)
        for root in optional or []:
            builder.optional_file_set(root)
        for name in directory or []:
            builder.directory(name)
        count = builder.build()
    except (OSError, ValueError) as e:
        raise _fail(str(e)) from e

    rprint(f"[green]Wrote[/green] {count} entries to {escape(str(builder.file))}")
    if digest:
        rprint(f"[green]Digest:[/green] {escape(str(write_sidecar(builder.file)))}")


@app.command()
def build(config: str = typer.Argument("archive.json", help="Path to the JSON build file")) -> None:
    try:
        report = build_from_file(Path(config))
    except SchemaError as e:
        raise _fail(f"invalid build file: {e.message}") from e
    except (OSError, ValueError, ValidationError) as e:
        raise _fail(str(e)) from e

    table = Table(title="Build Summary")
    table.add_column("Archive", style="cyan")
    table.add_column("Format")
    table.add_column("Entries", justify="right")
    table.add_column("Digest")
    table.add_row(
        escape(str(report.path)),
        report.format,
        str(report.entries),
        escape(str(report.digest_path)) if report.digest_path else "-",
    )
    console.print(table)


@app.command()
def init(
    path: str = typer.Argument(".", help="Directory to write archive.json into"),
    output: str = typer.Option("build/app.jar", help="Archive path, relative to the build file"),
    format_: str = typer.Option("jar", "--format", help="jar | zip | tar | tar.gz"),
    root: list[str] | None = typer.Option(
        None, "--root", help="Source directory (repeatable)", show_default=False
    ),
) -> None:
    try:
        target = write_scaffold(Path(path), output, format_, root or ["src"])
    except SchemaError as e:
        raise _fail(f"invalid options: {e.message}") from e
    rprint(f"[green]Scaffolded:[/green] {escape(str(target))}")


@app.command(name="list")
def list_(archive: str = typer.Argument(..., help="Archive to inspect")) -> None:
    try:
        entries = list_entries(Path(archive))
    except (OSError, ValueError) as e:
        raise _fail(str(e)) from e

    table = Table(title=escape(archive))
    table.add_column("Entry", style="cyan")
    table.add_column("Mode")
    table.add_column("Size", justify="right")
    for e in entries:
        table.add_row(escape(e.name), f"{e.mode:04o}", "-" if e.is_dir else str(e.size))
    console.print(table)


@app.command()
def verify(
    archive: str = typer.Argument(..., help="Archive to check"),
    sha256: str | None = typer.Argument(
        None, help="Expected digest (hex or sha256:<hex>); defaults to the sidecar"
    ),
) -> None:
    try:
        if sha256:
            verify_sha256(Path(archive), expected=sha256)
        else:
            verify_sidecar(Path(archive))
    except (OSError, ValueError) as e:
        raise _fail(str(e)) from e
    rprint("[green]SHA-256 verified.[/green]")


if __name__ == "__main__":
    app()
