"""CLI for inspecting, packing and unpacking .cpres bundles."""

import json
from pathlib import Path, PurePosixPath
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cpres.lib.config_manager import get_config_manager
from cpres.lib.fs_utils import move_dir_contents
from cpres.lib.logging_config import setup_logging

from .config import BundleConfig
from .errors import BundleError
from .importer import create_media_importer
from .models import BundleState, MediaFileRef, ThemeFile
from .reader import (
    ARRANGEMENT_ENTRY,
    MANIFEST_ENTRY,
    SLIDES_ENTRY,
    THEMES_PREFIX,
    create_bundle_reader,
    validate_manifest,
)
from .writer import create_bundle_writer

app = typer.Typer(help="Inspect and build .cpres presentation bundles")
console = Console()
err_console = Console(stderr=True)

PAYLOAD_DIRS = ("media", "fonts")


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ERROR"),
    json_logs: Optional[bool] = typer.Option(None, "--json-logs/--text-logs", help="Structured JSON log lines"),
):
    """Configure logging for every command."""
    settings = get_config_manager()
    setup_logging(
        "cpres",
        level=log_level or settings.get("CPRES_LOG_LEVEL"),
        json_format=settings.get("CPRES_LOG_JSON") if json_logs is None else json_logs,
    )


def _fail(error: object) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    raise typer.Exit(1)


@app.command()
def info(bundle: Path = typer.Argument(..., help="Bundle file")):
    """Show manifest details, themes and entries of a bundle."""
    reader = create_bundle_reader(BundleConfig.from_settings())
    try:
        parsed = reader.open(bundle)
        entries = reader.list_entries(bundle)
    except BundleError as e:
        _fail(e)

    manifest = json.loads(parsed.manifest)
    console.print(f"[bold cyan]{escape(str(bundle))}[/bold cyan]")
    console.print(f"  Format version: {escape(str(manifest['formatVersion']))}")
    console.print(f"  Presentation:   {escape(str(manifest['presentationId']))}")
    if "title" in manifest:
        console.print(f"  Title:          {escape(str(manifest['title']))}")
    console.print(f"  Themes:         {len(parsed.themes)}")
    for name in parsed.theme_filenames():
        console.print(f"    [dim]{escape(name)}[/dim]")

    payloads = [name for name in entries if name.split("/", 1)[0] in PAYLOAD_DIRS]
    console.print(f"  Media/fonts:    {len(payloads)}")
    for name in payloads:
        console.print(f"    [dim]{escape(name)}[/dim]")


@app.command()
def entries(bundle: Path = typer.Argument(..., help="Bundle file")):
    """List every entry name in archive order."""
    try:
        names = create_bundle_reader(BundleConfig.from_settings()).list_entries(bundle)
    except BundleError as e:
        _fail(e)

    for name in names:
        console.print(name, markup=False, highlight=False)


def _print_entries(entries: list, as_json: bool, kind_field: str) -> None:
    if as_json:
        console.print_json(json.dumps([entry.model_dump() for entry in entries]))
        return

    table = Table(title=f"Imported {len(entries)} file(s)")
    table.add_column("Filename", style="cyan")
    table.add_column("Bundle path")
    table.add_column(kind_field.replace("_", " ").title())
    table.add_column("Size", justify="right")
    table.add_column("SHA-256", style="dim")
    for entry in entries:
        table.add_row(
            escape(entry.filename),
            escape(entry.path),
            getattr(entry, kind_field),
            str(entry.byte_size),
            entry.sha256[:16],
        )
    console.print(table)


@app.command("import-media")
def import_media(
    files: list[Path] = typer.Argument(..., help="Media files to import"),
    as_json: bool = typer.Option(False, "--json", help="Print entries as JSON"),
):
    """Compute media entries (id, path, MIME, digest) for files."""
    try:
        entries = create_media_importer().import_media(files)
    except BundleError as e:
        _fail(e)
    _print_entries(entries, as_json, "media_type")


@app.command("import-fonts")
def import_fonts(
    files: list[Path] = typer.Argument(..., help="Font files to import"),
    as_json: bool = typer.Option(False, "--json", help="Print entries as JSON"),
):
    """Compute font entries for files."""
    try:
        entries = create_media_importer().import_fonts(files)
    except BundleError as e:
        _fail(e)
    _print_entries(entries, as_json, "format")


@app.command()
def extract(
    bundle: Path = typer.Argument(..., help="Bundle file"),
    entry: str = typer.Argument(..., help="Archive path, e.g. media/1a2b3c4d.jpg"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file (default: entry basename)"),
):
    """Extract a single media entry."""
    try:
        data = create_bundle_reader(BundleConfig.from_settings()).read_media(bundle, entry)
    except BundleError as e:
        _fail(e)

    target = output or Path(PurePosixPath(entry).name)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    console.print(f"[green]Wrote {len(data)} bytes to {escape(str(target))}[/green]")


def _state_from_directory(source: Path) -> BundleState:
    """Build a BundleState from an unpacked bundle directory."""
    manifest = (source / MANIFEST_ENTRY).read_text(encoding="utf-8")
    slides = (source / SLIDES_ENTRY).read_text(encoding="utf-8")
    arrangement = (source / ARRANGEMENT_ENTRY).read_text(encoding="utf-8")

    themes = [
        ThemeFile(filename=f"{THEMES_PREFIX}{path.name}", content=path.read_text(encoding="utf-8"))
        for path in sorted((source / THEMES_PREFIX).glob("*.json"))
    ]

    media = []
    for directory in PAYLOAD_DIRS:
        for path in sorted((source / directory).rglob("*")):
            if not path.is_file():
                continue
            bundle_path = path.relative_to(source).as_posix()
            media.append(MediaFileRef(id=path.stem, source_path=str(path.resolve()), bundle_path=bundle_path))

    return BundleState(manifest=manifest, slides=slides, arrangement=arrangement, themes=themes, media=media)


@app.command()
def pack(
    source: Path = typer.Argument(..., help="Directory laid out like a bundle"),
    output: Path = typer.Argument(..., help="Bundle file to write"),
):
    """Build a bundle from a directory (manifest.json, slides.json, ...)."""
    try:
        state = _state_from_directory(source)
        validate_manifest(state.manifest)
        create_bundle_writer(BundleConfig.from_settings()).save(output, state)
    except FileNotFoundError as e:
        _fail(f"{e.filename} not found")
    except BundleError as e:
        _fail(e)

    console.print(
        f"[green]Packed {len(state.themes)} theme(s) and {len(state.media)} payload(s) "
        f"into {escape(str(output))}[/green]"
    )


def _safe_member_path(destination: Path, name: str) -> Path:
    member = PurePosixPath(name)
    if member.is_absolute() or ".." in member.parts:
        raise typer.BadParameter(f"Refusing to extract unsafe entry name: {name}")
    return destination.joinpath(*member.parts)


@app.command()
def unpack(
    bundle: Path = typer.Argument(..., help="Bundle file"),
    destination: Path = typer.Argument(..., help="Directory to extract into"),
):
    """Validate a bundle and extract every entry into a directory."""
    reader = create_bundle_reader(BundleConfig.from_settings())
    try:
        reader.open(bundle)
        with reader.codec.open_reader(bundle) as archive:
            names = archive.names()
            for name in names:
                target = _safe_member_path(destination, name)
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(archive.read_bytes(name))
    except BundleError as e:
        _fail(e)

    console.print(f"[green]Extracted {len(names)} entries to {escape(str(destination))}[/green]")


@app.command("merge-dir")
def merge_dir(
    source: Path = typer.Argument(..., help="Directory to move from"),
    destination: Path = typer.Argument(..., help="Directory to merge into"),
):
    """Move a directory's contents into another, replacing same-named files."""
    if destination.resolve().is_relative_to(source.resolve()):
        _fail(f"{destination} cannot be inside {source}")
    try:
        move_dir_contents(source, destination)
    except OSError as e:
        _fail(e)

    console.print(f"[green]Merged {escape(str(source))} into {escape(str(destination))}[/green]")


if __name__ == "__main__":
    app()
