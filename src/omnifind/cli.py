"""Command line interface for OmniFind."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from omnifind.config import AppConfig
from omnifind.models import ScanProgress, ScanState, SearchFilters
from omnifind.preview import UnreadableFile
from omnifind.scan.coordinator import ScanSummary
from omnifind.service import FileSearchService
from omnifind.web.app import create_app


console = Console()
app = typer.Typer(help="OmniFind - scan every drive and search file names instantly")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ("KB", "MB"):
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


class ConsoleSink:
    """Prints scan notifications with rich."""

    def __init__(self, out: Console) -> None:
        self.out = out

    def scan_log(self, message: str) -> None:
        self.out.print(f"[dim]{message}[/dim]")

    def scan_status(self, state: ScanState) -> None:
        self.out.print(f"Status: [bold]{ScanState(state).value}[/bold]")

    def scan_progress(self, progress: ScanProgress) -> None:
        if progress.files_found_on_root is not None:
            self.out.print(
                f"[green]{progress.current_root}[/green] "
                f"({progress.root_index}/{progress.total_roots}): {progress.files_found_on_root} files"
            )


def _build_service(roots: Optional[List[Path]], *, quiet: bool = False) -> FileSearchService:
    config = AppConfig(roots=roots or None)
    sinks = [] if quiet else [ConsoleSink(console)]
    return FileSearchService(config, sinks=sinks)


def _run_scan(service: FileSearchService) -> ScanSummary:
    summary = service.run_scan()
    if summary.aborted:
        console.print("[red]Scan aborted, see the log above.[/red]")
        raise typer.Exit(code=1)
    return summary


@app.command()
def scan(
    roots: Optional[List[Path]] = typer.Argument(
        None, help="Directories to scan (default: every drive).", resolve_path=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Scan drives or directories and report how many files were catalogued."""
    _setup_logging(verbose)
    service = _build_service(roots)
    summary = _run_scan(service)

    for root, error in summary.errors.items():
        console.print(f"[yellow]{root}: {error}[/yellow]")
    console.print(
        f"Catalogued [bold]{summary.catalogue_size}[/bold] files from "
        f"{len(summary.roots)} root(s) in {summary.duration:.2f}s"
    )


@app.command()
def search(
    query: str = typer.Argument(..., help="Substring to match against name or path"),
    roots: Optional[List[Path]] = typer.Argument(
        None, help="Directories to scan (default: every drive).", resolve_path=True
    ),
    ext: Optional[str] = typer.Option(None, "--ext", help="Only files with this extension"),
    min_size: Optional[int] = typer.Option(None, "--min-size", min=0, help="Minimum size in bytes"),
    max_size: Optional[int] = typer.Option(None, "--max-size", min=0, help="Maximum size in bytes"),
    content: bool = typer.Option(False, "--content", help="Search inside file contents instead of names"),
    limit: int = typer.Option(50, help="Number of results to display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Scan, then run a name, filtered or content search."""
    _setup_logging(verbose)
    service = _build_service(roots, quiet=not verbose)
    _run_scan(service)

    filtered = not (ext is None and min_size is None and max_size is None)
    filters = SearchFilters(extension=ext, min_size=min_size, max_size=max_size) if filtered else None
    if content:
        results = service.content_search(query, filters)
    elif filters is None:
        results = service.basic_search(query)
    else:
        results = service.advanced_search(query, filters)

    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Name")
    table.add_column("Size", justify="right")
    table.add_column("Modified")
    table.add_column("Path")
    if content:
        table.add_column("Line", justify="right")
        table.add_column("Text")

    for result in results[:limit]:
        row = [
            result.name,
            _format_size(result.size),
            result.modified_time.strftime("%Y-%m-%d %H:%M"),
            result.file_path,
        ]
        if content:
            row += [str(result.line_number), escape((result.content or "").strip())]
        table.add_row(*row)

    console.print(table)
    if len(results) > limit:
        console.print(f"[dim]Showing {limit} of {len(results)} results.[/dim]")


@app.command()
def preview(
    path: Path = typer.Argument(..., help="File to preview"),
    highlight: Optional[str] = typer.Option(None, "--highlight", help="Text to mark in the preview"),
) -> None:
    """Print a text file, optionally marking a query."""
    service = FileSearchService()
    try:
        content = service.preview_file(path)
    except UnreadableFile as exc:
        raise typer.BadParameter(f"{path}: {exc}") from exc
    if highlight:
        content = service.highlight_content(content, highlight)
    console.print(content, markup=False, highlight=False)


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    roots: Optional[List[Path]] = typer.Option(None, "--root", help="Directories to scan instead of every drive"),
) -> None:
    """Start the HTTP API."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - defensive
        raise typer.BadParameter(
            "uvicorn is not installed. Install it with \"python -m pip install uvicorn\""
        ) from exc

    service = _build_service(roots, quiet=True)
    console.print(f"Starting OmniFind API on http://{host}:{port}")
    uvicorn.run(
        create_app(service),
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":  # pragma: no cover
    app()
