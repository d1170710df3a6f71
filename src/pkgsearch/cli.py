"""Command line interface for pkgsearch."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.table import Table

from pkgsearch.config import AppConfig
from pkgsearch.errors import InvalidArgument, InvalidRecord, RefreshFailed
from pkgsearch.service import SearchService
from pkgsearch.utils.files import iter_record_files, load_records
from pkgsearch.web.app import app as web_app

LOGGER = logging.getLogger(__name__)

console = Console()
app = typer.Typer(help="pkgsearch - ranked search over package records")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _config(db: Path | None) -> AppConfig:
    return AppConfig(db_path=db if db is not None else AppConfig().db_path)


@app.command()
def add(
    inputs: List[Path] = typer.Argument(
        ..., help="JSON Lines files (or directories of them) with package records.", resolve_path=True
    ),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Load package records into the source store."""
    _setup_logging(verbose)
    record_files = list(iter_record_files(inputs))
    if not record_files:
        console.print("[yellow]No record files found.[/yellow]")
        return

    service = SearchService.from_config(_config(db), Path.cwd())
    counts = {"inserted": 0, "updated": 0, "skipped": 0, "invalid": 0}
    try:
        for path in record_files:
            for record in load_records(path):
                try:
                    counts[service.insert(record)] += 1
                except InvalidRecord as exc:
                    LOGGER.warning("Rejected record from %s: %s", path, exc)
                    counts["invalid"] += 1
    finally:
        service.close()

    console.print(
        f"Inserted: {counts['inserted']}, updated: {counts['updated']}, "
        f"skipped: {counts['skipped']}, invalid: {counts['invalid']}"
    )


@app.command()
def refresh(
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Rebuild the search index from the store and report what was indexed."""
    _setup_logging(verbose)
    service = SearchService.from_config(_config(db), Path.cwd())
    try:
        stats = service.refresh()
    except RefreshFailed as exc:
        console.print(f"[red]Refresh failed:[/red] {exc}")
        raise typer.Exit(code=1)
    finally:
        service.close()

    console.print(
        f"Generation {stats.generation}: indexed {stats.indexed}, "
        f"skipped {stats.skipped} in {stats.duration:.2f}s"
    )


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    limit: int = typer.Option(AppConfig().default_limit, help="Number of results to display"),
    offset: int = typer.Option(0, help="Number of ranked results to skip"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Build the index and run a ranked search."""
    _setup_logging(verbose)
    config = _config(db)
    resolved_db = config.resolve_db_path(Path.cwd())
    if not resolved_db.exists():
        raise typer.BadParameter(f"Database not found: {resolved_db}")

    service = SearchService.from_config(config, Path.cwd())
    try:
        service.refresh()
        page = service.search(query, limit=limit, offset=offset)
    except InvalidArgument as exc:
        raise typer.BadParameter(str(exc)) from exc
    except RefreshFailed as exc:
        console.print(f"[red]Refresh failed:[/red] {exc}")
        raise typer.Exit(code=1)
    finally:
        service.close()

    if not page.results:
        console.print(f"[yellow]No matches found.[/yellow] ({page.total} total)")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Rank")
    table.add_column("Package")
    table.add_column("Version")
    table.add_column("Imported by")
    table.add_column("Synopsis")

    for result in page.results:
        table.add_row(
            f"{result.rank:.4f}",
            result.package_path,
            result.version,
            str(result.num_imported_by),
            result.synopsis[:120],
        )

    console.print(table)
    console.print(f"Showing {page.offset + 1}-{page.offset + len(page.results)} of {page.total}")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Start the HTTP search API."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - defensive
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    config = _config(db)
    resolved_db = config.resolve_db_path(Path.cwd())
    if not resolved_db.exists():
        console.print("[yellow]Warning: database not found, the index will start empty.[/yellow]")

    web_app.state.config = config
    console.print(f"Starting search API on http://{host}:{port} (database: {resolved_db})")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
