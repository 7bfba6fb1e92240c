"""
CLI Main - Typer command-line interface.
========================================

Commands:
- run: Fetch, correlate and write all course records
- check: Probe the configured Docebo instance
- info: Show effective configuration
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from docebo_source.shared.logging import get_logger

logger = get_logger(__name__)

app = typer.Typer(
    name="docebo-source",
    help="""Docebo Source - course records from Docebo catalogs.

COMMANDS OVERVIEW:

  run     Fetch catalogs, course details and related courses, write records
  check   Probe the Docebo instance with the configured base url
  info    Show effective configuration

QUICK START:

  docebo-source check --base-url https://acme.docebosaas.com
  docebo-source run --base-url https://acme.docebosaas.com -c 7 -c 12
""",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()


def _resolve_options(
    base_url: Optional[str],
    catalogs: Optional[list[str]],
    related_links: Optional[int],
):
    """Merge command line overrides into the configured source options."""
    from docebo_source.shared.config import SourceOptions, get_settings

    source = get_settings().get_effective_source()
    overrides = {}
    if base_url:
        overrides["base_url"] = base_url
    if catalogs:
        overrides["catalog_ids"] = catalogs
    if related_links is not None:
        overrides["related_links"] = related_links
    return SourceOptions.model_validate({**source.model_dump(), **overrides})


def _setup_logging(verbose: bool) -> None:
    from docebo_source.shared.config import get_settings
    from docebo_source.shared.logging import setup_logging

    settings = get_settings()
    setup_logging(
        level="DEBUG" if verbose else settings.get_effective_log_level(),
        use_rich=settings.logging.rich_console,
        log_file=settings.logging.file or None,
        log_format=settings.logging.format,
        force=True,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Run Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def run(
    base_url: Optional[str] = typer.Option(
        None, "--base-url", "-u", help="Docebo instance url (overrides config)."
    ),
    catalogs: Optional[list[str]] = typer.Option(
        None, "--catalog", "-c", help="Catalog id to aggregate. Repeat for several."
    ),
    related_links: Optional[int] = typer.Option(
        None, "--related-links", "-r", help="Page size of the related courses request."
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="JSONL file for the course records."
    ),
    max_retries: Optional[int] = typer.Option(
        None, "--max-retries", help="Retries per request after the first attempt."
    ),
    initial_delay: Optional[float] = typer.Option(
        None, "--initial-delay", help="Seconds before the first retry, doubled each time."
    ),
    probe: bool = typer.Option(
        True, "--check/--no-check", help="Probe the instance before running."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
):
    """
    Fetch all catalogs and write one record per active course.

    Exits with status 1 on a configuration error or when no active
    catalog entry was found.
    """
    from docebo_source.ingestion.pipeline import run_source
    from docebo_source.shared.config import check_availability, get_settings, validate_options
    from docebo_source.shared.errors import ConfigurationError, EmptyCatalogError
    from docebo_source.sinks import JsonlSink

    _setup_logging(verbose)
    settings = get_settings()

    try:
        options = validate_options(_resolve_options(base_url, catalogs, related_links))
        if probe:
            check_availability(options.base_url, timeout=settings.fetch.timeout)
    except (ConfigurationError, ValueError) as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)

    records_path = output or settings.records_path
    fetch_config = settings.fetch.model_copy(
        update={
            k: v
            for k, v in {"max_retries": max_retries, "initial_delay": initial_delay}.items()
            if v is not None
        }
    )

    console.print(Panel(
        f"Base url: {options.base_url}\n"
        f"Catalogs: {', '.join(str(c) for c in options.catalog_ids) or '(none)'}\n"
        f"Related links: {options.related_links}\n"
        f"Retries: {fetch_config.max_retries} (initial delay {fetch_config.initial_delay}s)\n"
        f"Output: {records_path}",
        title="Docebo Source Run",
    ))

    sink = JsonlSink(records_path)
    try:
        report = run_source(options, sink, fetch_config=fetch_config)
    except EmptyCatalogError as e:
        console.print(f"[red]Run aborted:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title="Run Summary")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    for catalog_id, state in report.catalogs.items():
        table.add_row(f"Catalog {catalog_id}", state)
    table.add_row("Records retrieved", str(report.records_retrieved))
    table.add_row("Active entries", str(report.active_entries))
    table.add_row("Course details", str(report.details_loaded))
    table.add_row("Related lists", str(report.related_loaded))
    table.add_row("Failed details", ", ".join(report.detail_failures) or "-")
    table.add_row("Failed related", ", ".join(report.related_failures) or "-")
    table.add_row("Records written", str(report.records_emitted))
    console.print(table)


# ─────────────────────────────────────────────────────────────────────────────
# Check Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def check(
    base_url: Optional[str] = typer.Option(
        None, "--base-url", "-u", help="Docebo instance url (overrides config)."
    ),
):
    """Probe the Docebo instance and report whether it is reachable."""
    from docebo_source.shared.config import check_availability, get_settings, validate_options
    from docebo_source.shared.errors import ConfigurationError

    settings = get_settings()
    try:
        options = validate_options(_resolve_options(base_url, None, None))
        check_availability(options.base_url, timeout=settings.fetch.timeout)
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Docebo instance reachable:[/green] {options.base_url}")


# ─────────────────────────────────────────────────────────────────────────────
# Info Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def info():
    """Show version and effective configuration."""
    from docebo_source import __version__
    from docebo_source.shared.config import DEFAULT_CONFIG_FILE, get_settings

    settings = get_settings()
    source = settings.get_effective_source()

    console.print(Panel(
        f"[bold]Docebo Source[/bold]\n"
        f"Version: {__version__}\n"
        f"Config: {DEFAULT_CONFIG_FILE}",
        title="Info",
    ))

    table = Table()
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("base_url", source.base_url or "(not set)")
    table.add_row("catalog_ids", ", ".join(str(c) for c in source.catalog_ids) or "(none)")
    table.add_row("related_links", str(source.related_links))
    table.add_row("max_retries", str(settings.fetch.max_retries))
    table.add_row("initial_delay", f"{settings.fetch.initial_delay}s")
    table.add_row("timeout", f"{settings.fetch.timeout}s")
    table.add_row("records_file", str(settings.records_path))
    table.add_row("log_level", settings.get_effective_log_level())
    console.print(table)


# ─────────────────────────────────────────────────────────────────────────────
# Entry Point
# ─────────────────────────────────────────────────────────────────────────────


def cli():
    """CLI entry point."""
    app()


if __name__ == "__main__":
    cli()
