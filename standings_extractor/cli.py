"""
CLI Interface
=============
Command-line interface for the standings extractor.

Usage:
    python -m standings_extractor parse <pdf_path> [options]
    python -m standings_extractor text <text_path> [options]
    python -m standings_extractor batch <directory> [options]
    python -m standings_extractor info <pdf_path>
    python -m standings_extractor serve [options]
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeRemainingColumn,
)
from rich.table import Table
from rich.text import Text

from . import __version__
from .engine import ExtractorConfig, StandingsExtractor
from .errors import StandingsError

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="standings-extractor")
def cli():
    """Standings Extractor: championship tables from race PDFs."""
    pass


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True))
@click.option(
    "--ignore-case",
    is_flag=True,
    default=False,
    help="Match class markers (LMP2, GT PRO) regardless of case",
)
@click.option(
    "--page-start",
    default=None,
    type=int,
    help="Start page (1-indexed)",
)
@click.option(
    "--page-end",
    default=None,
    type=int,
    help="End page (1-indexed, inclusive)",
)
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
@click.option(
    "--log-file",
    default=None,
    help="Path to log file",
)
@click.option(
    "--show-raw",
    is_flag=True,
    default=False,
    help="Print the extracted text stream",
)
@click.option(
    "--json-output",
    is_flag=True,
    default=False,
    help="Output only JSON result to stdout (for programmatic use)",
)
def parse(
    pdf_path: str,
    ignore_case: bool,
    page_start: int,
    page_end: int,
    log_level: str,
    log_file: str,
    show_raw: bool,
    json_output: bool,
):
    """Parse a standings PDF into structured rows."""

    if json_output:
        # Suppress console output for JSON mode
        log_level = "ERROR"

    page_range = None
    if page_start is not None or page_end is not None:
        page_range = (page_start or 1, page_end or 99999)

    config = ExtractorConfig(
        case_insensitive_detection=ignore_case,
        page_range=page_range,
        log_level=log_level,
        log_file=log_file,
    )

    if not json_output:
        _print_banner(os.path.basename(pdf_path))

    try:
        result = StandingsExtractor(config).parse(pdf_path)
    except (FileNotFoundError, StandingsError) as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    _emit(result, json_output, show_raw)


@cli.command()
@click.argument("text_path", type=click.Path(exists=True))
@click.option(
    "--file-name",
    default=None,
    help="File name used for class detection (defaults to the text file name)",
)
@click.option("--ignore-case", is_flag=True, default=False,
              help="Match class markers regardless of case")
@click.option("--log-level", default="INFO", help="Logging level")
@click.option("--json-output", is_flag=True, default=False,
              help="Output only JSON result to stdout")
def text(
    text_path: str,
    file_name: str,
    ignore_case: bool,
    log_level: str,
    json_output: bool,
):
    """Parse a previously extracted text dump."""

    if json_output:
        log_level = "ERROR"

    with open(text_path, "r", encoding="utf-8") as f:
        raw_text = f.read()

    config = ExtractorConfig(
        case_insensitive_detection=ignore_case,
        log_level=log_level,
    )

    if not json_output:
        _print_banner(os.path.basename(text_path))

    try:
        result = StandingsExtractor(config).parse_text(
            raw_text, file_name or os.path.basename(text_path)
        )
    except StandingsError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    _emit(result, json_output, show_raw=False)


@cli.command()
@click.argument("directory", type=click.Path(exists=True))
@click.option("--ignore-case", is_flag=True, default=False,
              help="Match class markers regardless of case")
@click.option("--log-level", default="WARNING", help="Logging level")
def batch(directory: str, ignore_case: bool, log_level: str):
    """Batch parse all PDFs in a directory."""

    pdf_files = sorted(Path(directory).glob("*.pdf"))

    if not pdf_files:
        console.print(f"[yellow]No PDF files found in: {directory}[/]")
        return

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Batch Standings Extractor[/]\n"
            f"[dim]Found {len(pdf_files)} PDFs in: {directory}[/]",
            border_style="cyan",
        )
    )
    console.print()

    config = ExtractorConfig(
        case_insensitive_detection=ignore_case,
        log_level=log_level,
    )
    extractor = StandingsExtractor(config)

    results = []
    errors = []

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Processing PDFs...", total=len(pdf_files))

        for pdf_file in pdf_files:
            progress.update(task, description=f"Parsing: {pdf_file.name}")

            try:
                results.append((pdf_file.name, extractor.parse(str(pdf_file))))
            except StandingsError as e:
                errors.append((pdf_file.name, e.message))

            progress.advance(task)

    _display_batch_summary(results, errors)

    if errors and not results:
        sys.exit(1)


@cli.command()
@click.option("--host", default="0.0.0.0", help="Server host")
@click.option("--port", default=5000, type=int, help="Server port")
@click.option("--debug", is_flag=True, default=False, help="Debug mode")
def serve(host: str, port: int, debug: bool):
    """Start the HTTP service used by the upload screen."""
    from .server import run_server

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Standings Extractor Service[/]\n"
            f"[dim]Starting on {host}:{port}[/]",
            border_style="cyan",
        )
    )
    console.print()

    run_server(host=host, port=port, debug=debug)


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True))
def info(pdf_path: str):
    """Display PDF file information."""

    import fitz

    with fitz.open(pdf_path) as doc:
        table = Table(title="PDF Information", border_style="cyan")
        table.add_column("Property", style="bold")
        table.add_column("Value")

        table.add_row("File", os.path.basename(pdf_path))
        table.add_row("Pages", str(doc.page_count))
        table.add_row(
            "File Size",
            f"{os.path.getsize(pdf_path) / 1024:.1f} KB",
        )

        metadata = doc.metadata or {}
        for key in ["title", "author", "subject", "creator", "producer"]:
            val = metadata.get(key, "")
            if val:
                table.add_row(key.title(), val)

    console.print()
    console.print(table)
    console.print()


# ─── Display Helpers ──────────────────────────────────────────────────────────


def _print_banner(name: str):
    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Standings Extractor v{__version__}[/]\n"
            f"[dim]Parsing: {name}[/]",
            border_style="cyan",
        )
    )
    console.print()


def _emit(result, json_output: bool, show_raw: bool):
    if json_output:
        # Output clean JSON to stdout
        print(json.dumps(
            result.model_dump(by_alias=True, mode="json"),
            indent=2,
            ensure_ascii=False,
        ))
        return

    if show_raw:
        console.print(Panel(Text(result.raw_text), title="Extracted Text"))

    _display_results(result)


def _display_results(result):
    """Display parsed standings in a formatted table."""
    detected = result.detected_class.value if result.detected_class else "(unknown)"

    table = Table(
        title=f"Standings: {detected}",
        border_style="cyan",
    )
    table.add_column("Rank", justify="right", style="bold")
    table.add_column("Car")
    table.add_column("Team")
    for column in ("Points", "Behind", "Starts", "Poles", "Wins", "Top5", "Top10"):
        table.add_column(column, justify="right")

    for s in result.standings:
        table.add_row(
            str(s.rank),
            s.car_number,
            s.team_name,
            str(s.points),
            str(s.behind),
            str(s.starts),
            str(s.poles),
            str(s.wins),
            str(s.top5),
            str(s.top10),
        )

    console.print(table)
    console.print()
    _display_validation_table(result.validation.model_dump())


def _display_validation_table(validation: dict):
    """Display the standings report as a rich table."""
    table = Table(title="Standings Report", border_style="green")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_column("Status", justify="center")

    def status_icon(count, threshold=0):
        if count <= threshold:
            return "[green]✓[/]"
        return "[red]✗[/]"

    total = validation.get("total_rows", 0)
    table.add_row(
        "Rows Decoded",
        str(total),
        "[green]✓[/]" if total > 0 else "[red]✗[/]",
    )

    skipped = validation.get("skipped_tokens", 0)
    table.add_row(
        "Tokens Skipped",
        str(skipped),
        "[green]✓[/]" if skipped == 0 else "[yellow]⚠[/]",
    )

    for label, key in [
        ("Missing Ranks", "missing_ranks"),
        ("Duplicate Ranks", "duplicate_ranks"),
        ("Duplicate Car Numbers", "duplicate_car_numbers"),
        ("Out of Order Ranks", "out_of_order_ranks"),
        ("Points Order Violations", "points_order_violations"),
    ]:
        values = validation.get(key, [])
        table.add_row(label, str(len(values)), status_icon(len(values)))

    console.print(table)
    console.print()


def _display_batch_summary(results, errors):
    """Display batch processing summary."""
    console.print()

    table = Table(title="Batch Processing Summary", border_style="cyan")
    table.add_column("PDF", style="bold")
    table.add_column("Class")
    table.add_column("Rows", justify="right")
    table.add_column("Skipped", justify="right")
    table.add_column("Status", justify="center")

    total_rows = 0

    for name, result in results:
        total_rows += len(result.standings)
        status = (
            "[green]✓[/]" if result.validation.is_consistent
            else "[yellow]⚠[/]"
        )
        table.add_row(
            name,
            result.detected_class.value if result.detected_class else "-",
            str(len(result.standings)),
            str(result.skipped_tokens),
            status,
        )

    for name, error in errors:
        table.add_row(name, "-", "-", "-", "[red]✗ FAILED[/]")

    console.print(table)
    console.print()
    console.print(
        f"[bold]Total:[/] {total_rows} standings from "
        f"{len(results)} PDFs, {len(errors)} failures"
    )
    for name, error in errors:
        console.print(f"[red]{name}:[/] {error}")
    console.print()


# ─── Entry point (for python -m standings_extractor.cli) ──────────────────────


if __name__ == "__main__":
    cli()
