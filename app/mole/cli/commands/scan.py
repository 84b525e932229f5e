"""Scan command implementation.

Measures reclaimable cache and log space without deleting anything.
"""

import asyncio
import json
from typing import Annotated

import typer

from mole.cleaner.scanner import ScanEngine, ScanResult
from mole.cli.types import OutputFormat, follow_progress, get_config
from mole.utils.formatting import abbreviate_home, console, create_table, format_size

app = typer.Typer(
    help="Measure reclaimable cache and log space.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def scan(
    ctx: typer.Context,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
) -> None:
    """Scan caches and logs for reclaimable space.

    Examples:
        mole scan              # Show totals per location
        mole scan --format json
    """
    if ctx.invoked_subcommand is not None:
        return

    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    config = get_config()
    engine = ScanEngine(
        progress_interval=config.progress_interval,
        yield_seconds=config.scan_yield_seconds,
    )

    with follow_progress(engine.state, quiet or output_format == OutputFormat.JSON):
        result = asyncio.run(engine.start_scan())

    if output_format == OutputFormat.JSON:
        _print_json(result)
        return

    _print_table(result)
    console.print(f"\n[reclaimed]{format_size(result.total_bytes)}[/] reclaimable")


def _print_table(result: ScanResult) -> None:
    """Display per-root totals as a Rich table."""
    table = create_table("Reclaimable Space")
    table.add_column("Location", style="muted")
    table.add_column("Size", style="info", justify="right")

    for root, size in result.by_root.items():
        table.add_row(abbreviate_home(root), format_size(size))

    console.print(table)


def _print_json(result: ScanResult) -> None:
    """Display the scan result as JSON."""
    data = {
        "total_bytes": result.total_bytes,
        "entries_visited": result.entries_visited,
        "by_root": result.by_root,
    }
    console.print_json(json.dumps(data))
