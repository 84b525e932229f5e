"""History command for viewing past operations.

This module provides the `mole history` command for viewing recorded
clean, uninstall and optimize runs.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Annotated

import typer

from mole.core.history import HistoryActionType, HistoryEntry, HistoryStore
from mole.utils.formatting import console, create_table, format_size, print_info

app = typer.Typer(
    name="history",
    help="View history of cleanups, uninstalls and maintenance runs.",
    invoke_without_command=True,
)


class ActionChoice(str, Enum):
    """Action filter for the history listing."""

    CLEAN = "clean"
    UNINSTALL = "uninstall"
    OPTIMIZE = "optimize"
    ALL = "all"


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of entries to show.",
        ),
    ] = 20,
    action: Annotated[
        ActionChoice,
        typer.Option(
            "--action",
            "-a",
            help="Only show one kind of operation.",
            case_sensitive=False,
        ),
    ] = ActionChoice.ALL,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show recorded operations, newest first.

    Examples:
        mole history              # Show last 20 entries
        mole history -a clean     # Only cleanups
        mole history --json       # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    action_type = None if action == ActionChoice.ALL else HistoryActionType(action.value)
    entries = HistoryStore().get_history(limit=limit, action_type=action_type)

    if not entries:
        print_info("No history entries found.")
        return

    if json_output:
        console.print(json.dumps([entry.to_dict() for entry in entries], indent=2))
    else:
        _print_table(entries)


def _print_table(entries: list[HistoryEntry]) -> None:
    """Print history as Rich table."""
    table = create_table("History")
    table.add_column("ID", style="dim")
    table.add_column("Timestamp", style="info")
    table.add_column("Action", style="step")
    table.add_column("Result")
    table.add_column("Details", style="muted")

    for entry in entries:
        result = f"[success]{entry.summary}[/]" if entry.success else f"[warning]{entry.summary}[/]"
        table.add_row(
            entry.id[:8],
            _format_timestamp(entry.timestamp),
            entry.action_type.value,
            result,
            _describe(entry),
        )

    console.print(table)


def _describe(entry: HistoryEntry) -> str:
    """Summarize an entry's metadata in one short line."""
    meta = entry.metadata
    if entry.action_type == HistoryActionType.CLEAN:
        return f"freed {format_size(meta.get('freed_bytes', 0))}"
    if entry.action_type == HistoryActionType.UNINSTALL:
        return f"{meta.get('app', '?')}: {len(meta.get('removed', []))} item(s) trashed"
    steps = meta.get("steps", {})
    done = sum(1 for status in steps.values() if status == "ok")
    return f"{done}/{len(steps)} steps"


def _format_timestamp(iso_timestamp: str) -> str:
    """Format ISO timestamp as YYYY-MM-DD HH:MM."""
    dt = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
    return dt.strftime("%Y-%m-%d %H:%M")
