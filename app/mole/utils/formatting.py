"""Console output helpers.

All human-facing output goes through the two themed consoles defined
here: ``console`` for results and ``err_console`` for warnings, errors and
log records.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from mole.core.theme import get_theme

_SIZE_UNITS = ("KB", "MB", "GB", "TB")


def _make_console(stderr: bool = False) -> Console:
    # Full hex colors on a terminal, Rich's own detection otherwise
    stream = sys.stderr if stderr else sys.stdout
    color_system = "truecolor" if stream.isatty() else None
    return Console(theme=get_theme(), stderr=stderr, color_system=color_system)


console = _make_console()
err_console = _make_console(stderr=True)


def format_size(size_bytes: int | None) -> str:
    """Render a byte count with binary units, e.g. ``1.5 KB``."""
    if not size_bytes:
        return "0 B"
    if abs(size_bytes) < 1024:
        return f"{size_bytes} B"

    size = float(size_bytes)
    unit = "B"
    for unit in _SIZE_UNITS:
        size /= 1024
        if abs(size) < 1024:
            break
    return f"{size:.1f} {unit}"


def abbreviate_home(path: str, home: str | None = None) -> str:
    """Replace a leading home directory with ``~``.

    Args:
        path: Absolute path.
        home: Home directory. Defaults to the current user's.

    Returns:
        The home-relative display path.
    """
    home = home if home is not None else str(Path.home())
    if home and (path == home or path.startswith(home + os.sep)):
        return "~" + path[len(home) :]
    return path


def create_table(title: str, *, zebra: bool = False) -> Table:
    """Create an empty table in the shared header and border styles."""
    return Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"] if zebra else None,
    )


def create_apps_table(title: str = "Installed Applications") -> Table:
    """Table with Name, Size and Location columns for the application list."""
    table = create_table(title, zebra=True)
    table.add_column("Name", style="app.name", no_wrap=True)
    table.add_column("Size", style="info", justify="right")
    table.add_column("Location", style="muted", overflow="ellipsis")
    return table


def print_info(message: str) -> None:
    console.print(f"[info]{message}[/]")


def print_success(message: str) -> None:
    console.print(f"[success]{message}[/]")


def print_warning(message: str) -> None:
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    err_console.print(f"[error]Error:[/] {message}")
