"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from mole import __version__
from mole.cli.commands import apps, auth, clean, config, history, optimize, scan
from mole.utils.formatting import err_console

# Create main Typer app
app = typer.Typer(
    name="mole",
    help="Reclaim disk space and keep macOS tidy.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"mole version {__version__}")
        raise typer.Exit()


def setup_logging(verbose: bool) -> None:
    """Route log records to stderr through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=verbose)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress progress output.",
        ),
    ] = False,
) -> None:
    """mole - Reclaim disk space and keep macOS tidy.

    Scan and clean caches and logs, uninstall applications together with
    their leftovers, and run routine maintenance.
    """
    setup_logging(verbose)

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands
app.add_typer(scan.app, name="scan")
app.add_typer(clean.app, name="clean")
app.add_typer(apps.app, name="apps")
app.add_typer(optimize.app, name="optimize")
app.add_typer(auth.app, name="auth")
app.add_typer(config.app, name="config")
app.add_typer(history.app, name="history")


if __name__ == "__main__":
    app()
