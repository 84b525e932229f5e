"""Clean command implementation.

Deletes cache and log content in both tiers. When the system tier needs
the administrator password, the user is asked for it and the clean is
run once more.
"""

import asyncio
from typing import Annotated

import typer

from mole.cleaner.operator import CLEANED, CleanEngine, CleanResult
from mole.cli.types import build_services, follow_progress, prompt_for_credential, record_history
from mole.core.history import HistoryActionType
from mole.utils.formatting import console, format_size, print_info, print_success, print_warning

app = typer.Typer(
    help="Delete reclaimable caches and logs.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def clean(
    ctx: typer.Context,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
    no_input: Annotated[
        bool,
        typer.Option("--no-input", help="Never prompt for the administrator password."),
    ] = False,
) -> None:
    """Delete caches and logs in your Library and the system allow-list.

    Examples:
        mole clean             # Confirm, then clean
        mole clean -y --no-input
    """
    if ctx.invoked_subcommand is not None:
        return

    quiet = bool(ctx.obj and ctx.obj.get("quiet"))

    if not yes:
        confirmed = typer.confirm("Delete caches and logs?", default=False)
        if not confirmed:
            print_info("Aborted.")
            raise typer.Exit(code=0)

    services = build_services()
    engine = CleanEngine(services.elevation, min_duration=services.config.min_clean_seconds)

    with follow_progress(engine.state, quiet):
        result = asyncio.run(engine.clean())
    freed = result.freed_bytes

    if result.needs_authorization:
        print_warning(engine.state.log.value)
        if prompt_for_credential(services, no_input=no_input):
            engine.reset()
            with follow_progress(engine.state, quiet):
                result = asyncio.run(engine.clean())
            freed += result.freed_bytes

    summary = engine.state.log.value
    _print_result(result, summary, freed)

    success = summary == CLEANED
    record_history(
        HistoryActionType.CLEAN,
        summary,
        success=success,
        metadata={
            "freed_bytes": freed,
            "system_cleaned": result.system_cleaned,
            "errors": len(result.errors),
        },
    )

    if not success:
        raise typer.Exit(code=1)


def _print_result(result: CleanResult, summary: str, freed: int) -> None:
    """Print the freed total and any skipped items."""
    if result.errors:
        console.print(f"[muted]Skipped {len(result.errors)} item(s) that could not be removed[/]")

    if summary == CLEANED:
        print_success(f"Cleaned: freed [reclaimed]{format_size(freed)}[/]")
    else:
        print_warning(f"{summary} (freed {format_size(freed)} from your Library)")
