"""Optimize command implementation.

Runs the maintenance steps. Privileged steps that are waiting for the
administrator password are retried once after the user supplies it.
"""

import asyncio
from typing import Annotated

import typer

from mole.cli.types import build_services, follow_progress, prompt_for_credential, record_history
from mole.core.history import HistoryActionType
from mole.optimizer.steps import (
    MaintenanceResult,
    MaintenanceStepRunner,
    StepOutcome,
    StepStatus,
    default_steps,
)
from mole.utils.formatting import (
    console,
    create_table,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="Run system maintenance steps.",
    invoke_without_command=True,
)

_STATUS_STYLES = {
    StepStatus.OK: "[success]OK[/success]",
    StepStatus.FAILED: "[error]FAIL[/error]",
    StepStatus.NEEDS_AUTHORIZATION: "[warning]AUTH[/warning]",
    StepStatus.SKIPPED: "[muted]SKIP[/muted]",
}


@app.callback(invoke_without_command=True)
def optimize(
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
    """Flush DNS, purge memory, rebuild Launch Services and restart Finder.

    Examples:
        mole optimize
        mole optimize -y --no-input
    """
    if ctx.invoked_subcommand is not None:
        return

    quiet = bool(ctx.obj and ctx.obj.get("quiet"))

    if not yes:
        confirmed = typer.confirm("Run maintenance steps? Finder will restart.", default=False)
        if not confirmed:
            print_info("Aborted.")
            raise typer.Exit(code=0)

    services = build_services()
    runner = MaintenanceStepRunner(
        default_steps(services.elevation, services.executor),
        delay=services.config.step_delay_seconds,
    )

    with follow_progress(runner.state, quiet):
        result = asyncio.run(runner.run())

    if result.needs_authorization:
        print_warning(runner.state.log.value)
        if prompt_for_credential(services, no_input=no_input):
            result = _retry_privileged(runner, result, quiet)

    _print_outcomes(result)

    success = not result.needs_authorization and not result.failed
    summary = runner.state.log.value
    record_history(
        HistoryActionType.OPTIMIZE,
        summary,
        success=success,
        metadata={"steps": {o.name: o.status.value for o in result.outcomes}},
    )

    if result.needs_authorization:
        raise typer.Exit(code=1)
    if result.failed:
        print_warning(f"{len(result.failed)} step(s) failed")
        raise typer.Exit(code=1)
    print_success(summary)


def _retry_privileged(
    runner: MaintenanceStepRunner,
    first: MaintenanceResult,
    quiet: bool,
) -> MaintenanceResult:
    """Re-run only the privileged steps that did not get to run."""
    pending = {
        o.name
        for o in first.outcomes
        if o.status in (StepStatus.NEEDS_AUTHORIZATION, StepStatus.SKIPPED)
    }
    retry = MaintenanceStepRunner(
        [s for s in runner.steps if s.name in pending],
        delay=runner.delay,
    )
    with follow_progress(retry.state, quiet):
        second = asyncio.run(retry.run())

    runner.state.log.set(retry.state.log.value)
    by_name = {o.name: o for o in second.outcomes}
    merged: list[StepOutcome] = [by_name.get(o.name, o) for o in first.outcomes]
    return MaintenanceResult(outcomes=merged)


def _print_outcomes(result: MaintenanceResult) -> None:
    """Display per-step outcomes as a Rich table."""
    table = create_table("Maintenance")
    table.add_column("Status", width=6, justify="center")
    table.add_column("Step", style="step")
    table.add_column("Message", style="muted")

    for outcome in result.outcomes:
        table.add_row(_STATUS_STYLES[outcome.status], outcome.name, outcome.message or "")

    console.print(table)
