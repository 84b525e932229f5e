"""Application commands.

Lists installed applications and uninstalls them together with their
leftover support files.
"""

import asyncio
import json
from typing import Annotated

import typer

from mole.apps.inventory import ApplicationInventory
from mole.apps.models import AppRecord
from mole.apps.remover import ApplicationRemovalEngine
from mole.cli.types import OutputFormat, follow_progress, get_config, record_history
from mole.core.config import MoleConfig
from mole.core.history import HistoryActionType
from mole.utils.formatting import (
    abbreviate_home,
    console,
    create_apps_table,
    print_error,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="List and uninstall applications.",
    no_args_is_help=True,
)


def _inventory(config: MoleConfig) -> ApplicationInventory:
    return ApplicationInventory(config.applications_dir, max_workers=config.effective_workers)


@app.command("list")
def list_apps(
    ctx: typer.Context,
    sizes: Annotated[
        bool,
        typer.Option("--sizes", "-s", help="Compute bundle sizes (slower)."),
    ] = False,
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
    """List installed applications."""
    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    inventory = _inventory(get_config())

    with follow_progress(inventory.state, quiet or output_format == OutputFormat.JSON):
        records = asyncio.run(_discover(inventory, sizes))

    if not records:
        print_info(f"No applications found in {inventory.applications_dir}.")
        return

    if output_format == OutputFormat.JSON:
        _print_json(records)
        return

    table = create_apps_table()
    for record in records:
        table.add_row(record.name, record.size or "-", abbreviate_home(str(record.path)))
    console.print(table)
    console.print(f"\n[muted]{len(records)} applications[/]")


async def _discover(inventory: ApplicationInventory, sizes: bool) -> tuple[AppRecord, ...]:
    # Pending sizing tasks are cancelled when the event loop closes
    return await inventory.scan(wait_for_details=sizes)


@app.command()
def remove(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Application name, e.g. 'Slack'.")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Move an application and its leftover files to the trash."""
    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    config = get_config()
    inventory = _inventory(config)
    engine = ApplicationRemovalEngine(
        inventory,
        delay=config.removal_delay_seconds,
    )

    with follow_progress(inventory.state, quiet):
        asyncio.run(_discover(inventory, sizes=False))

    record = inventory.find(name)
    if record is None:
        print_error(f"Application not found: {name}")
        raise typer.Exit(code=1)

    bundle_id, targets = engine.plan(record)
    if not targets:
        print_error(f"{record.name} is not in {inventory.applications_dir}")
        raise typer.Exit(code=1)

    console.print(f"[app.name]{record.name}[/] [muted]({bundle_id or 'no bundle identifier'})[/]")
    for target in targets:
        console.print(f"  [muted]{abbreviate_home(str(target))}[/]")

    if not yes:
        confirmed = typer.confirm(
            f"\nMove {len(targets)} item(s) to the trash?",
            default=False,
        )
        if not confirmed:
            print_info("Aborted.")
            raise typer.Exit(code=0)

    with follow_progress(engine.state, quiet):
        result = asyncio.run(engine.remove(record))

    for failure in result.failed:
        print_warning(f"Could not remove {abbreviate_home(failure.path)}: {failure.error}")

    summary = engine.state.log.value
    record_history(
        HistoryActionType.UNINSTALL,
        summary,
        success=result.success,
        metadata={
            "app": record.name,
            "bundle_id": result.bundle_id,
            "removed": result.removed,
            "failed": [f.path for f in result.failed],
        },
    )

    if not result.success:
        print_error(summary)
        raise typer.Exit(code=1)
    print_success(summary)


def _print_json(records: tuple[AppRecord, ...]) -> None:
    """Display applications as JSON."""
    data = [
        {
            "name": r.name,
            "path": str(r.path),
            "size": r.size or None,
            "icon": str(r.icon) if r.icon else None,
        }
        for r in records
    ]
    console.print_json(json.dumps(data))
