"""Administrator credential commands.

The password is cached so that system cleanup and privileged maintenance
steps can run without asking again. It is stored owner-only and cleared
the first time it fails.
"""

import asyncio

import typer

from mole.cli.types import build_services
from mole.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Manage the cached administrator password.",
    no_args_is_help=True,
)


@app.command()
def login() -> None:
    """Ask for the administrator password, verify it and cache it."""
    services = build_services()
    password = typer.prompt("Administrator password", hide_input=True)

    services.store.set(password)
    if not asyncio.run(services.elevation.verify()):
        print_error("Password Incorrect/Expired")
        raise typer.Exit(code=1)

    print_success("Password verified and cached.")


@app.command()
def logout() -> None:
    """Forget the cached administrator password."""
    services = build_services()
    services.store.clear()
    print_info("Cached password removed.")


@app.command()
def status() -> None:
    """Show whether an administrator password is cached."""
    services = build_services()
    if services.store.is_cached:
        console.print(f"[success]cached[/] [muted]({services.store.path})[/]")
    else:
        console.print("[warning]not cached[/]")
