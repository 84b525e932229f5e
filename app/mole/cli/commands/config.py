"""Configuration commands.

Shows the effective configuration and writes a default config file.
"""

from typing import Annotated

import tomli_w
import typer

from mole.cli.types import get_config
from mole.core.config import ConfigError, MoleConfig, config_to_dict, save_config
from mole.core.paths import get_config_path
from mole.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show or initialize the configuration file.",
    no_args_is_help=True,
)


@app.command()
def show() -> None:
    """Print the effective configuration as TOML."""
    config = get_config()
    path = get_config_path()
    source = str(path) if path.exists() else "defaults"
    console.print(f"[muted]# {source}[/]")
    console.print(tomli_w.dumps(config_to_dict(config)), markup=False, highlight=False)


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Write a config file with default values."""
    path = get_config_path()
    if path.exists() and not force:
        print_info(f"Config already exists: {path} (use --force to overwrite)")
        return

    try:
        saved = save_config(MoleConfig(), path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Wrote {saved}")
