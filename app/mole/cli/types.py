"""Shared types and utilities for CLI commands.

This module wires the engines together from the user's configuration and
provides the helpers every command needs: loading the config, following
an engine's progress line, asking for the administrator password and
recording history.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum

import typer

from mole.core.config import ConfigError, MoleConfig, load_config
from mole.core.credentials import CredentialStore
from mole.core.elevation import ElevatedRunner
from mole.core.executor import PrivilegedExecutor
from mole.core.history import HistoryActionType, HistoryStore, create_history_entry
from mole.core.state import OperationState
from mole.utils.formatting import console, print_error, print_warning


class OutputFormat(str, Enum):
    """Output format options for listing commands."""

    TABLE = "table"
    JSON = "json"


@dataclass(slots=True)
class Services:
    """Objects shared by every command of one CLI invocation.

    Attributes:
        config: Loaded configuration.
        store: Credential cache, loaded from disk.
        executor: Process spawner.
        elevation: Credential-or-prompt runner for elevated commands.
    """

    config: MoleConfig
    store: CredentialStore
    executor: PrivilegedExecutor
    elevation: ElevatedRunner


def get_config() -> MoleConfig:
    """Load the configuration, exiting with code 1 on error."""
    try:
        return load_config()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def build_services(config: MoleConfig | None = None) -> Services:
    """Create the credential store, executor and elevation runner.

    The persisted credential, if any, is loaded into memory.
    """
    config = config if config is not None else get_config()
    store = CredentialStore(persist=config.persist_credential)
    store.load()
    executor = PrivilegedExecutor(timeout=config.command_timeout_seconds)
    elevation = ElevatedRunner(
        store,
        executor,
        native_prompt_fallback=config.native_prompt_fallback,
    )
    return Services(config=config, store=store, executor=executor, elevation=elevation)


@contextmanager
def follow_progress(state: OperationState, quiet: bool = False) -> Iterator[None]:
    """Show an engine's progress line in a spinner while the block runs."""
    if quiet:
        yield
        return

    with console.status(state.log.value or "Working...", spinner="dots") as status:
        unsubscribe = state.log.subscribe(lambda line: status.update(line))
        try:
            yield
        finally:
            unsubscribe()


def prompt_for_credential(services: Services, no_input: bool = False) -> bool:
    """Ask for the administrator password and verify it.

    Args:
        services: Shared services holding the credential store.
        no_input: If True, never prompt and report failure.

    Returns:
        True if a verified credential is now cached.
    """
    if no_input:
        return False

    password = typer.prompt(
        "Administrator password", hide_input=True, default="", show_default=False
    )
    if not password:
        return False

    services.store.set(password)
    if asyncio.run(services.elevation.verify()):
        return True

    print_error("Password Incorrect/Expired")
    return False


def record_history(
    action_type: HistoryActionType,
    summary: str,
    *,
    success: bool = True,
    metadata: dict[str, object] | None = None,
) -> None:
    """Append a history entry, warning instead of failing."""
    entry = create_history_entry(
        action_type,
        summary,
        success=success,
        metadata=dict(metadata or {}),
    )
    try:
        HistoryStore().record(entry)
    except (OSError, RuntimeError) as e:
        print_warning(f"Could not record to history: {e}")
