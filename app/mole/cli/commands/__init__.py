"""CLI commands for mole.

This package contains all subcommand implementations.
"""

from mole.cli.commands import apps, auth, clean, config, history, optimize, scan

__all__ = ["apps", "auth", "clean", "config", "history", "optimize", "scan"]
