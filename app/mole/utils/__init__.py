"""Utility modules for mole.

This module exports commonly used utility functions.
"""

from mole.utils.formatting import (
    abbreviate_home,
    console,
    err_console,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from mole.utils.shell import CommandResult

__all__ = [
    "CommandResult",
    "abbreviate_home",
    "console",
    "err_console",
    "format_size",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]
