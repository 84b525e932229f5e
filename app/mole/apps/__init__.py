"""Application discovery and removal.

This module enumerates installed application bundles, resolves their
bundle identifiers and residual files, and moves them to the trash.
"""

from mole.apps.inventory import ApplicationInventory
from mole.apps.models import AppRecord, RemovalResult
from mole.apps.remover import ApplicationRemovalEngine

__all__ = [
    "AppRecord",
    "ApplicationInventory",
    "ApplicationRemovalEngine",
    "RemovalResult",
]
