"""Disk space reclamation: path catalog, scan and clean engines.

This module classifies candidate directories into user-writable and
system-owned tiers, measures reclaimable bytes and deletes their
contents.
"""

from mole.cleaner.catalog import SYSTEM_ALLOWLIST, ReclaimPath, Tier, default_catalog
from mole.cleaner.operator import CleanEngine, CleanResult, build_system_command
from mole.cleaner.scanner import ScanEngine, ScanPhase, ScanResult, truncate_path

__all__ = [
    "SYSTEM_ALLOWLIST",
    "CleanEngine",
    "CleanResult",
    "ReclaimPath",
    "ScanEngine",
    "ScanPhase",
    "ScanResult",
    "Tier",
    "build_system_command",
    "default_catalog",
    "truncate_path",
]
