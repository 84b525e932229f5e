"""Reclaimable space cleaner.

Cleaning runs in two phases:

1. User tier: every immediate child of each existing user-tier root is
   removed directly. A child that cannot be removed is skipped.
2. System tier: one ``rm -rf <root>/*`` clause per existing allow-listed
   root, joined into a single command run with elevation. Without a
   usable credential this phase is deferred and the caller is asked for
   authorization.

Deletion is best-effort, never all-or-nothing.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import shutil
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from mole.cleaner.catalog import SYSTEM_ALLOWLIST, ReclaimPath, Tier, default_catalog
from mole.cleaner.walk import tree_size
from mole.core.elevation import AuthorizationRequired, ElevatedRunner
from mole.core.executor import ExecError
from mole.core.state import OperationState, Published

logger = logging.getLogger(__name__)

DEFAULT_MIN_DURATION = 1.0

COMMAND_SEPARATOR = "; "

CLEANED = "Cleaned"
REQUIRES_AUTHORIZATION = "Requires Authorization"
PASSWORD_REJECTED = "Password Incorrect/Expired"
SYSTEM_FAILED = "System Cleanup Failed"


@dataclass(slots=True)
class CleanResult:
    """Outcome of one clean.

    Attributes:
        user_bytes: Bytes freed from user-tier roots.
        system_bytes: Bytes freed from system-tier roots (measured before
            deletion; 0 when the phase was deferred or failed).
        system_cleaned: True if the elevated batch ran successfully.
        needs_authorization: True if the system phase waits for a credential.
        errors: Human-readable per-item failures.
    """

    user_bytes: int = 0
    system_bytes: int = 0
    system_cleaned: bool = False
    needs_authorization: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def freed_bytes(self) -> int:
        """Total bytes freed by this clean."""
        return self.user_bytes + self.system_bytes


def build_system_command(
    catalog: list[ReclaimPath],
    exists: Callable[[str], bool] = os.path.isdir,
) -> str | None:
    """Build the batched elevated delete-contents command.

    Only system-tier roots whose path appears verbatim in
    :data:`SYSTEM_ALLOWLIST` contribute a clause. Any other root is
    refused, so the command can never target an arbitrary location.

    Args:
        catalog: Catalog to take system-tier roots from.
        exists: Predicate deciding whether a root is present.

    Returns:
        The joined command, or None if no allow-listed root exists.
    """
    clauses: list[str] = []
    for reclaim in catalog:
        if reclaim.tier != Tier.SYSTEM:
            continue
        root = str(reclaim.root)
        if root not in SYSTEM_ALLOWLIST:
            logger.warning("Refusing to clean non-allow-listed system path: %s", root)
            continue
        if root in clauses or not exists(root):
            continue
        clauses.append(root)

    if not clauses:
        return None
    return COMMAND_SEPARATOR.join(f"rm -rf {shlex.quote(root)}/*" for root in clauses)


def remove_path(path: Path) -> None:
    """Remove a file, symlink or directory tree without elevation.

    Raises:
        OSError: If the entry cannot be removed.
    """
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


class CleanEngine:
    """Deletes reclaimable content across both tiers.

    Published values:
        state.log: Progress line ("Cleaning <root>...", then a summary).
        state.busy: True while cleaning.
        freed_bytes: Bytes freed by the most recent clean.
    """

    def __init__(
        self,
        elevation: ElevatedRunner,
        catalog: list[ReclaimPath] | None = None,
        *,
        min_duration: float = DEFAULT_MIN_DURATION,
    ) -> None:
        """Initialize the engine.

        Args:
            elevation: Runner used for the system-tier batch.
            catalog: Roots to clean. Defaults to the built-in catalog.
            min_duration: Floor on the operation's duration in seconds.
        """
        self._elevation = elevation
        self._catalog = catalog if catalog is not None else default_catalog()
        self._min_duration = min_duration
        self.state = OperationState()
        self.freed_bytes: Published[int] = Published(0)

    def reset(self) -> None:
        """Return every published value to its initial state."""
        self.state.reset()
        self.freed_bytes.reset()

    async def clean(self) -> CleanResult:
        """Clean both tiers.

        Returns:
            CleanResult with the bytes actually freed. When the system tier
            was deferred, only user-tier bytes are reported.

        Raises:
            RuntimeError: If a clean is already running on this engine.
        """
        self.state.begin("Clean")
        started = time.monotonic()
        result = CleanResult()
        summary = CLEANED

        try:
            await self._clean_user_tier(result)
            summary = await self._clean_system_tier(result)

            elapsed = time.monotonic() - started
            if elapsed < self._min_duration:
                await asyncio.sleep(self._min_duration - elapsed)
        finally:
            self.freed_bytes.set(result.freed_bytes)
            self.state.end(summary)

        logger.info("Clean finished (%s): freed %d bytes", summary, result.freed_bytes)
        return result

    async def _clean_user_tier(self, result: CleanResult) -> None:
        for reclaim in self._catalog:
            if reclaim.tier != Tier.USER or not os.path.isdir(reclaim.root):
                continue

            self.state.log.set(f"Cleaning {reclaim.root.name}...")
            freed, errors = await asyncio.to_thread(self._empty_directory, reclaim.root)
            result.user_bytes += freed
            result.errors.extend(errors)

    @staticmethod
    def _empty_directory(root: Path) -> tuple[int, list[str]]:
        """Remove every immediate child of *root*, keeping *root* itself."""
        freed = 0
        errors: list[str] = []
        try:
            children = list(root.iterdir())
        except OSError as e:
            logger.debug("Cannot list %s: %s", root, e)
            return 0, errors

        for child in children:
            size = tree_size(child)
            try:
                remove_path(child)
            except OSError as e:
                # Busy or protected entries are skipped, never fatal
                logger.debug("Skipping %s: %s", child, e)
                errors.append(f"{child}: {e.strerror or e}")
                continue
            freed += size
        return freed, errors

    async def _clean_system_tier(self, result: CleanResult) -> str:
        """Run the batched elevated delete, returning the summary line."""
        command = build_system_command(self._catalog)
        if command is None:
            return CLEANED

        self.state.log.set("Authorizing System Cleanup...")
        measured = await asyncio.to_thread(self._measure_system_roots)

        try:
            await self._elevation.run(command)
        except AuthorizationRequired as e:
            result.needs_authorization = True
            if e.rejected:
                return PASSWORD_REJECTED
            return REQUIRES_AUTHORIZATION
        except ExecError as e:
            logger.warning("System cleanup failed: %s", e)
            result.errors.append(f"System cleanup failed: {e}")
            return SYSTEM_FAILED

        result.system_cleaned = True
        result.system_bytes = measured
        return CLEANED

    def _measure_system_roots(self) -> int:
        total = 0
        for reclaim in self._catalog:
            if reclaim.is_allowlisted and os.path.isdir(reclaim.root):
                total += tree_size(reclaim.root)
        return total
