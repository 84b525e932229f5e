"""Installed application inventory.

Discovery happens in two passes. The first lists every ``.app`` bundle
in the applications directory and publishes minimal records at once so
callers have a usable list immediately. The second resolves icons and
computes bundle sizes concurrently, with fan-out capped by a semaphore,
and fills the records in as each task completes.

The inventory is the only writer of its record list. Background tasks
return their results to the inventory instead of touching the list, and
the removal engine asks the inventory to :meth:`discard` a record.
"""

from __future__ import annotations

import asyncio
import logging
import os
import threading
from pathlib import Path

from mole.apps.bundle import resolve_icon
from mole.apps.models import APP_BUNDLE_SUFFIX, AppRecord
from mole.cleaner.walk import tree_size
from mole.core.state import OperationState, Published
from mole.utils.formatting import format_size

logger = logging.getLogger(__name__)

DEFAULT_APPLICATIONS_DIR = Path("/Applications")


class ApplicationInventory:
    """Discovers installed applications and their sizes.

    Published values:
        apps: Immutable snapshot of the records, sorted by name.
        state.log: Progress line.
        state.busy: True while discovery runs.
    """

    def __init__(
        self,
        applications_dir: Path = DEFAULT_APPLICATIONS_DIR,
        *,
        max_workers: int | None = None,
    ) -> None:
        """Initialize the inventory.

        Args:
            applications_dir: Directory holding ``.app`` bundles.
            max_workers: Cap on concurrent sizing tasks (default: CPU count).
        """
        self._applications_dir = applications_dir
        self._max_workers = max_workers or os.cpu_count() or 1
        self._lock = threading.Lock()
        self._records: list[AppRecord] = []
        self._details_task: asyncio.Task[None] | None = None
        self.apps: Published[tuple[AppRecord, ...]] = Published(())
        self.state = OperationState()

    @property
    def applications_dir(self) -> Path:
        """Directory enumerated for bundles."""
        return self._applications_dir

    @property
    def records(self) -> tuple[AppRecord, ...]:
        """Current snapshot of the records."""
        with self._lock:
            return tuple(self._records)

    def get(self, app_id: str) -> AppRecord | None:
        """Find a record by identity."""
        with self._lock:
            return next((r for r in self._records if r.id == app_id), None)

    def find(self, name: str) -> AppRecord | None:
        """Find a record by display name (case-insensitive)."""
        wanted = name.removesuffix(APP_BUNDLE_SUFFIX).casefold()
        with self._lock:
            return next((r for r in self._records if r.name.casefold() == wanted), None)

    async def scan(self, *, wait_for_details: bool = True) -> tuple[AppRecord, ...]:
        """Discover installed applications.

        Does nothing if the inventory is already populated.

        Args:
            wait_for_details: If False, return right after the minimal
                records are published and let icons and sizes fill in
                from a background task (see :meth:`wait_for_details`).

        Returns:
            Snapshot of the records at return time.
        """
        if self.records:
            return self.records

        self.state.begin("Application scan")
        try:
            bundles = await asyncio.to_thread(self._list_bundles)
        except OSError as e:
            logger.error("Error scanning applications in %s: %s", self._applications_dir, e)
            self.state.end(f"Error scanning apps: {e.strerror or e}")
            return ()

        records = sorted((AppRecord.from_bundle(p) for p in bundles), key=lambda r: r.name)
        with self._lock:
            self._records = records
        self._publish()
        self.state.log.set(f"Found {len(records)} applications")

        self._details_task = asyncio.create_task(self._fill_details(records))
        if wait_for_details:
            await self._details_task
        return self.records

    async def wait_for_details(self) -> None:
        """Wait until background icon and size computation has finished."""
        if self._details_task is not None:
            await self._details_task

    def discard(self, app_id: str) -> bool:
        """Remove a record by identity.

        Returns:
            True if a record was removed.
        """
        with self._lock:
            before = len(self._records)
            self._records = [r for r in self._records if r.id != app_id]
            removed = len(self._records) != before
        if removed:
            self._publish()
        return removed

    def _list_bundles(self) -> list[Path]:
        return [
            entry
            for entry in self._applications_dir.iterdir()
            if entry.name.endswith(APP_BUNDLE_SUFFIX) and not entry.name.startswith(".")
        ]

    async def _fill_details(self, records: list[AppRecord]) -> None:
        """Resolve icon and size for every record with bounded fan-out."""
        semaphore = asyncio.Semaphore(self._max_workers)

        async def details(record: AppRecord) -> tuple[str, Path | None, str]:
            async with semaphore:
                icon, size = await asyncio.to_thread(self._compute_details, record.path)
            return record.id, icon, size

        try:
            for completed in asyncio.as_completed([details(r) for r in records]):
                app_id, icon, size = await completed
                self._apply_details(app_id, icon, size)
        finally:
            self.state.end(f"Loaded {len(records)} applications")

    @staticmethod
    def _compute_details(bundle: Path) -> tuple[Path | None, str]:
        return resolve_icon(bundle), format_size(tree_size(bundle))

    def _apply_details(self, app_id: str, icon: Path | None, size: str) -> None:
        with self._lock:
            for index, record in enumerate(self._records):
                if record.id == app_id:
                    self._records[index] = record.with_details(icon, size)
                    break
            else:
                # Record was removed while its size was being computed
                return
        self._publish()

    def _publish(self) -> None:
        self.apps.set(self.records)
