"""Reclaimable space scanner.

Walks every catalog root (user tier first, then system tier) and sums
the sizes of visible regular files. Scanning is a best-effort accounting
pass: missing roots are skipped, unreadable entries are ignored and no
error ever escapes.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from enum import Enum

from mole.cleaner.catalog import ReclaimPath, default_catalog
from mole.cleaner.walk import WalkEntry, walk
from mole.core.state import OperationState, Published
from mole.utils.formatting import abbreviate_home

logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_INTERVAL = 200
DEFAULT_YIELD_SECONDS = 0.002

# Display truncation: keep a prefix and a suffix around an ellipsis
TRUNCATE_THRESHOLD = 45
TRUNCATE_PREFIX = 15
TRUNCATE_SUFFIX = 25

SCAN_COMPLETE = "Scan Complete"


class ScanPhase(str, Enum):
    """Lifecycle of a scan.

    Attributes:
        IDLE: No scan has run since the last reset.
        SCANNING: A scan is in progress.
        DONE: The last scan finished and its total is frozen.
    """

    IDLE = "idle"
    SCANNING = "scanning"
    DONE = "done"


@dataclass(slots=True)
class ScanResult:
    """Accumulated outcome of one scan.

    Attributes:
        total_bytes: Sum of all counted file sizes.
        label: Most recent progress label.
        by_root: Bytes counted per catalog root.
        entries_visited: Number of enumerated entries.
    """

    total_bytes: int = 0
    label: str = ""
    by_root: dict[str, int] = field(default_factory=dict)
    entries_visited: int = 0


def truncate_path(path: str, home: str | None = None) -> str:
    """Shorten a path for display.

    The home directory is replaced by ``~``. Paths longer than the
    threshold keep a fixed prefix and suffix joined by ``...``.

    Args:
        path: Absolute path to shorten.
        home: Home directory to abbreviate. Defaults to the current user's.

    Returns:
        Display string.
    """
    short = abbreviate_home(path, home)
    if len(short) > TRUNCATE_THRESHOLD:
        return f"{short[:TRUNCATE_PREFIX]}...{short[-TRUNCATE_SUFFIX:]}"
    return short


class ScanEngine:
    """Measures reclaimable space across the catalog.

    Published values:
        state.log: Progress label (root being entered, truncated paths,
            then "Scan Complete").
        state.busy: True while scanning.
        phase: Idle, Scanning or Done.
        total_bytes: Frozen total after the scan completes.

    Example:
        >>> engine = ScanEngine()
        >>> result = asyncio.run(engine.start_scan())
        >>> engine.phase.value
        <ScanPhase.DONE: 'done'>
    """

    def __init__(
        self,
        catalog: list[ReclaimPath] | None = None,
        *,
        progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
        yield_seconds: float = DEFAULT_YIELD_SECONDS,
    ) -> None:
        """Initialize the engine.

        Args:
            catalog: Roots to scan, in order. Defaults to the built-in catalog.
            progress_interval: Entries visited between progress updates.
            yield_seconds: Pause taken at each progress update.
        """
        self._catalog = catalog if catalog is not None else default_catalog()
        self._progress_interval = max(1, progress_interval)
        self._yield_seconds = yield_seconds
        self.state = OperationState()
        self.phase: Published[ScanPhase] = Published(ScanPhase.IDLE)
        self.total_bytes: Published[int] = Published(0)
        self._result = ScanResult()

    @property
    def catalog(self) -> list[ReclaimPath]:
        """Roots scanned by this engine."""
        return list(self._catalog)

    @property
    def result(self) -> ScanResult:
        """Result of the most recent scan."""
        return self._result

    def reset(self) -> None:
        """Return every published value to its initial state."""
        self._result = ScanResult()
        self.state.reset()
        self.phase.reset()
        self.total_bytes.reset()

    async def start_scan(self) -> ScanResult:
        """Scan every existing catalog root.

        Returns:
            The completed ScanResult.

        Raises:
            RuntimeError: If a scan is already running on this engine.
        """
        self.state.begin("Scan")
        self._result = ScanResult()
        self.total_bytes.set(0)
        self.phase.set(ScanPhase.SCANNING)

        try:
            for reclaim in self._catalog:
                await self._scan_root(reclaim)
        finally:
            self._result.label = SCAN_COMPLETE
            self.total_bytes.set(self._result.total_bytes)
            self.phase.set(ScanPhase.DONE)
            self.state.end(SCAN_COMPLETE)

        logger.info(
            "Scan complete: %d bytes in %d entries",
            self._result.total_bytes,
            self._result.entries_visited,
        )
        return self._result

    async def _scan_root(self, reclaim: ReclaimPath) -> None:
        """Accumulate the visible file sizes under one root."""
        root = reclaim.root
        # os.path.isdir treats an unreadable parent as a missing root
        if not os.path.isdir(root):
            return

        self._publish(f"Scanning {root.name}...")

        root_total = 0
        for item in walk(root):
            self._result.entries_visited += 1
            if self._result.entries_visited % self._progress_interval == 0:
                self._publish(truncate_path(item.path))
                await asyncio.sleep(self._yield_seconds)

            # Enumeration errors are expected here and intentionally dropped
            if isinstance(item, WalkEntry):
                root_total += item.size

        self._result.by_root[str(root)] = root_total
        self._result.total_bytes += root_total

    def _publish(self, label: str) -> None:
        self._result.label = label
        self.state.log.set(label)
