"""Append-only log of completed operations.

Cleanups, uninstalls and maintenance runs each append one JSON object per
line to ``$XDG_STATE_HOME/mole/history.jsonl``. Lines that fail to parse
are skipped on read, so a torn write never hides the rest of the log.
"""

from __future__ import annotations

import json
import logging
import secrets
from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from mole.core.paths import ensure_state_dir, get_state_dir

logger = logging.getLogger(__name__)

HISTORY_FILENAME = "history.jsonl"


class HistoryActionType(str, Enum):
    """Kind of operation an entry describes."""

    CLEAN = "clean"
    UNINSTALL = "uninstall"
    OPTIMIZE = "optimize"


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """One completed clean, uninstall or maintenance run.

    Attributes:
        id: 12 hex characters.
        timestamp: ISO 8601 time with UTC offset.
        action_type: Operation kind.
        summary: The operation's final progress line.
        success: False if the operation failed or still waits for a password.
        metadata: Per-kind detail (freed bytes, trashed paths, step statuses).
    """

    id: str
    timestamp: str
    action_type: HistoryActionType
    summary: str
    success: bool = True
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            msg = "History entry ID cannot be empty"
            raise ValueError(msg)
        if not self.timestamp:
            msg = "History entry timestamp cannot be empty"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["action_type"] = self.action_type.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryEntry:
        """Build an entry from a parsed JSON object.

        Raises:
            KeyError: If id, timestamp or action_type is missing.
            ValueError: If action_type is unknown.
            TypeError: If metadata is not an object.
        """
        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict):
            msg = f"metadata must be an object, got {type(metadata).__name__}"
            raise TypeError(msg)
        return cls(
            id=str(data["id"]),
            timestamp=str(data["timestamp"]),
            action_type=HistoryActionType(data["action_type"]),
            summary=str(data.get("summary", "")),
            success=bool(data.get("success", True)),
            metadata=metadata,
        )

    def to_json_line(self) -> str:
        """Compact JSON without a trailing newline."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json_line(cls, line: str) -> HistoryEntry:
        data = json.loads(line)
        if not isinstance(data, dict):
            msg = "history line is not a JSON object"
            raise ValueError(msg)
        return cls.from_dict(data)


def create_history_entry(
    action_type: HistoryActionType,
    summary: str,
    *,
    success: bool = True,
    metadata: dict[str, Any] | None = None,
) -> HistoryEntry:
    """Stamp a new entry with a random ID and the current UTC time."""
    return HistoryEntry(
        id=secrets.token_hex(6),
        timestamp=datetime.now(UTC).isoformat(timespec="seconds"),
        action_type=action_type,
        summary=summary,
        success=success,
        metadata=dict(metadata or {}),
    )


class HistoryStore:
    """The history file of one state directory.

    Args:
        state_dir: Directory holding the file. Defaults to the XDG state
            directory, resolved on each access.
    """

    def __init__(self, state_dir: Path | None = None) -> None:
        self._state_dir = state_dir

    @property
    def history_path(self) -> Path:
        return (self._state_dir or get_state_dir()) / HISTORY_FILENAME

    def record(self, entry: HistoryEntry) -> None:
        """Append *entry* as one line.

        Raises:
            OSError: If the directory or file cannot be written.
            RuntimeError: If the default state directory cannot be created.
        """
        if self._state_dir is None:
            ensure_state_dir()
        else:
            self._state_dir.mkdir(parents=True, exist_ok=True)

        with self.history_path.open("a", encoding="utf-8") as f:
            f.write(f"{entry.to_json_line()}\n")

    def iter_entries(self) -> Iterator[HistoryEntry]:
        """Yield parseable entries in file order (oldest first)."""
        try:
            f = self.history_path.open(encoding="utf-8")
        except FileNotFoundError:
            return

        with f:
            for line_num, raw in enumerate(f, start=1):
                line = raw.strip()
                if not line:
                    continue
                try:
                    entry = HistoryEntry.from_json_line(line)
                except (ValueError, KeyError, TypeError) as e:
                    logger.warning("Skipping corrupt history line %d: %s", line_num, e)
                    continue
                yield entry

    def get_history(
        self,
        limit: int | None = None,
        action_type: HistoryActionType | None = None,
    ) -> list[HistoryEntry]:
        """Return the most recent entries, newest first.

        Args:
            limit: Keep at most this many entries.
            action_type: Keep only entries of this kind.
        """
        entries: Iterable[HistoryEntry] = self.iter_entries()
        if action_type is not None:
            entries = (e for e in entries if e.action_type == action_type)

        newest = deque(entries, maxlen=limit)
        newest.reverse()
        return list(newest)
