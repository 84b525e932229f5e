"""Static catalog of reclaimable directories.

Each entry is a directory whose *contents* may be deleted. User-tier
entries are owned by the invoking account and need no elevation.
System-tier entries need elevation and are only ever cleaned if they
appear verbatim in :data:`SYSTEM_ALLOWLIST`.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

# The only roots ever passed to an elevated delete command
SYSTEM_ALLOWLIST: tuple[str, ...] = (
    "/Library/Caches",
    "/Library/Logs",
)

# User-tier roots relative to the home directory
_USER_TARGETS: tuple[str, ...] = (
    "Library/Caches",
    "Library/Logs",
    "Library/Developer/Xcode/DerivedData",
    "Library/Developer/Xcode/Archives",
    "Library/Developer/Xcode/iOS DeviceSupport",
    "Library/Developer/CoreSimulator/Caches",
)


class Tier(str, Enum):
    """Trust tier of a reclaimable directory.

    Attributes:
        USER: Owned by the invoking account, deleted without elevation.
        SYSTEM: Owned by the system, deleted via one batched elevated command.
    """

    USER = "user"
    SYSTEM = "system"


@dataclass(frozen=True, slots=True)
class ReclaimPath:
    """A directory whose contents can be reclaimed.

    Attributes:
        root: Absolute directory path.
        tier: Trust tier deciding how the contents are deleted.
    """

    root: Path
    tier: Tier

    def __post_init__(self) -> None:
        """Validate the root after initialization."""
        if not self.root.is_absolute():
            msg = f"Reclaim root must be absolute, got {self.root}"
            raise ValueError(msg)

    @property
    def requires_elevation(self) -> bool:
        """Check if cleaning this root needs administrator rights."""
        return self.tier == Tier.SYSTEM

    @property
    def is_allowlisted(self) -> bool:
        """Check if this root may be passed to an elevated delete."""
        return self.tier == Tier.SYSTEM and str(self.root) in SYSTEM_ALLOWLIST


def user_paths(home: Path | None = None) -> list[ReclaimPath]:
    """Build the user-tier entries for *home* (default: current user)."""
    base = home if home is not None else Path.home()
    return [ReclaimPath(root=base / target, tier=Tier.USER) for target in _USER_TARGETS]


def system_paths() -> list[ReclaimPath]:
    """Build the system-tier entries from the allow-list."""
    return [ReclaimPath(root=Path(p), tier=Tier.SYSTEM) for p in SYSTEM_ALLOWLIST]


def default_catalog(home: Path | None = None) -> list[ReclaimPath]:
    """Build the full catalog, user tier first, then system tier.

    Args:
        home: Home directory to derive user-tier roots from.

    Returns:
        Ordered list of ReclaimPath entries.
    """
    return [*user_paths(home), *system_paths()]
