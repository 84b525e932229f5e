"""Application domain models.

This module defines the records published by the application inventory
and the outcome of an uninstall.
"""

import uuid
from dataclasses import dataclass, field, replace
from pathlib import Path

APP_BUNDLE_SUFFIX = ".app"


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class AppRecord:
    """An installed application bundle.

    Records are immutable; the inventory replaces a record in its list
    when background work fills in the icon and size.

    Attributes:
        name: Display name derived from the bundle filename.
        path: Location of the ``.app`` bundle.
        icon: Path to the bundle's icon file, if resolved.
        size: Human-readable size, empty until computed.
        id: Stable opaque identity, unique per record.
    """

    name: str
    path: Path
    icon: Path | None = None
    size: str = ""
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        """Validate record data after initialization."""
        if not self.name:
            msg = "Application name cannot be empty"
            raise ValueError(msg)

    @classmethod
    def from_bundle(cls, path: Path) -> "AppRecord":
        """Build a minimal record for a bundle path (no icon, empty size)."""
        return cls(name=path.name.removesuffix(APP_BUNDLE_SUFFIX), path=path)

    def with_details(self, icon: Path | None, size: str) -> "AppRecord":
        """Return a copy with icon and size filled in, keeping the identity."""
        return replace(self, icon=icon, size=size)

    @property
    def sized(self) -> bool:
        """Check if the size has been computed."""
        return bool(self.size)


@dataclass(frozen=True, slots=True)
class RemovalFailure:
    """A removal target that could not be trashed.

    Attributes:
        path: Target path.
        error: Error message.
    """

    path: str
    error: str


@dataclass(slots=True)
class RemovalResult:
    """Outcome of uninstalling one application.

    Attributes:
        app: The record that was uninstalled.
        bundle_id: Resolved bundle identifier, if any.
        removed: Paths moved to the trash, in order.
        failed: Targets that could not be trashed.
    """

    app: AppRecord
    bundle_id: str | None = None
    removed: list[str] = field(default_factory=list)
    failed: list[RemovalFailure] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check if the bundle itself was removed."""
        return str(self.app.path) in self.removed
