"""Lazy directory enumeration with explicit error values.

:func:`walk` never raises for a single unreadable entry. Instead it
yields a :class:`WalkError` in place of the entry and carries on, so a
caller decides per use whether errors matter. The size routines in this
package discard them: permission-denied and race-deleted entries are
expected while measuring caches and are not worth reporting.
"""

import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

# Directory suffixes treated as opaque packages (never descended into)
BUNDLE_SUFFIXES: frozenset[str] = frozenset(
    {
        ".app",
        ".appex",
        ".bundle",
        ".framework",
        ".kext",
        ".mdimporter",
        ".plugin",
        ".prefpane",
        ".qlgenerator",
        ".xpc",
    }
)


@dataclass(frozen=True, slots=True)
class WalkEntry:
    """An enumerated filesystem entry.

    Attributes:
        path: Absolute path of the entry.
        size: Size in bytes for regular files, 0 otherwise.
        is_dir: True for directories (including opaque bundles).
    """

    path: str
    size: int
    is_dir: bool


@dataclass(frozen=True, slots=True)
class WalkError:
    """An entry that could not be enumerated or stat'ed.

    Attributes:
        path: Path that failed.
        error: The underlying OS error.
    """

    path: str
    error: OSError


def is_bundle(name: str) -> bool:
    """Check if a directory name denotes an opaque package bundle."""
    _, ext = os.path.splitext(name)
    return ext.lower() in BUNDLE_SUFFIXES


def walk(
    root: str | Path,
    *,
    skip_hidden: bool = True,
    opaque_bundles: bool = True,
) -> Iterator[WalkEntry | WalkError]:
    """Recursively enumerate *root* in pre-order.

    Symlinks are reported but never followed.

    Args:
        root: Directory to enumerate. The root itself is not yielded.
        skip_hidden: Skip entries whose name starts with a dot.
        opaque_bundles: Yield bundles as leaves instead of descending.

    Yields:
        WalkEntry for every visited entry, WalkError for every failure.
    """
    stack: list[str] = [os.fspath(root)]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                entries = list(it)
        except OSError as e:
            yield WalkError(path=current, error=e)
            continue

        subdirs: list[str] = []
        for entry in entries:
            if skip_hidden and entry.name.startswith("."):
                continue
            try:
                if entry.is_dir(follow_symlinks=False):
                    yield WalkEntry(path=entry.path, size=0, is_dir=True)
                    if not (opaque_bundles and is_bundle(entry.name)):
                        subdirs.append(entry.path)
                elif entry.is_file(follow_symlinks=False):
                    size = entry.stat(follow_symlinks=False).st_size
                    yield WalkEntry(path=entry.path, size=size, is_dir=False)
                else:
                    yield WalkEntry(path=entry.path, size=0, is_dir=False)
            except OSError as e:
                yield WalkError(path=entry.path, error=e)

        # Reverse so directories are visited in listing order
        stack.extend(reversed(subdirs))


def tree_size(path: str | Path) -> int:
    """Sum the sizes of all readable regular files at or under *path*.

    Hidden files and bundle internals are included. Unreadable entries
    are skipped.

    Args:
        path: File or directory to measure.

    Returns:
        Total size in bytes (0 if *path* cannot be read at all).
    """
    try:
        st = os.lstat(path)
    except OSError:
        return 0

    if not os.path.isdir(path) or os.path.islink(path):
        return st.st_size

    total = 0
    for item in walk(path, skip_hidden=False, opaque_bundles=False):
        if isinstance(item, WalkEntry):
            total += item.size
    return total
