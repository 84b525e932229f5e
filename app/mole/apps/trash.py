"""Recoverable delete.

Items go through the platform trash (the Finder's on macOS) rather than
being unlinked, so an uninstall can be undone with "Put Back".
"""

import logging
from pathlib import Path

from send2trash import send2trash

logger = logging.getLogger(__name__)


def move_to_trash(path: Path) -> None:
    """Send *path* to the trash.

    Args:
        path: File, directory or symlink to trash.

    Raises:
        FileNotFoundError: If *path* does not exist.
        OSError: If the platform trash refuses the item.
    """
    if not path.exists() and not path.is_symlink():
        msg = f"No such file or directory: {path}"
        raise FileNotFoundError(msg)

    send2trash(path)
    logger.debug("Trashed %s", path)
