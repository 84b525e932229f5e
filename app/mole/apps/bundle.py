"""Bundle metadata and residual file discovery.

An application's leftover files (preferences, caches, saved state, ...)
are found by substituting its bundle identifier into a fixed set of
locations under ``~/Library``. The identifier is read from the bundle's
``Info.plist`` and validated before use, so a crafted identifier such as
``../../etc`` can never point a candidate outside its Library subfolder.
"""

import logging
import plistlib
import re
from pathlib import Path
from xml.parsers.expat import ExpatError

from mole.core.paths import get_library_dir

logger = logging.getLogger(__name__)

INFO_PLIST = Path("Contents") / "Info.plist"
RESOURCES_DIR = Path("Contents") / "Resources"
BUNDLE_ID_KEY = "CFBundleIdentifier"
ICON_FILE_KEY = "CFBundleIconFile"

# Reverse-DNS style: letters, digits, dots, hyphens, underscores
_BUNDLE_ID_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]*")
_RAW_ID_RE = re.compile(
    rb"<key>\s*CFBundleIdentifier\s*</key>\s*<string>\s*([^<]*?)\s*</string>",
)

# (Library subfolder, filename template) for each residual location
RESIDUAL_TEMPLATES: tuple[tuple[str, str], ...] = (
    ("Application Support", "{id}"),
    ("Caches", "{id}"),
    ("Preferences", "{id}.plist"),
    ("Saved Application State", "{id}.savedState"),
    ("Containers", "{id}"),
    ("WebKit", "{id}"),
    ("LaunchAgents", "{id}.plist"),
    ("Logs", "{id}"),
)


def is_valid_bundle_id(bundle_id: str) -> bool:
    """Check that an identifier is safe to use as a single path component.

    Args:
        bundle_id: Candidate identifier.

    Returns:
        True if the identifier has reverse-DNS shape and no ``..`` run.
    """
    if not bundle_id or len(bundle_id) > 255:
        return False
    if ".." in bundle_id:
        return False
    return _BUNDLE_ID_RE.fullmatch(bundle_id) is not None


def _read_info_plist(bundle: Path) -> dict[str, object] | None:
    """Parse the bundle's Info.plist, or None if missing or malformed."""
    try:
        with open(bundle / INFO_PLIST, "rb") as f:
            data = plistlib.load(f)
    except (OSError, plistlib.InvalidFileException, ValueError, ExpatError) as e:
        logger.debug("Cannot parse Info.plist of %s: %s", bundle, e)
        return None
    return data if isinstance(data, dict) else None


def _scan_info_plist(bundle: Path) -> str | None:
    """Find the identifier key in the raw descriptor text.

    Fallback for property lists that the structured parser rejects.
    """
    try:
        raw = (bundle / INFO_PLIST).read_bytes()
    except OSError:
        return None
    match = _RAW_ID_RE.search(raw)
    if match is None:
        return None
    return match.group(1).decode("utf-8", errors="replace")


def resolve_bundle_id(bundle: Path) -> str | None:
    """Resolve a bundle's identifier.

    Reads the structured Info.plist first and falls back to scanning the
    descriptor text for the identifier key. Identifiers that are not safe
    path components are discarded.

    Args:
        bundle: Path to the ``.app`` bundle.

    Returns:
        The bundle identifier, or None.
    """
    bundle_id: str | None = None

    info = _read_info_plist(bundle)
    if info is not None:
        value = info.get(BUNDLE_ID_KEY)
        if isinstance(value, str):
            bundle_id = value.strip()

    if not bundle_id:
        bundle_id = _scan_info_plist(bundle)

    if not bundle_id:
        return None

    if not is_valid_bundle_id(bundle_id):
        logger.warning("Ignoring unsafe bundle identifier %r in %s", bundle_id, bundle)
        return None
    return bundle_id


def resolve_icon(bundle: Path) -> Path | None:
    """Locate the icon file declared by a bundle.

    Args:
        bundle: Path to the ``.app`` bundle.

    Returns:
        Path to the existing icon file, or None.
    """
    info = _read_info_plist(bundle)
    if info is None:
        return None
    name = info.get(ICON_FILE_KEY)
    if not isinstance(name, str) or not name or "/" in name or name.startswith("."):
        return None
    if not Path(name).suffix:
        name = f"{name}.icns"
    icon = bundle / RESOURCES_DIR / name
    return icon if icon.is_file() else None


def residual_paths(bundle_id: str, library: Path | None = None) -> list[Path]:
    """Build every residual location for *bundle_id*, existing or not.

    Each candidate is guaranteed to be a direct child of its Library
    subfolder.

    Args:
        bundle_id: Resolved bundle identifier.
        library: Library directory. Defaults to ~/Library.

    Returns:
        Candidate paths in template order; empty for an unsafe identifier.
    """
    if not is_valid_bundle_id(bundle_id):
        return []

    base = library if library is not None else get_library_dir()
    paths: list[Path] = []
    for subdir, template in RESIDUAL_TEMPLATES:
        parent = base / subdir
        candidate = parent / template.format(id=bundle_id)
        if candidate.parent != parent or candidate.name in ("", ".", ".."):
            logger.warning("Discarding residual candidate outside %s: %s", parent, candidate)
            continue
        paths.append(candidate)
    return paths


def residual_candidates(bundle_id: str, library: Path | None = None) -> list[Path]:
    """Build the residual locations for *bundle_id* that exist on disk."""
    return [p for p in residual_paths(bundle_id, library) if p.exists() or p.is_symlink()]
