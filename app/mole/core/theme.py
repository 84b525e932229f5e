"""Console color theme.

Colors come from the bundled ``data/theme.toml``. Any subset can be
overridden in ``~/.config/mole/theme.toml`` under the same ``[colors]``
table. An unreadable or invalid override is reported and ignored.
"""

import logging
import re
import sys
import tomllib
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from rich.theme import Theme

from mole.core.paths import get_user_theme_path

logger = logging.getLogger(__name__)

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]+")

# Rich style name -> (color field, extra attributes)
STYLE_MAP: dict[str, tuple[str, str]] = {
    "text": ("text", ""),
    "muted": ("muted", ""),
    "dim": ("muted", ""),
    "header": ("header", ""),
    "bold_header": ("header", "bold"),
    "border": ("border", ""),
    "success": ("success", ""),
    "warning": ("warning", ""),
    "error": ("error", "bold"),
    "info": ("info", ""),
    "reclaimed": ("reclaimed", "bold"),
    "app.name": ("app_name", "bold"),
    "step": ("step", ""),
}


class ThemeColors(BaseModel):
    """Hex colors used by the CLI (#RGB or #RRGGBB)."""

    model_config = ConfigDict(extra="forbid")

    text: str = "#ffffff"
    muted: str = "#b2bec3"
    header: str = "#d9773f"
    border: str = "#73311a"

    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    info: str = "#0ec1c8"

    # Reclaimed bytes, application names and maintenance steps
    reclaimed: str = "#c1ff62"
    app_name: str = "#e8a87c"
    step: str = "#3366cc"

    @field_validator("*", mode="before")
    @classmethod
    def validate_hex_color(cls, v: object, info: Any) -> str:
        if not isinstance(v, str):
            raise ValueError(f"{info.field_name}: color must be a string")
        color = v.strip()
        if not color.startswith("#"):
            raise ValueError(f"{info.field_name}: color must start with '#'")
        digits = color[1:]
        if len(digits) not in (3, 6):
            raise ValueError(f"{info.field_name}: color must be #RGB or #RRGGBB format")
        if not _HEX_DIGITS.fullmatch(digits):
            raise ValueError(f"{info.field_name}: invalid hex color '{color}'")
        return color


def get_bundled_theme_path() -> Path:
    """Path of the theme shipped inside the package."""
    return resources.files("mole.data").joinpath("theme.toml")  # type: ignore[return-value]


def _warn(message: str) -> None:
    logger.warning(message)
    print(f"Warning: {message}", file=sys.stderr)


def _load_toml_colors(path: Path) -> dict[str, str] | None:
    """Read the ``[colors]`` table of a theme file.

    Non-string values are dropped. Returns None if the file is missing,
    unreadable or malformed.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return None
    except tomllib.TOMLDecodeError as e:
        _warn(f"Failed to parse {path}: {e}")
        return None
    except OSError as e:
        logger.warning("Failed to read theme file %s: %s", path, e)
        return None

    table = data.get("colors", {})
    if not isinstance(table, dict):
        logger.warning("Invalid 'colors' section in %s", path)
        return None
    return {key: value for key, value in table.items() if isinstance(value, str)}


def load_theme() -> ThemeColors:
    """Merge the user overrides onto the bundled colors.

    Returns:
        Validated colors; the built-in defaults if validation fails.
    """
    colors = _load_toml_colors(Path(get_bundled_theme_path()))
    if colors is None:
        logger.error("Bundled theme is missing or unreadable")
        colors = {}

    user_path = get_user_theme_path()
    overrides = _load_toml_colors(user_path)
    if overrides:
        logger.debug("Applying theme overrides from %s", user_path)
        colors = {**colors, **overrides}

    try:
        return ThemeColors(**colors)
    except ValueError as e:
        _warn(f"Invalid theme configuration, using defaults: {e}")
        return ThemeColors()


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Build the Rich theme for *colors* (loaded when omitted)."""
    colors = colors if colors is not None else load_theme()
    styles: dict[str, str] = {}
    for name, (field, attributes) in STYLE_MAP.items():
        color = getattr(colors, field)
        styles[name] = f"{attributes} {color}" if attributes else color
    return Theme(styles)


@lru_cache(maxsize=1)
def get_theme() -> Theme:
    """Rich theme shared by the consoles, loaded once per process."""
    return get_rich_theme()
