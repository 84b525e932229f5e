"""Filesystem locations used by mole.

Configuration and history follow the XDG base directories
(``~/.config/mole`` and ``~/.local/state/mole`` unless overridden). The
persisted administrator credential and the Library directory are fixed
per-user locations under the home directory.
"""

import os
from pathlib import Path

APP_NAME = "mole"

# Kept outside the XDG tree so resetting the config does not log the user out
CREDENTIAL_DIRNAME = ".mole"
CREDENTIAL_FILENAME = ".key"

CONFIG_FILENAME = "config.toml"
THEME_FILENAME = "theme.toml"


def _xdg_app_dir(env_var: str, fallback: str) -> Path:
    """``$<env_var>/mole``, or ``~/<fallback>/mole`` when the variable is unset or empty."""
    base = os.environ.get(env_var)
    root = Path(base) if base else Path.home() / fallback
    return root / APP_NAME


def get_config_dir() -> Path:
    return _xdg_app_dir("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    return _xdg_app_dir("XDG_STATE_HOME", ".local/state")


def get_config_path() -> Path:
    """Location of ``config.toml``."""
    return get_config_dir() / CONFIG_FILENAME


def get_user_theme_path() -> Path:
    """Location of the optional user color overrides."""
    return get_config_dir() / THEME_FILENAME


def get_credential_path() -> Path:
    """Location of the persisted credential, ``~/.mole/.key``."""
    return Path.home() / CREDENTIAL_DIRNAME / CREDENTIAL_FILENAME


def get_library_dir() -> Path:
    """The per-user ``~/Library`` directory."""
    return Path.home() / "Library"


def ensure_state_dir() -> Path:
    """Create the state directory if needed and return it.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    path = get_state_dir()
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create state directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create state directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path
