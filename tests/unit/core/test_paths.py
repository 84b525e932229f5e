"""Unit tests for XDG path management.

Tests for the paths module that provides config, state and credential paths.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from mole.core.paths import (
    APP_NAME,
    ensure_state_dir,
    get_config_dir,
    get_config_path,
    get_credential_path,
    get_library_dir,
    get_state_dir,
    get_user_theme_path,
)


class TestGetConfigDir:
    """Tests for get_config_dir function."""

    def test_default_config_dir(self) -> None:
        """get_config_dir returns default path when XDG_CONFIG_HOME not set."""
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("XDG_CONFIG_HOME", None)

            result = get_config_dir()

        assert result == Path.home() / ".config" / APP_NAME

    def test_respects_xdg_config_home(self, tmp_path: Path) -> None:
        """get_config_dir respects XDG_CONFIG_HOME environment variable."""
        with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(tmp_path)}):
            result = get_config_dir()

        assert result == tmp_path / APP_NAME


class TestGetStateDir:
    """Tests for get_state_dir function."""

    def test_default_state_dir(self) -> None:
        """get_state_dir returns default path when XDG_STATE_HOME not set."""
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("XDG_STATE_HOME", None)

            result = get_state_dir()

        assert result == Path.home() / ".local" / "state" / APP_NAME

    def test_respects_xdg_state_home(self, tmp_path: Path) -> None:
        """get_state_dir respects XDG_STATE_HOME environment variable."""
        with patch.dict(os.environ, {"XDG_STATE_HOME": str(tmp_path)}):
            result = get_state_dir()

        assert result == tmp_path / APP_NAME


class TestFilePaths:
    """Tests for the individual file path getters."""

    def test_config_path(self) -> None:
        """Config file lives in the config directory."""
        assert get_config_path() == get_config_dir() / "config.toml"

    def test_user_theme_path(self) -> None:
        """User theme overrides live in the config directory."""
        assert get_user_theme_path() == get_config_dir() / "theme.toml"

    def test_credential_path(self, isolated_dirs: Path) -> None:
        """Credential file is ~/.mole/.key regardless of XDG settings."""
        assert get_credential_path() == isolated_dirs / ".mole" / ".key"

    def test_library_dir(self, isolated_dirs: Path) -> None:
        """Library directory is ~/Library."""
        assert get_library_dir() == isolated_dirs / "Library"


class TestEnsureStateDir:
    """Tests for ensure_state_dir function."""

    def test_creates_directory(self) -> None:
        """ensure_state_dir creates the state directory."""
        path = ensure_state_dir()

        assert path.is_dir()
        assert path == get_state_dir()

    def test_existing_directory_is_fine(self) -> None:
        """ensure_state_dir is idempotent."""
        ensure_state_dir()
        assert ensure_state_dir().is_dir()

    def test_permission_error_raises_runtime_error(self) -> None:
        """A directory that cannot be created raises RuntimeError."""
        with (
            patch.object(Path, "mkdir", side_effect=PermissionError("denied")),
            pytest.raises(RuntimeError, match="Permission denied"),
        ):
            ensure_state_dir()
