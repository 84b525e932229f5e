"""Fixtures for CLI tests."""

from collections.abc import Callable
from pathlib import Path

import pytest
import tomli_w
from mole.cleaner.catalog import ReclaimPath, user_paths

FAST_SETTINGS = {
    "scan_yield_seconds": 0.0,
    "min_clean_seconds": 0.0,
    "removal_delay_seconds": 0.0,
    "step_delay_seconds": 0.0,
}


@pytest.fixture
def write_config(isolated_dirs: Path) -> Callable[..., Path]:
    """Write a config file into the isolated XDG config directory."""

    def _write(**values: object) -> Path:
        path = isolated_dirs / ".config" / "mole" / "config.toml"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(tomli_w.dumps({**FAST_SETTINGS, **values}))
        return path

    return _write


@pytest.fixture
def user_only_catalog(
    isolated_dirs: Path, monkeypatch: pytest.MonkeyPatch
) -> list[ReclaimPath]:
    """Restrict the default catalog to the user tier of the isolated home."""
    catalog = user_paths(isolated_dirs)
    monkeypatch.setattr("mole.cleaner.scanner.default_catalog", lambda: list(catalog))
    monkeypatch.setattr("mole.cleaner.operator.default_catalog", lambda: list(catalog))
    return catalog
