"""Fixtures for cleaner tests."""

import os
from pathlib import Path

import pytest


@pytest.fixture
def unsearchable(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A directory whose contents cannot be stat'ed, even when running as root.

    Returns a would-be root inside it. ``os.stat`` raises EACCES for any
    path below the directory.
    """
    locked = tmp_path / "locked"
    real_stat = os.stat

    def denying_stat(path, *args, **kwargs):
        if os.fspath(path).startswith(str(locked) + os.sep):
            raise PermissionError(13, "Permission denied", os.fspath(path))
        return real_stat(path, *args, **kwargs)

    monkeypatch.setattr(os, "stat", denying_stat)
    return locked / "Caches"
