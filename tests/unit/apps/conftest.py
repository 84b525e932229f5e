"""Fixtures for application tests."""

import plistlib
from pathlib import Path

import pytest


def make_bundle(
    applications: Path,
    name: str,
    bundle_id: str | None = None,
    *,
    payload: int = 0,
    icon: str | None = None,
) -> Path:
    """Create a minimal ``.app`` bundle with an Info.plist."""
    bundle = applications / f"{name}.app"
    contents = bundle / "Contents"
    contents.mkdir(parents=True)
    info: dict[str, str] = {"CFBundleName": name}
    if bundle_id is not None:
        info["CFBundleIdentifier"] = bundle_id
    if icon is not None:
        info["CFBundleIconFile"] = icon
        resources = contents / "Resources"
        resources.mkdir()
        icon_name = icon if Path(icon).suffix else f"{icon}.icns"
        (resources / icon_name).write_bytes(b"icns")
    with open(contents / "Info.plist", "wb") as f:
        plistlib.dump(info, f)
    if payload:
        macos = contents / "MacOS"
        macos.mkdir()
        (macos / name).write_bytes(b"\0" * payload)
    return bundle


@pytest.fixture
def applications(tmp_path: Path) -> Path:
    """An empty applications directory."""
    path = tmp_path / "Applications"
    path.mkdir()
    return path


@pytest.fixture
def library(tmp_path: Path) -> Path:
    """An empty Library directory."""
    path = tmp_path / "Library"
    path.mkdir()
    return path


@pytest.fixture
def bundle_factory():
    """Expose make_bundle to tests."""
    return make_bundle


@pytest.fixture(autouse=True)
def _platform_trash(send2trash_mock):
    """Keep every test away from the real trash."""
    return send2trash_mock
