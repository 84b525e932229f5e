"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import os
import shutil
import stat
from pathlib import Path
from unittest.mock import patch

import pytest
from mole.core.credentials import CredentialStore
from mole.core.elevation import ElevatedRunner
from mole.core.executor import PrivilegedExecutor

FAKE_PASSWORD = "letmein"

# Behaves like `sudo -S -p "" [-k] cmd...`: reads the password from stdin
# and runs the command only when it matches.
FAKE_SUDO_SCRIPT = f"""#!/bin/sh
read -r pw
while [ $# -gt 0 ]; do
  case "$1" in
    -S|-k) shift ;;
    -p) shift 2 ;;
    *) break ;;
  esac
done
if [ "$pw" != "{FAKE_PASSWORD}" ]; then
  echo "Sorry, try again." >&2
  exit 1
fi
exec "$@"
"""


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME and the XDG directories at a temporary tree."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(home / ".local" / "state"))
    return home


@pytest.fixture
def fake_sudo(tmp_path: Path) -> Path:
    """Write an executable sudo stand-in that accepts FAKE_PASSWORD."""
    script = tmp_path / "bin" / "sudo"
    script.parent.mkdir(parents=True, exist_ok=True)
    script.write_text(FAKE_SUDO_SCRIPT)
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


@pytest.fixture
def executor(fake_sudo: Path) -> PrivilegedExecutor:
    """Executor wired to the fake sudo and a POSIX shell."""
    return PrivilegedExecutor(sudo_path=str(fake_sudo), shell_path="/bin/sh", timeout=10)


@pytest.fixture
def credential_store(tmp_path: Path) -> CredentialStore:
    """Credential store persisting into the temporary directory."""
    return CredentialStore(tmp_path / "creds" / ".key")


@pytest.fixture
def elevation(credential_store: CredentialStore, executor: PrivilegedExecutor) -> ElevatedRunner:
    """Elevated runner using the fake sudo."""
    return ElevatedRunner(credential_store, executor)


def make_file(path: Path, size: int) -> Path:
    """Create *path* (and parents) holding *size* bytes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)
    return path


@pytest.fixture
def file_factory():
    """Expose make_file to tests."""
    return make_file


@pytest.fixture
def umask_zero():
    """Run with a permissive umask so file modes are not masked."""
    old = os.umask(0)
    try:
        yield
    finally:
        os.umask(old)


@pytest.fixture
def trash(tmp_path: Path) -> Path:
    """Directory standing in for the platform trash."""
    path = tmp_path / "Trash"
    path.mkdir()
    return path


@pytest.fixture
def send2trash_mock(trash: Path):
    """Patch send2trash to move items into ``trash`` by name."""

    def fake_send2trash(path: Path) -> None:
        shutil.move(str(path), str(trash / Path(path).name))

    with patch("mole.apps.trash.send2trash", side_effect=fake_send2trash) as mock:
        yield mock
