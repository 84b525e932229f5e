"""Unit tests for the cleaner: user tier, system batch and authorization."""

import asyncio
import time
from pathlib import Path
from unittest.mock import patch

import pytest
from mole.cleaner.catalog import SYSTEM_ALLOWLIST, ReclaimPath, Tier
from mole.cleaner.operator import (
    CLEANED,
    COMMAND_SEPARATOR,
    PASSWORD_REJECTED,
    REQUIRES_AUTHORIZATION,
    SYSTEM_FAILED,
    CleanEngine,
    build_system_command,
    remove_path,
)
from mole.core.elevation import ElevatedRunner
from mole.core.executor import SpawnFailedError

FAKE_PASSWORD = "letmein"


def _system(path: str) -> ReclaimPath:
    return ReclaimPath(root=Path(path), tier=Tier.SYSTEM)


class TestBuildSystemCommand:
    """Tests for build_system_command."""

    def test_two_allowlisted_roots(self) -> None:
        """Each existing allow-listed root contributes one clause."""
        catalog = [_system(p) for p in SYSTEM_ALLOWLIST]

        command = build_system_command(catalog, exists=lambda _: True)

        assert command == "rm -rf /Library/Caches/*; rm -rf /Library/Logs/*"
        assert command.count(COMMAND_SEPARATOR) == 1

    def test_missing_roots_omitted(self) -> None:
        """Roots that do not exist are left out."""
        catalog = [_system(p) for p in SYSTEM_ALLOWLIST]

        command = build_system_command(catalog, exists=lambda p: p == "/Library/Logs")

        assert command == "rm -rf /Library/Logs/*"

    def test_nothing_exists(self) -> None:
        """No existing root means no command."""
        catalog = [_system(p) for p in SYSTEM_ALLOWLIST]
        assert build_system_command(catalog, exists=lambda _: False) is None

    @pytest.mark.parametrize("rogue", ["/", "/System", "/Library", "/Library/Caches/../.."])
    def test_never_targets_other_paths(self, rogue: str) -> None:
        """A system root outside the allow-list never reaches the command."""
        catalog = [*(_system(p) for p in SYSTEM_ALLOWLIST), _system(rogue)]

        command = build_system_command(catalog, exists=lambda _: True)

        assert command is not None
        assert command.count("rm -rf") == 2
        assert f"rm -rf {rogue}/*" not in command

    def test_user_tier_ignored(self, tmp_path: Path) -> None:
        """User-tier roots are never part of the elevated command."""
        catalog = [ReclaimPath(root=tmp_path, tier=Tier.USER)]
        assert build_system_command(catalog, exists=lambda _: True) is None


@pytest.fixture
def user_root(tmp_path: Path, file_factory) -> Path:
    """A user cache root holding 10 + 20 + 30 bytes."""
    root = tmp_path / "Caches"
    file_factory(root / "a.cache", 10)
    file_factory(root / "dir" / "b.cache", 20)
    file_factory(root / "dir" / ".c.cache", 30)
    return root


def _engine(elevation: ElevatedRunner, *roots: ReclaimPath, min_duration: float = 0) -> CleanEngine:
    return CleanEngine(elevation, list(roots), min_duration=min_duration)


class TestCleanUserTier:
    """Tests for user-tier cleaning."""

    def test_frees_exact_bytes(self, elevation: ElevatedRunner, user_root: Path) -> None:
        """Freed bytes equal the removed content, and the root remains."""
        engine = _engine(elevation, ReclaimPath(root=user_root, tier=Tier.USER))

        result = asyncio.run(engine.clean())

        assert result.freed_bytes == 60
        assert engine.freed_bytes.value == 60
        assert user_root.is_dir()
        assert list(user_root.iterdir()) == []
        assert engine.state.log.value == CLEANED

    def test_missing_root_skipped(self, elevation: ElevatedRunner, tmp_path: Path) -> None:
        """A missing user root is not an error."""
        engine = _engine(elevation, ReclaimPath(root=tmp_path / "missing", tier=Tier.USER))

        result = asyncio.run(engine.clean())

        assert result.freed_bytes == 0
        assert result.errors == []

    def test_unsearchable_root_skipped(
        self, elevation: ElevatedRunner, user_root: Path, unsearchable: Path
    ) -> None:
        """A root whose parent cannot be searched is skipped like a missing one."""
        engine = _engine(
            elevation,
            ReclaimPath(root=unsearchable, tier=Tier.USER),
            ReclaimPath(root=user_root, tier=Tier.USER),
        )

        result = asyncio.run(engine.clean())

        assert result.freed_bytes == 60
        assert engine.state.log.value == CLEANED

    def test_undeletable_child_not_counted(
        self, elevation: ElevatedRunner, user_root: Path
    ) -> None:
        """A child that cannot be removed is skipped and not counted."""
        engine = _engine(elevation, ReclaimPath(root=user_root, tier=Tier.USER))

        def flaky_remove(path: Path) -> None:
            if path.name == "dir":
                raise PermissionError(13, "Operation not permitted")
            remove_path(path)

        with patch("mole.cleaner.operator.remove_path", side_effect=flaky_remove):
            result = asyncio.run(engine.clean())

        assert result.freed_bytes == 10
        assert len(result.errors) == 1
        assert (user_root / "dir").exists()

    def test_minimum_duration(self, elevation: ElevatedRunner, tmp_path: Path) -> None:
        """A clean takes at least the configured floor."""
        engine = _engine(
            elevation, ReclaimPath(root=tmp_path / "x", tier=Tier.USER), min_duration=0.2
        )

        started = time.monotonic()
        asyncio.run(engine.clean())

        assert time.monotonic() - started >= 0.2


class TestCleanSystemTier:
    """Tests for the elevated system phase."""

    @pytest.fixture
    def system_catalog(self) -> list[ReclaimPath]:
        """Allow-listed system roots."""
        return [_system(p) for p in SYSTEM_ALLOWLIST]

    def test_no_credential_defers(
        self, elevation: ElevatedRunner, system_catalog: list[ReclaimPath]
    ) -> None:
        """Without a credential only the user tier runs."""
        engine = _engine(elevation, *system_catalog)

        with patch("mole.cleaner.operator.build_system_command", return_value="true"):
            result = asyncio.run(engine.clean())

        assert result.needs_authorization is True
        assert result.system_cleaned is False
        assert engine.state.log.value == REQUIRES_AUTHORIZATION
        assert elevation.store.needs_authorization.value is True

    def test_user_tier_freed_while_system_deferred(
        self,
        elevation: ElevatedRunner,
        user_root: Path,
        system_catalog: list[ReclaimPath],
    ) -> None:
        """User bytes are reclaimed even though the system tier waits for a password."""
        engine = _engine(elevation, ReclaimPath(root=user_root, tier=Tier.USER), *system_catalog)

        with patch("mole.cleaner.operator.build_system_command", return_value="true"):
            result = asyncio.run(engine.clean())

        assert result.freed_bytes == 60
        assert engine.freed_bytes.value == 60
        assert list(user_root.iterdir()) == []
        assert result.system_cleaned is False
        assert result.needs_authorization is True
        assert engine.state.log.value == REQUIRES_AUTHORIZATION
        assert elevation.store.needs_authorization.value is True

    def test_valid_credential_runs_batch(
        self, elevation: ElevatedRunner, system_catalog: list[ReclaimPath]
    ) -> None:
        """A cached credential runs the batch once."""
        elevation.store.set(FAKE_PASSWORD)
        engine = _engine(elevation, *system_catalog)

        with patch("mole.cleaner.operator.build_system_command", return_value="true"):
            result = asyncio.run(engine.clean())

        assert result.system_cleaned is True
        assert engine.state.log.value == CLEANED

    def test_wrong_credential_cleared(
        self, elevation: ElevatedRunner, system_catalog: list[ReclaimPath]
    ) -> None:
        """A rejected credential is cleared and the summary says so."""
        elevation.store.set("wrong")
        engine = _engine(elevation, *system_catalog)

        with patch("mole.cleaner.operator.build_system_command", return_value="true"):
            result = asyncio.run(engine.clean())

        assert result.needs_authorization is True
        assert engine.state.log.value == PASSWORD_REJECTED
        assert elevation.store.credential is None
        assert not elevation.store.path.exists()

    def test_spawn_failure(
        self, elevation: ElevatedRunner, system_catalog: list[ReclaimPath]
    ) -> None:
        """A helper that cannot start reports a failed system phase."""
        elevation.store.set(FAKE_PASSWORD)
        engine = _engine(elevation, *system_catalog)

        with (
            patch("mole.cleaner.operator.build_system_command", return_value="true"),
            patch.object(
                elevation.executor,
                "run_elevated_with_credential",
                side_effect=SpawnFailedError(FileNotFoundError("sudo")),
            ),
        ):
            result = asyncio.run(engine.clean())

        assert result.system_cleaned is False
        assert engine.state.log.value == SYSTEM_FAILED
        assert elevation.store.is_cached

    def test_no_existing_system_roots(
        self, elevation: ElevatedRunner, system_catalog: list[ReclaimPath]
    ) -> None:
        """When no allow-listed root exists, nothing is elevated."""
        engine = _engine(elevation, *system_catalog)

        with patch("mole.cleaner.operator.build_system_command", return_value=None):
            result = asyncio.run(engine.clean())

        assert result.needs_authorization is False
        assert engine.state.log.value == CLEANED


class TestCleanEngineState:
    """Tests for engine bookkeeping."""

    def test_reset(self, elevation: ElevatedRunner, user_root: Path) -> None:
        """reset clears freed bytes and the log line."""
        engine = _engine(elevation, ReclaimPath(root=user_root, tier=Tier.USER))
        asyncio.run(engine.clean())

        engine.reset()

        assert engine.freed_bytes.value == 0
        assert engine.state.log.value == ""
