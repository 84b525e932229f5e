"""Unit tests for ElevatedRunner and the credential-or-prompt logic."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from mole.core.credentials import CredentialStore
from mole.core.elevation import AuthorizationRequired, ElevatedRunner, is_user_cancel
from mole.core.executor import CommandFailedError, PrivilegedExecutor
from mole.utils.shell import CommandResult

FAKE_PASSWORD = "letmein"


class TestElevatedRunner:
    """Tests for ElevatedRunner.run."""

    def test_no_credential_requests_authorization(self, elevation: ElevatedRunner) -> None:
        """Without a credential nothing runs and authorization is requested."""
        with pytest.raises(AuthorizationRequired) as exc_info:
            asyncio.run(elevation.run("true"))

        assert exc_info.value.rejected is False
        assert elevation.store.needs_authorization.value is True

    def test_correct_credential_runs(self, elevation: ElevatedRunner) -> None:
        """A valid credential runs the command."""
        elevation.store.set(FAKE_PASSWORD)

        result = asyncio.run(elevation.run("echo ok"))

        assert result.stdout.strip() == "ok"
        assert elevation.store.is_cached

    def test_wrong_credential_is_cleared(self, elevation: ElevatedRunner) -> None:
        """A rejected credential is invalidated, in memory and on disk."""
        elevation.store.set("wrong")
        assert elevation.store.path.exists()

        with pytest.raises(AuthorizationRequired, match="Password Incorrect/Expired") as exc_info:
            asyncio.run(elevation.run("true"))

        assert exc_info.value.rejected is True
        assert elevation.store.credential is None
        assert not elevation.store.path.exists()
        assert elevation.store.needs_authorization.value is True

    def test_failing_command_also_clears_credential(self, elevation: ElevatedRunner) -> None:
        """A failing command cannot be told apart from a bad credential."""
        elevation.store.set(FAKE_PASSWORD)

        with pytest.raises(AuthorizationRequired):
            asyncio.run(elevation.run("exit 2"))

        assert elevation.store.credential is None

    def test_native_prompt_fallback(self, credential_store: CredentialStore) -> None:
        """With the fallback enabled the native dialog is used once."""
        executor = PrivilegedExecutor()
        executor.run_elevated_interactive = AsyncMock(  # type: ignore[method-assign]
            return_value=CommandResult("", "", 0)
        )
        runner = ElevatedRunner(credential_store, executor, native_prompt_fallback=True)

        asyncio.run(runner.run("/usr/sbin/purge"))

        executor.run_elevated_interactive.assert_awaited_once_with("/usr/sbin/purge")
        assert credential_store.needs_authorization.value is False


class TestVerify:
    """Tests for ElevatedRunner.verify."""

    def test_accepts_valid_credential(self, elevation: ElevatedRunner) -> None:
        """verify returns True for an accepted credential."""
        elevation.store.set(FAKE_PASSWORD)
        assert asyncio.run(elevation.verify()) is True

    def test_rejects_and_clears(self, elevation: ElevatedRunner) -> None:
        """verify clears a rejected credential."""
        elevation.store.set("nope")

        assert asyncio.run(elevation.verify()) is False
        assert elevation.store.credential is None

    def test_nothing_cached(self, elevation: ElevatedRunner) -> None:
        """verify without a credential is False."""
        assert asyncio.run(elevation.verify()) is False


class TestIsUserCancel:
    """Tests for is_user_cancel."""

    @pytest.mark.parametrize(
        "output",
        [
            "execution error: User canceled. (-128)",
            "0:80: execution error: -128",
        ],
    )
    def test_cancel_markers(self, output: str) -> None:
        """Dialog dismissals are recognized."""
        assert is_user_cancel(CommandFailedError(output, 1))

    def test_other_failure(self) -> None:
        """Other failures are not cancellations."""
        assert not is_user_cancel(CommandFailedError("purge: not permitted", 1))
