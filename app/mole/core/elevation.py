"""Credential-or-prompt logic shared by every privileged operation.

An elevated command is attempted with the cached credential. If none is
cached the operation is suspended by raising :class:`AuthorizationRequired`
(or, when configured, the native consent dialog is used once). If the
credential-backed command fails, the credential is invalidated before
authorization is requested again.
"""

from __future__ import annotations

import logging

from mole.core.credentials import CredentialStore
from mole.core.executor import CommandFailedError, PrivilegedExecutor
from mole.utils.shell import CommandResult

logger = logging.getLogger(__name__)

# osascript error number for a dismissed consent dialog
_USER_CANCELED_MARKERS = ("-128", "User canceled")


class AuthorizationRequired(Exception):
    """Raised when an operation must wait for the user to supply a credential.

    Attributes:
        rejected: True if a cached credential was tried and failed.
    """

    def __init__(self, message: str = "Authorization Required", *, rejected: bool = False) -> None:
        self.rejected = rejected
        super().__init__(message)


def is_user_cancel(error: CommandFailedError) -> bool:
    """Check whether a native-prompt failure means the user dismissed the dialog."""
    return any(marker in error.output for marker in _USER_CANCELED_MARKERS)


class ElevatedRunner:
    """Runs elevated shell commands using the shared credential store.

    Attributes:
        store: Credential store shared with every other elevated operation.
        executor: Executor used to spawn the elevation helper.
        native_prompt_fallback: Use the native dialog when nothing is cached.
    """

    def __init__(
        self,
        store: CredentialStore,
        executor: PrivilegedExecutor,
        *,
        native_prompt_fallback: bool = False,
    ) -> None:
        self.store = store
        self.executor = executor
        self.native_prompt_fallback = native_prompt_fallback

    async def run(self, command: str) -> CommandResult:
        """Run *command* with administrator rights.

        Returns:
            CommandResult of the elevated command.

        Raises:
            AuthorizationRequired: If no credential is cached, or the cached
                credential failed and was invalidated.
            CommandFailedError: If the native dialog path fails.
            SpawnFailedError: If the elevation helper cannot be started.
        """
        credential = self.store.credential
        if credential is None:
            if self.native_prompt_fallback:
                return await self.executor.run_elevated_interactive(command)
            self.store.request_authorization()
            raise AuthorizationRequired()

        try:
            return await self.executor.run_elevated_with_credential(command, credential)
        except CommandFailedError as e:
            # Wrong password and failing command are indistinguishable here
            logger.warning("Elevated command failed, invalidating credential: %s", e)
            self.store.invalidate()
            raise AuthorizationRequired("Password Incorrect/Expired", rejected=True) from e

    async def verify(self) -> bool:
        """Check the cached credential with a no-op elevated command.

        A rejected credential is invalidated.

        Returns:
            True if the credential was accepted.
        """
        credential = self.store.credential
        if credential is None:
            return False
        try:
            await self.executor.run_elevated_with_credential("true", credential, fresh=True)
        except CommandFailedError:
            self.store.invalidate()
            return False
        return True
