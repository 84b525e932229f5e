"""External command execution, as the current user or elevated.

Three invocation shapes are supported:

- direct exec of a program with an argument vector,
- elevation through the native consent dialog (``osascript ... with
  administrator privileges``) taking one shell command string,
- elevation through ``sudo -S`` with the credential written to the
  helper's stdin, taking one shell command string.

Every call is a coroutine so long-running commands never block the
event loop. Nothing here retries; retry policy belongs to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from pydantic import SecretStr

from mole.utils.shell import CommandResult, quote_applescript

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300.0

SUDO_PATH = "/usr/bin/sudo"
SHELL_PATH = "/bin/bash"
OSASCRIPT_PATH = "/usr/bin/osascript"


class ExecError(Exception):
    """Base exception for command execution failures."""


class CommandFailedError(ExecError):
    """Raised when a command ran but exited non-zero.

    Attributes:
        output: Captured output attached for diagnostics.
        returncode: Exit code of the command.
    """

    def __init__(self, output: str, returncode: int | None = None) -> None:
        self.output = output
        self.returncode = returncode
        super().__init__(output.strip() or f"Command failed (exit {returncode})")


class SpawnFailedError(ExecError):
    """Raised when the process could not be started at all.

    Attributes:
        cause: The underlying OS error.
    """

    def __init__(self, cause: OSError) -> None:
        self.cause = cause
        super().__init__(f"Could not start process: {cause}")


class PrivilegedExecutor:
    """Runs external commands as the current user or with elevation.

    Example:
        >>> executor = PrivilegedExecutor()
        >>> result = asyncio.run(executor.run("/usr/bin/true"))
        >>> result.success
        True
    """

    def __init__(
        self,
        *,
        sudo_path: str = SUDO_PATH,
        shell_path: str = SHELL_PATH,
        osascript_path: str = OSASCRIPT_PATH,
        timeout: float | None = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the executor.

        Args:
            sudo_path: Elevation helper that reads a password from stdin.
            shell_path: Shell used to interpret command strings.
            osascript_path: AppleScript runner used for the native prompt.
            timeout: Maximum time in seconds to wait for each command.
        """
        self._sudo_path = sudo_path
        self._shell_path = shell_path
        self._osascript_path = osascript_path
        self._timeout = timeout

    async def run(self, program: str, args: Sequence[str] = ()) -> CommandResult:
        """Run *program* directly as the current user.

        Returns:
            CommandResult of a successful (exit code zero) run.

        Raises:
            CommandFailedError: On non-zero exit, with stdout and stderr combined.
            SpawnFailedError: If the program cannot be started.
        """
        result = await self._spawn([program, *args])
        if not result.success:
            raise CommandFailedError(result.combined_output, result.returncode)
        return result

    async def run_elevated_interactive(self, command: str) -> CommandResult:
        """Run *command* once with administrator rights via the native dialog.

        The OS shows its own consent prompt; no credential is cached.

        Raises:
            CommandFailedError: If the user cancels or the command fails.
            SpawnFailedError: If the AppleScript runner cannot be started.
        """
        script = f'do shell script "{quote_applescript(command)}" with administrator privileges'
        return await self.run(self._osascript_path, ["-e", script])

    async def run_elevated_with_credential(
        self,
        command: str,
        credential: SecretStr,
        *,
        fresh: bool = False,
    ) -> CommandResult:
        """Run *command* through ``sudo -S`` using a cached credential.

        The credential and a newline are written to the helper's stdin,
        which is then closed. A non-zero exit cannot be told apart from a
        wrong credential, so callers must treat any failure as a stale
        credential.

        Raises:
            CommandFailedError: On non-zero exit, carrying stderr (or stdout
                if stderr is empty).
            SpawnFailedError: If the helper cannot be started.
        """
        argv = [self._sudo_path, "-S", "-p", ""]
        if fresh:
            # Ignore cached sudo timestamps so the credential is really checked
            argv.append("-k")
        argv += [self._shell_path, "-c", command]
        stdin = f"{credential.get_secret_value()}\n"
        result = await self._spawn(argv, stdin=stdin)
        if not result.success:
            output = result.stderr if result.stderr.strip() else result.stdout
            raise CommandFailedError(output, result.returncode)
        return result

    async def _spawn(self, argv: list[str], stdin: str | None = None) -> CommandResult:
        """Start a process, feed optional stdin and capture both streams."""
        # argv may contain the shell command but never the credential
        logger.debug("Executing: %s", argv)
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise SpawnFailedError(e) from e

        payload = stdin.encode("utf-8") if stdin is not None else None
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(payload), self._timeout)
        except TimeoutError:
            proc.kill()
            await proc.wait()
            msg = f"Command timed out after {self._timeout:.0f}s: {argv[0]}"
            raise CommandFailedError(msg, proc.returncode) from None

        return CommandResult(
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            returncode=proc.returncode if proc.returncode is not None else -1,
        )
