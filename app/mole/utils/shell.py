"""Shell execution utilities.

Provides the result type shared by every external command and quoting
helpers for embedding commands in other languages.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0

    @property
    def combined_output(self) -> str:
        """Standard output followed by standard error."""
        return f"{self.stdout}\n{self.stderr}"


def quote_applescript(command: str) -> str:
    """Escape a shell command for embedding in an AppleScript string literal.

    Args:
        command: Shell command to embed.

    Returns:
        The command with backslashes and double quotes escaped.
    """
    return command.replace("\\", "\\\\").replace('"', '\\"')
