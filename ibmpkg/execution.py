"""Synchronous command execution."""

import logging
import subprocess
from dataclasses import dataclass

_logging = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    output: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_command(argv: list[str], user: str | None = None) -> CommandResult:
    """Run a command to completion and return its combined output.

    stdout and stderr are merged so the output reads the way it would on a
    terminal. There is no timeout: installs can legitimately run for a very
    long time.

    Args:
        argv: Program and arguments; no shell is involved
        user: Run the command as this user (requires privileges)
    """
    command = subprocess.list2cmdline(argv)
    _logging.debug(f"Running command: {command}" + (f" (as {user})" if user else ""))
    try:
        completed = subprocess.run(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            user=user,
        )
    except (OSError, ValueError, KeyError) as e:
        # KeyError: unknown user name
        _logging.error(f"Command execution failed: {type(e).__name__}: {e} | Command: {command}")
        return CommandResult(output=f"Error: {e}", returncode=1)

    output = (completed.stdout or "").strip()
    if completed.returncode != 0:
        _logging.debug(f"Command exited {completed.returncode}: {output}")
    return CommandResult(output=output, returncode=completed.returncode)


__all__ = [
    "CommandResult",
    "run_command",
]
