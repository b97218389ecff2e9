"""Subprocess helpers for the external programs enshrine drives.

Snapshots go through the git CLI and service teardown through systemctl.
Both run non-interactively with captured output; callers translate a
failed CommandResult into their own error type using ``detail``.
"""

import os
import shutil
import subprocess
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of an external program invocation.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
        args: The argv that was executed.
    """

    stdout: str
    stderr: str
    returncode: int
    args: tuple[str, ...] = ()

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0

    @property
    def detail(self) -> str:
        """Best single-line explanation of a failure.

        git and systemctl write diagnostics to stderr, but some subcommands
        only report on stdout.
        """
        text = self.stderr.strip() or self.stdout.strip()
        if not text:
            return f"exit status {self.returncode}"
        return " ".join(text.split())


def run_command(
    args: list[str],
    *,
    check: bool = False,
    timeout: float | None = 60.0,
    cwd: str | None = None,
    env: dict[str, str] | None = None,
    errors: str | None = None,
) -> CommandResult:
    """Execute a program and capture its output.

    Args:
        args: Command and arguments to execute.
        check: If True, raise CalledProcessError on non-zero exit.
        timeout: Maximum time in seconds to wait for command.
            None waits until the command exits (used for service stops,
            which may legitimately take minutes).
        cwd: Working directory for the command. If None, uses current directory.
        env: Additional environment variables (merged with current env).
        errors: Decoding error handler for the output. None is strict, so
            output that is not valid in the locale encoding raises
            UnicodeDecodeError.

    Returns:
        CommandResult with stdout, stderr, returncode and args.

    Raises:
        subprocess.CalledProcessError: If check=True and command fails.
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    full_env = {**os.environ, **env} if env else None
    result = subprocess.run(
        args,
        capture_output=True,
        text=True,
        check=check,
        timeout=timeout,
        cwd=cwd,
        env=full_env,
        errors=errors,
    )
    return CommandResult(
        stdout=result.stdout,
        stderr=result.stderr,
        returncode=result.returncode,
        args=tuple(args),
    )


def command_exists(name: str) -> bool:
    """Check if a program such as git or systemctl is on PATH."""
    return shutil.which(name) is not None
