"""
Shell utilities for safe subprocess execution.

This module runs the external converters without a shell, captures both
output streams and reports the exit status to the caller unchanged.
"""

import os
import subprocess
from pathlib import Path
from typing import NamedTuple

from loguru import logger

# Conventional shell status for "command not found".
COMMAND_NOT_FOUND = 127


class CommandResult(NamedTuple):
    """Result of a command execution."""
    returncode: int
    stdout: str
    stderr: str


def run_command_safely(
    cmd: list[str],
    cwd: Path | None = None,
    timeout: int = 300,
    env: dict[str, str] | None = None
) -> CommandResult:
    """
    Run a command safely with proper error handling.

    Args:
        cmd: Command to run as list of strings
        cwd: Working directory for the command
        timeout: Timeout in seconds (default: 5 minutes)
        env: Extra environment variables layered over the current environment

    Returns:
        CommandResult with return code and output

    Raises:
        subprocess.TimeoutExpired: If command times out
        FileNotFoundError: If the executable does not exist
        ValueError: If the command is malformed
    """
    _validate_command_safety(cmd)

    run_env = dict(os.environ)
    if env:
        run_env.update(env)

    logger.debug(f"Running command: {' '.join(cmd)}")
    if cwd:
        logger.debug(f"Working directory: {cwd}")

    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            env=run_env,
            check=False  # Don't raise exception on non-zero return code
        )

        logger.debug(f"Command completed with return code: {result.returncode}")
        if result.stdout:
            logger.debug(f"STDOUT: {result.stdout[:200]}...")
        if result.stderr:
            logger.debug(f"STDERR: {result.stderr[:200]}...")

        return CommandResult(
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr
        )

    except subprocess.TimeoutExpired:
        logger.error(f"Command timed out after {timeout}s: {' '.join(cmd)}")
        raise
    except OSError as exc:
        logger.error(f"Command failed to start: {exc}")
        raise


def _validate_command_safety(cmd: list[str]) -> None:
    """
    Validate a command before it is handed to the OS.

    Commands never pass through a shell, so the only things worth rejecting
    are an empty argv and arguments the kernel cannot represent.

    Raises:
        ValueError: If the command is malformed
    """
    if not cmd or not cmd[0]:
        raise ValueError("Empty command")

    for part in cmd:
        if "\x00" in part:
            raise ValueError(f"NUL byte in command argument: {part!r}")


def get_command_version(cmd: str, version_flag: str = "--version") -> str | None:
    """
    Get version information for a command.

    Args:
        cmd: Command to check
        version_flag: Flag to get version (default: --version)

    Returns:
        First line of the version output, or None if the command is unusable
    """
    try:
        result = run_command_safely([cmd, version_flag], timeout=30)
    except (OSError, ValueError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    # unrtf prints its version on stderr
    output = (result.stdout or result.stderr).strip()
    return output.splitlines()[0].strip() if output else ""
