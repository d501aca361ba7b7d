"""Subprocess helpers for commands run against the host."""

import os
import shlex
import subprocess
from typing import List, Mapping, Optional, Sequence

from wallpanel.errors import CommandError
from wallpanel.logging_config import get_logger

logger = get_logger(__name__)


def format_argv(argv: Sequence[str]) -> str:
    """Render an argv list the way it would be typed in a shell."""
    return " ".join(shlex.quote(a) for a in argv)


def run_command(
    cmd: Sequence[str],
    check: bool = True,
    capture_output: bool = True,
    timeout: Optional[float] = None,
    env: Optional[Mapping[str, str]] = None,
    input_text: Optional[str] = None,
) -> subprocess.CompletedProcess:
    """Run a command synchronously with consistent logging.

    Args:
        cmd: Command to run as a list of strings
        check: If True, raise CommandError on a non-zero exit code
        capture_output: If True, capture stdout and stderr (merged into
            ``CommandError.output`` on failure); otherwise the command
            inherits the terminal
        timeout: Maximum time in seconds to wait for the process
        env: Extra environment variables layered over the current environment
        input_text: Optional text fed to the command's stdin

    Returns:
        CompletedProcess instance with returncode, stdout, stderr attributes

    Raises:
        CommandError: If check=True and the command fails, times out or
            cannot be executed
    """
    argv: List[str] = list(cmd)
    logger.info("CMD %s", format_argv(argv))

    try:
        result = subprocess.run(
            argv,
            input=input_text,
            text=True,
            stdout=subprocess.PIPE if capture_output else None,
            stderr=subprocess.PIPE if capture_output else None,
            timeout=timeout,
            env=dict(os.environ, **(env or {})),
        )
    except FileNotFoundError:
        if check:
            raise CommandError(argv, 127, f"{argv[0]}: command not found")
        return subprocess.CompletedProcess(argv, 127, "", f"{argv[0]}: command not found")
    except subprocess.TimeoutExpired as e:
        output = e.output if isinstance(e.output, str) else ""
        if check:
            raise CommandError(argv, -1, f"timed out after {timeout}s\n{output}")
        return subprocess.CompletedProcess(argv, -1, output, f"timed out after {timeout}s")

    if result.stdout:
        logger.debug("STDOUT %s", result.stdout.strip())
    if result.stderr:
        logger.debug("STDERR %s", result.stderr.strip())

    if check and result.returncode != 0:
        output = "\n".join(part.strip() for part in (result.stdout, result.stderr) if part)
        raise CommandError(argv, result.returncode, output)

    return result
