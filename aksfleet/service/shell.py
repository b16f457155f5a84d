# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Run external commands and surface their failures."""

import subprocess
from typing import Callable, Mapping, Optional, Sequence

from aksfleet.config.logging import get_logger
from aksfleet.errors import CommandError

logger = get_logger(__name__)


# Signature shared by run_command and the test recorders
Runner = Callable[..., Optional[str]]


def run_command(
    command: Sequence[str],
    capture_output: bool = False,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[str] = None,
    timeout: Optional[int] = None,
) -> Optional[str]:
    """Execute a command, raising CommandError if it does not succeed.

    Args:
        command (Sequence[str]): Argument vector, never passed through a shell.
        capture_output (bool): Capture and return stdout instead of streaming it.
        env (Mapping[str, str]): Full environment for the child process.
        cwd (str): Working directory for the child process.
        timeout (int): Seconds before the command is abandoned.

    Returns:
        str | None: Stripped stdout when capturing, otherwise None.
    """
    command = list(command)
    cmdline = " ".join(command)
    logger.debug("Running command", command=cmdline)
    try:
        result = subprocess.run(
            command,
            capture_output=capture_output,
            text=True,
            check=True,
            env=dict(env) if env is not None else None,
            cwd=cwd,
            timeout=timeout,
        )
    except subprocess.CalledProcessError as e:
        stderr = e.stderr.strip() if e.stderr else ""
        logger.error("Command failed", command=cmdline, returncode=e.returncode, stderr=stderr)
        raise CommandError(command, e.returncode, stderr) from e
    except subprocess.TimeoutExpired as e:
        logger.error("Command timed out", command=cmdline, timeout=timeout)
        raise CommandError(command, None, f"timed out after {timeout} seconds") from e
    except FileNotFoundError as e:
        logger.error("Executable not found", command=cmdline)
        raise CommandError(command, None, f"{command[0]}: not found") from e

    if capture_output:
        output = result.stdout.strip()
        logger.debug("Command output", command=cmdline, output=output)
        return output
    return None
