# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Exceptions raised while provisioning or tearing down the fleet."""

from contextlib import contextmanager
from typing import Generator, Optional, Sequence


class CommandError(RuntimeError):
    """An external command exited non-zero, was missing, or timed out."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or f"exit code {returncode}"
        super().__init__(f"Command '{' '.join(self.command)}' failed: {detail}")


class DeploymentError(RuntimeError):
    """A deploy or cleanup step failed."""


class ConfigError(ValueError):
    """Settings could not be loaded."""


@contextmanager
def failure_message(message: str) -> Generator[None, None, None]:
    """Re-raise any CommandError inside the block as a DeploymentError."""
    try:
        yield
    except CommandError as e:
        raise DeploymentError(message) from e
