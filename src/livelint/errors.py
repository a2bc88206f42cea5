# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy shared across the livelint package."""

from __future__ import annotations


class LiveLintError(Exception):
    """Base class for every error raised by livelint."""


class ConfigError(LiveLintError):
    """Raised when configuration input is invalid."""


class ProcessError(LiveLintError):
    """Raised when the external analysis tool cannot be started."""

    def __init__(self, executable: str, message: str) -> None:
        """Initialise the error with the offending executable and a message.

        Args:
            executable: Executable path or name that failed to start.
            message: Best available description of the failure.
        """

        super().__init__(message)
        self.executable = executable


class ExecutableNotFoundError(ProcessError):
    """Raised when the configured executable does not exist."""


class SpawnError(ProcessError):
    """Raised when the executable exists but the operating system refused to run it."""


class OutputParseError(LiveLintError):
    """Raised when the tool produced output that is not the expected JSON."""

    def __init__(self, message: str, *, output: str = "") -> None:
        super().__init__(message)
        self.output = output


class FixError(LiveLintError):
    """Raised when a suggested fix cannot be applied."""


class StaleFixError(FixError):
    """Raised when the text targeted by a fix changed after it was suggested."""

    DEFAULT_MESSAGE = "Suggestion out of date; it may have been applied twice"

    def __init__(self, message: str = DEFAULT_MESSAGE, *, expected: str = "", actual: str = "") -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class DelayerDisposedError(LiveLintError):
    """Raised when work is triggered on a disposed delayer."""


__all__ = [
    "ConfigError",
    "DelayerDisposedError",
    "ExecutableNotFoundError",
    "FixError",
    "LiveLintError",
    "OutputParseError",
    "ProcessError",
    "SpawnError",
    "StaleFixError",
]
