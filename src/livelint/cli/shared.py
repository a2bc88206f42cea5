# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared utilities for CLI commands (logging, errors, settings)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated, Any, Final

import typer
from rich.console import Console

from ..config import LinterSettings, SettingsLoader
from ..logging import fail as core_fail
from ..logging import info as core_info
from ..logging import ok as core_ok
from ..logging import warn as core_warn

EXIT_FINDINGS: Final[int] = 1
EXIT_FAILURE: Final[int] = 2

RootOption = Annotated[
    Path | None,
    typer.Option("--root", "-r", help="Workspace root; the tool runs from here."),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Project settings file replacing <root>/.livelint.toml."),
]
EmojiOption = Annotated[
    bool,
    typer.Option("--no-emoji", help="Disable emoji in messages."),
]


class CLIError(RuntimeError):
    """Error raised when a CLI command fails and should exit with a status code."""

    def __init__(self, message: str, *, exit_code: int = EXIT_FAILURE) -> None:
        """Initialise the error with a message and exit code.

        Args:
            message: Human-readable error message shown to the user.
            exit_code: Exit status associated with the failure.
        """

        super().__init__(message)
        self.exit_code = exit_code


@dataclass(slots=True)
class CLILogger:
    """Adapter around project logging helpers respecting CLI emoji settings.

    Status messages go to standard error so machine-readable output on
    standard output stays clean.
    """

    console: Console
    use_emoji: bool

    def fail(self, message: str) -> None:
        """Log a failure message honouring emoji preferences."""

        core_fail(message, use_emoji=self.use_emoji, stderr=True)

    def warn(self, message: str) -> None:
        """Log a warning message honouring emoji preferences."""

        core_warn(message, use_emoji=self.use_emoji, stderr=True)

    def info(self, message: str) -> None:
        """Log an informational message honouring emoji preferences."""

        core_info(message, use_emoji=self.use_emoji, stderr=True)

    def ok(self, message: str) -> None:
        """Log a success message honouring emoji preferences."""

        core_ok(message, use_emoji=self.use_emoji, stderr=True)

    def echo(self, message: str) -> None:
        """Write ``message`` to stdout using Typer's echo helper."""

        typer.echo(message)


def build_cli_logger(*, emoji: bool, no_color: bool = False) -> CLILogger:
    """Return a ``CLILogger`` configured for the provided emoji preference.

    Args:
        emoji: Whether log output may include emoji glyphs.
        no_color: Whether terminal colour output should be disabled.

    Returns:
        CLILogger: Logger instance bound to a dedicated Rich console.
    """

    console = Console(no_color=no_color, highlight=False)
    return CLILogger(console=console, use_emoji=emoji)


@dataclass(slots=True)
class CLISettings:
    """Settings resolved for one command invocation."""

    root: Path
    settings: LinterSettings
    warnings: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)


def resolve_settings(
    root: Path | None,
    config: Path | None,
    *,
    overrides: dict[str, Any] | None = None,
) -> CLISettings:
    """Load the layered settings for ``root``.

    Args:
        root: Workspace root; the current directory when omitted.
        config: Explicit project settings file.
        overrides: Settings applied on top of every file.

    Returns:
        CLISettings: Resolved root, settings and loader warnings.

    Raises:
        CLIError: If ``config`` names a missing file.
    """

    resolved_root = (root or Path.cwd()).resolve()
    if config is not None and not config.is_file():
        raise CLIError(f"Settings file not found: {config}")
    result = SettingsLoader.for_root(resolved_root, project_config=config, overrides=overrides).load()
    return CLISettings(
        root=resolved_root,
        settings=result.settings,
        warnings=list(result.warnings),
        sources=list(result.sources),
    )


__all__ = [
    "CLIError",
    "CLILogger",
    "CLISettings",
    "ConfigOption",
    "EXIT_FAILURE",
    "EXIT_FINDINGS",
    "EmojiOption",
    "RootOption",
    "build_cli_logger",
    "resolve_settings",
]
