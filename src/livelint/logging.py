# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Console logging helpers with optional colour and emoji support."""

from __future__ import annotations

import sys
from enum import IntEnum
from functools import cache
from typing import Literal

from rich.console import Console
from rich.text import Text


def detect_tty(*, stderr: bool = False) -> bool:
    """Return ``True`` when the selected stream appears to be backed by a terminal.

    Args:
        stderr: Inspect ``sys.stderr`` instead of ``sys.stdout``.

    Returns:
        bool: ``True`` when the stream reports TTY support.
    """

    stream = sys.stderr if stderr else sys.stdout
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


class RichConsoleManager:
    """Provision Rich :class:`Console` instances keyed by presentation settings."""

    def __init__(self) -> None:
        self._cache: dict[tuple[bool, bool, bool, bool], Console] = {}

    def get(self, *, color: bool, emoji: bool, stderr: bool = False) -> Console:
        """Return a console configured for ``color`` and ``emoji`` preferences.

        Args:
            color: ``True`` when ANSI colour output should be enabled.
            emoji: ``True`` when Rich should render emoji glyphs.
            stderr: Write to standard error instead of standard output.

        Returns:
            Console: Cached or newly constructed console matching the preferences.
        """

        tty = detect_tty(stderr=stderr)
        key = (color, emoji, stderr, tty)
        if key not in self._cache:
            color_system: Literal["auto"] | None = "auto" if color and tty else None
            self._cache[key] = Console(
                color_system=color_system,
                force_terminal=tty,
                no_color=not (color and tty),
                emoji=emoji,
                soft_wrap=True,
                stderr=stderr,
            )
        return self._cache[key]


@cache
def get_console_manager() -> RichConsoleManager:
    """Return the process-wide :class:`RichConsoleManager`."""

    return RichConsoleManager()


def emoji(symbol: str, enable: bool) -> str:
    """Return *symbol* when emoji output is enabled, otherwise blank."""

    return symbol if enable else ""


def _print_line(
    msg: str,
    *,
    style: str | None,
    use_emoji: bool,
    use_color: bool | None = None,
    stderr: bool = False,
) -> None:
    color_enabled = detect_tty(stderr=stderr) if use_color is None else use_color
    console = get_console_manager().get(color=color_enabled, emoji=use_emoji, stderr=stderr)
    text = Text(msg)
    if style and color_enabled:
        text.stylize(style)
    console.print(text)


def info(msg: str, *, use_emoji: bool, use_color: bool | None = None, stderr: bool = False) -> None:
    """Emit an informational message.

    Args:
        msg: Message text to display.
        use_emoji: Flag indicating whether emoji output is desired.
        use_color: Optional explicit colour flag overriding TTY detection.
        stderr: Write to standard error instead of standard output.
    """

    prefix = emoji("ℹ️ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="cyan", use_emoji=use_emoji, use_color=use_color, stderr=stderr)


def ok(msg: str, *, use_emoji: bool, use_color: bool | None = None, stderr: bool = False) -> None:
    """Emit a success message."""

    prefix = emoji("✅ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="green", use_emoji=use_emoji, use_color=use_color, stderr=stderr)


def warn(msg: str, *, use_emoji: bool, use_color: bool | None = None, stderr: bool = False) -> None:
    """Emit a warning message."""

    prefix = emoji("⚠️ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="yellow", use_emoji=use_emoji, use_color=use_color, stderr=stderr)


def fail(msg: str, *, use_emoji: bool, use_color: bool | None = None, stderr: bool = False) -> None:
    """Emit an error message."""

    prefix = emoji("❌ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="red", use_emoji=use_emoji, use_color=use_color, stderr=stderr)


class LogLevel(IntEnum):
    """Minimum level of provider messages written to the log."""

    NONE = 0
    ERROR = 1
    WARN = 2
    INFO = 3
    LOG = 4

    @classmethod
    def parse(cls, value: object, default: LogLevel | None = None) -> LogLevel:
        """Return the level named by ``value``.

        Args:
            value: Level name (case-insensitive), number or :class:`LogLevel`.
            default: Level returned for unknown values; ``ERROR`` when omitted.

        Returns:
            LogLevel: Matching level, or ``default``.
        """

        fallback = cls.ERROR if default is None else default
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                return fallback
        if isinstance(value, str):
            name = value.strip().upper()
            if name == "WARNING":
                name = "WARN"
            return cls.__members__.get(name, fallback)
        return fallback


_LEVEL_STYLES: dict[LogLevel, str] = {
    LogLevel.ERROR: "red",
    LogLevel.WARN: "yellow",
    LogLevel.INFO: "cyan",
    LogLevel.LOG: "dim",
}


class LintLogger:
    """Level-gated log for the linting provider.

    Messages are written to standard error through Rich; surfacing messages
    to the user is left to the host notifier.
    """

    def __init__(
        self,
        prefix: str = "LIVELINT",
        level: LogLevel = LogLevel.ERROR,
        *,
        console: Console | None = None,
    ) -> None:
        """Create a logger.

        Args:
            prefix: Text prepended to every message.
            level: Most verbose level written.
            console: Console override; defaults to a managed stderr console.
        """

        self.prefix = prefix
        self.level = level
        self._console = console

    def set_level(self, level: LogLevel) -> None:
        """Change the most verbose level written."""

        self.level = level

    def enabled_for(self, level: LogLevel) -> bool:
        """Return ``True`` when messages at ``level`` are written."""

        return level is not LogLevel.NONE and self.level >= level

    def log(self, message: str) -> None:
        """Write a debug-level trace message."""

        self._emit(LogLevel.LOG, message)

    def info(self, message: str) -> None:
        """Write an informational message."""

        self._emit(LogLevel.INFO, message)

    def warn(self, message: str) -> None:
        """Write a warning."""

        self._emit(LogLevel.WARN, message)

    def error(self, message: str) -> None:
        """Write an error."""

        self._emit(LogLevel.ERROR, message)

    def _emit(self, level: LogLevel, message: str) -> None:
        if not self.enabled_for(level):
            return
        console = self._console or get_console_manager().get(color=True, emoji=False, stderr=True)
        text = Text(f"{self.prefix} {message}")
        text.stylize(_LEVEL_STYLES[level])
        console.print(text)


__all__ = [
    "LintLogger",
    "LogLevel",
    "RichConsoleManager",
    "detect_tty",
    "emoji",
    "fail",
    "get_console_manager",
    "info",
    "ok",
    "warn",
]
