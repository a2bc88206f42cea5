# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Live linting of editor buffers through an external analysis tool."""

from __future__ import annotations

from importlib import metadata

from .config import LinterSettings, ProcessMode, RunTrigger, SettingsLoader, load_settings
from .decoder import LineDecoder
from .delayer import DelayerState, ThrottledDelayer
from .errors import (
    ConfigError,
    DelayerDisposedError,
    ExecutableNotFoundError,
    FixError,
    LiveLintError,
    OutputParseError,
    ProcessError,
    SpawnError,
    StaleFixError,
)
from .fixes import FixAction, apply_fix, code_actions
from .mapper import parse_lines, parse_output, to_diagnostic
from .models import Diagnostic, DiagnosticKind, LintItem, Position, Range
from .process import Invocation, ProcessOutput, run_invocation
from .provider import LintingProvider, LintResult
from .severity import Severity
from .store import DiagnosticStore
from .workspace import TextDocument, Workspace

try:
    __version__ = metadata.version("livelint")
except metadata.PackageNotFoundError:  # pragma: no cover - local development fallback
    __version__ = "0.0.0"

__all__ = [
    "ConfigError",
    "DelayerDisposedError",
    "DelayerState",
    "Diagnostic",
    "DiagnosticKind",
    "DiagnosticStore",
    "ExecutableNotFoundError",
    "FixAction",
    "FixError",
    "Invocation",
    "LineDecoder",
    "LintItem",
    "LintResult",
    "LinterSettings",
    "LintingProvider",
    "LiveLintError",
    "OutputParseError",
    "Position",
    "ProcessError",
    "ProcessMode",
    "ProcessOutput",
    "Range",
    "RunTrigger",
    "SettingsLoader",
    "Severity",
    "SpawnError",
    "StaleFixError",
    "TextDocument",
    "ThrottledDelayer",
    "Workspace",
    "__version__",
    "apply_fix",
    "code_actions",
    "load_settings",
    "parse_lines",
    "parse_output",
    "run_invocation",
    "to_diagnostic",
]
