# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import asyncio
import json
import stat
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from livelint.process import Invocation, ProcessOutput

SUGGESTION: dict[str, Any] = {
    "module": ["Main"],
    "decl": ["main"],
    "severity": "Suggestion",
    "hint": "Use print",
    "file": "Main.hs",
    "startLine": 3,
    "startColumn": 8,
    "endLine": 3,
    "endColumn": 25,
    "from": "putStrLn (show x)",
    "to": "print x",
    "note": [],
}

PARSE_ERROR: dict[str, Any] = {
    "module": [],
    "decl": [],
    "severity": "Error",
    "hint": "Parse error: possibly incorrect indentation",
    "file": "Main.hs",
    "startLine": 5,
    "startColumn": 1,
    "endLine": 5,
    "endColumn": 2,
    "from": "  x",
    "to": None,
    "note": [],
}

HASKELL_SOURCE = "module Main where\n\nmain = putStrLn (show x)\n  where x = 1\n"


def finding(**overrides: Any) -> dict[str, Any]:
    """Return a copy of :data:`SUGGESTION` with ``overrides`` applied."""

    return {**SUGGESTION, **overrides}


@dataclass(slots=True)
class RecordingNotifier:
    """Notifier collecting messages instead of printing them."""

    infos: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def show_info(self, message: str) -> None:
        self.infos.append(message)

    def show_warning(self, message: str) -> None:
        self.warnings.append(message)

    def show_error(self, message: str) -> None:
        self.errors.append(message)


@dataclass(slots=True)
class FakeRunner:
    """In-process stand-in for :func:`livelint.process.run_invocation`.

    Each call pops the next queued output (or repeats the last one) and
    records the invocation. Setting ``gate`` holds every run until the event
    is set, which keeps a run in flight for as long as a test needs.
    """

    outputs: list[str | BaseException] = field(default_factory=lambda: ["[]"])
    invocations: list[Invocation] = field(default_factory=list)
    gate: asyncio.Event | None = None
    started: asyncio.Event = field(default_factory=asyncio.Event)
    in_flight: int = 0
    max_in_flight: int = 0

    async def __call__(self, invocation: Invocation) -> ProcessOutput:
        self.invocations.append(invocation)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.started.set()
        try:
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
            output = self.outputs.pop(0) if len(self.outputs) > 1 else self.outputs[0]
        finally:
            self.in_flight -= 1
        if isinstance(output, BaseException):
            raise output
        return ProcessOutput(lines=tuple(output.splitlines()), returncode=0)

    def queue(self, *payloads: list[dict[str, Any]] | str | BaseException) -> None:
        self.outputs = [
            payload if isinstance(payload, (str, BaseException)) else json.dumps(payload) for payload in payloads
        ]


@dataclass(slots=True)
class FakeTool:
    """Executable script imitating the analysis tool."""

    path: Path
    args_log: Path
    stdin_log: Path

    def args(self) -> list[str]:
        return self.args_log.read_text(encoding="utf-8").splitlines()

    def stdin(self) -> str:
        return self.stdin_log.read_text(encoding="utf-8")


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def make_tool(tmp_path: Path) -> Callable[..., FakeTool]:
    """Return a factory writing executable fake tools into ``tmp_path``."""

    counter = 0

    def factory(stdout: str | list[dict[str, Any]] = "[]", *, exit_code: int = 0, stderr: str = "") -> FakeTool:
        nonlocal counter
        counter += 1
        text = stdout if isinstance(stdout, str) else json.dumps(stdout)
        script = tmp_path / f"fake-tool-{counter}"
        args_log = tmp_path / f"fake-tool-{counter}.args"
        stdin_log = tmp_path / f"fake-tool-{counter}.stdin"
        script.write_text(
            "\n".join(
                [
                    f"#!{sys.executable}",
                    "import pathlib, sys",
                    "args = sys.argv[1:]",
                    f"pathlib.Path({str(args_log)!r}).write_text('\\n'.join(args), encoding='utf-8')",
                    "if '-' in args:",
                    f"    pathlib.Path({str(stdin_log)!r}).write_bytes(sys.stdin.buffer.read())",
                    f"sys.stderr.write({stderr!r})",
                    f"sys.stdout.write({text!r})",
                    "sys.stdout.flush()",
                    f"sys.exit({exit_code})",
                    "",
                ]
            ),
            encoding="utf-8",
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return FakeTool(path=script, args_log=args_log, stdin_log=stdin_log)

    return factory
