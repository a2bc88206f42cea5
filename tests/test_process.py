# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for :mod:`livelint.process` against a fake tool script."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from conftest import SUGGESTION, FakeTool

from livelint.errors import ExecutableNotFoundError, SpawnError
from livelint.process import Invocation, resolve_executable, run_invocation


@pytest.mark.asyncio()
async def test_buffer_mode_feeds_stdin_and_decodes_stdout(make_tool: Callable[..., FakeTool], tmp_path: Path) -> None:
    tool = make_tool("[1]\r\n[2]\n\n[3]")
    invocation = Invocation(
        executable=str(tool.path),
        args=("-", "--json"),
        cwd=tmp_path,
        stdin_text="main = putStrLn \"λ\"\n",
    )

    output = await run_invocation(invocation)

    assert output.lines == ("[1]", "[2]", "[3]")
    assert output.text == "[1]\n[2]\n[3]"
    assert output.returncode == 0
    assert tool.args() == ["-", "--json"]
    assert tool.stdin() == "main = putStrLn \"λ\"\n"


@pytest.mark.asyncio()
async def test_file_mode_passes_no_stdin(make_tool: Callable[..., FakeTool], tmp_path: Path) -> None:
    tool = make_tool([SUGGESTION])
    source = tmp_path / "Main.hs"
    source.write_text("main = pure ()\n", encoding="utf-8")

    output = await run_invocation(Invocation(executable=str(tool.path), args=("--json", str(source))))

    assert tool.args() == ["--json", str(source)]
    assert not tool.stdin_log.exists()
    assert '"hint": "Use print"' in output.text


@pytest.mark.asyncio()
async def test_exit_status_and_stderr_are_recorded(make_tool: Callable[..., FakeTool]) -> None:
    tool = make_tool("[]", exit_code=1, stderr="hints found\n")

    output = await run_invocation(Invocation(executable=str(tool.path), args=("--json",)))

    assert output.returncode == 1
    assert output.stderr == "hints found\n"
    assert output.lines == ("[]",)


@pytest.mark.asyncio()
async def test_unencodable_buffer_text_is_replaced(make_tool: Callable[..., FakeTool], tmp_path: Path) -> None:
    tool = make_tool("[]")
    invocation = Invocation(executable=str(tool.path), args=("-", "--json"), cwd=tmp_path, stdin_text="x = '\ud800'\n")

    output = await run_invocation(invocation)

    assert output.returncode == 0
    assert output.lines == ("[]",)
    assert tool.stdin() == "x = '?'\n"


@pytest.mark.asyncio()
async def test_missing_executable_raises_not_found(tmp_path: Path) -> None:
    with pytest.raises(ExecutableNotFoundError) as excinfo:
        await run_invocation(Invocation(executable=str(tmp_path / "no-such-tool")))

    assert excinfo.value.executable.endswith("no-such-tool")


@pytest.mark.asyncio()
async def test_non_executable_file_raises_spawn_error(tmp_path: Path) -> None:
    script = tmp_path / "not-executable"
    script.write_text("#!/bin/sh\n", encoding="utf-8")
    script.chmod(0o644)

    with pytest.raises(SpawnError):
        await run_invocation(Invocation(executable=str(script)))


def test_resolve_executable_searches_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    tool = tmp_path / "hlint"
    tool.write_text("#!/bin/sh\n", encoding="utf-8")
    tool.chmod(0o755)
    monkeypatch.setenv("PATH", str(tmp_path))

    assert resolve_executable("hlint") == str(tool)
    assert resolve_executable("./relative/tool") == "relative/tool"
    with pytest.raises(ExecutableNotFoundError):
        resolve_executable("missing-tool")
    with pytest.raises(ExecutableNotFoundError):
        resolve_executable("")


def test_command_line_and_mode() -> None:
    buffer = Invocation(executable="hlint", args=("-", "--json"), stdin_text="x")
    file = Invocation(executable="hlint", args=("--json", "Main.hs"))

    assert buffer.buffer_mode
    assert not file.buffer_mode
    assert file.command_line() == "hlint --json Main.hs"
