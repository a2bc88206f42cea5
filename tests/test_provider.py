# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Behavioural tests for :mod:`livelint.provider`."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from pathlib import Path

import pytest
from conftest import HASKELL_SOURCE, PARSE_ERROR, SUGGESTION, FakeRunner, FakeTool, RecordingNotifier, finding

from livelint.config import LinterSettings, ProcessMode, RunTrigger
from livelint.errors import ExecutableNotFoundError, OutputParseError, SpawnError
from livelint.models import Range
from livelint.provider import ExecutableHealth, LintingProvider
from livelint.severity import Severity
from livelint.workspace import TextDocument, Workspace

URI = "file:///work/Main.hs"
CAMEL_CASE = {
    "severity": "Warning",
    "hint": "Use camelCase",
    "from": "my_var",
    "to": "myVar",
    "startLine": 1,
    "startColumn": 5,
    "endLine": 1,
    "endColumn": 10,
}


def _start(
    runner: FakeRunner,
    notifier: RecordingNotifier,
    settings: LinterSettings | None = None,
    root: Path | None = None,
) -> tuple[Workspace, LintingProvider]:
    workspace = Workspace(root, settings=settings or LinterSettings(debounce_ms=0), notifier=notifier)
    provider = LintingProvider(runner=runner)
    provider.activate(workspace)
    return workspace, provider


def _document(text: str = HASKELL_SOURCE, *, uri: str = URI, language_id: str = "haskell") -> TextDocument:
    return TextDocument(uri=uri, language_id=language_id, text=text)


@pytest.mark.asyncio()
async def test_opened_document_gets_one_warning(fake_runner: FakeRunner, notifier: RecordingNotifier) -> None:
    fake_runner.queue([CAMEL_CASE])
    workspace, provider = _start(fake_runner, notifier)

    workspace.open_document(_document("let my_var = 1\n"))
    await provider.wait_idle()

    diagnostics = provider.store.get(URI)
    assert len(diagnostics) == 1
    assert diagnostics[0].severity is Severity.WARNING
    assert diagnostics[0].range == Range.from_coordinates(0, 4, 0, 9)
    assert "my_var" in diagnostics[0].message
    assert "myVar" in diagnostics[0].message
    provider.dispose()


@pytest.mark.asyncio()
async def test_on_type_streams_buffer_from_workspace_root(
    fake_runner: FakeRunner,
    notifier: RecordingNotifier,
    tmp_path: Path,
) -> None:
    settings = LinterSettings(debounce_ms=0, hints=["HLint.hs"], args=["--cpp-simple"])
    workspace, provider = _start(fake_runner, notifier, settings, root=tmp_path)
    document = workspace.open_document(_document())
    await provider.wait_idle()

    workspace.change_document(URI, "main = pure ()\n")
    await provider.wait_idle()

    invocation = fake_runner.invocations[-1]
    assert len(fake_runner.invocations) == 2
    assert invocation.executable == "hlint"
    assert invocation.args == ("-", "--json", "--hint=HLint.hs", "--cpp-simple")
    assert invocation.stdin_text == document.text
    assert invocation.cwd == tmp_path
    provider.dispose()


@pytest.mark.asyncio()
async def test_rapid_changes_are_debounced(fake_runner: FakeRunner, notifier: RecordingNotifier) -> None:
    workspace, provider = _start(fake_runner, notifier, LinterSettings(debounce_ms=20))
    workspace.open_document(_document())
    for index in range(5):
        workspace.change_document(URI, f"main = print {index}\n")
    await provider.wait_idle()

    assert len(fake_runner.invocations) == 1
    assert fake_runner.invocations[0].stdin_text == "main = print 4\n"
    provider.dispose()


@pytest.mark.asyncio()
async def test_changes_during_run_produce_one_trailing_run(
    fake_runner: FakeRunner,
    notifier: RecordingNotifier,
) -> None:
    fake_runner.gate = asyncio.Event()
    workspace, provider = _start(fake_runner, notifier)
    workspace.open_document(_document())
    await fake_runner.started.wait()

    workspace.change_document(URI, "main = print 1\n")
    workspace.change_document(URI, "main = print 2\n")
    fake_runner.gate.set()
    await provider.wait_idle()

    assert [invocation.stdin_text for invocation in fake_runner.invocations] == [HASKELL_SOURCE, "main = print 2\n"]
    assert fake_runner.max_in_flight == 1
    provider.dispose()


@pytest.mark.asyncio()
async def test_on_save_lints_saved_file_only(fake_runner: FakeRunner, notifier: RecordingNotifier) -> None:
    settings = LinterSettings(run=RunTrigger.ON_SAVE, debounce_ms=500)
    workspace, provider = _start(fake_runner, notifier, settings)
    document = workspace.open_document(_document())
    await provider.wait_idle()

    workspace.change_document(URI, "main = print 1\n")
    await provider.wait_idle()
    assert len(fake_runner.invocations) == 1

    workspace.save_document(URI, write=False)
    await provider.wait_idle()

    invocation = fake_runner.invocations[-1]
    assert len(fake_runner.invocations) == 2
    assert invocation.args == ("--json", document.file_name)
    assert invocation.stdin_text is None
    provider.dispose()


@pytest.mark.asyncio()
async def test_switching_to_never_clears_diagnostics(fake_runner: FakeRunner, notifier: RecordingNotifier) -> None:
    fake_runner.queue([SUGGESTION])
    workspace, provider = _start(fake_runner, notifier)
    document = workspace.open_document(_document())
    await provider.wait_idle()
    assert len(provider.store.get(URI)) == 1

    workspace.update_configuration({"run": "never"})
    workspace.change_document(URI, "main = print 1\n")
    await provider.wait_idle()

    assert URI not in provider.store
    assert provider.trigger_lint(document) is None
    assert len(fake_runner.invocations) == 1
    provider.dispose()


@pytest.mark.asyncio()
async def test_other_languages_are_ignored(fake_runner: FakeRunner, notifier: RecordingNotifier) -> None:
    workspace, provider = _start(fake_runner, notifier)

    document = workspace.open_document(_document(uri="file:///work/setup.py", language_id="python"))

    assert provider.trigger_lint(document) is None
    await asyncio.sleep(0)
    assert fake_runner.invocations == []
    provider.dispose()


@pytest.mark.asyncio()
async def test_missing_executable_warns_once_until_path_changes(
    fake_runner: FakeRunner,
    notifier: RecordingNotifier,
) -> None:
    fake_runner.queue(ExecutableNotFoundError("hlint", "not found"))
    workspace, provider = _start(fake_runner, notifier)
    document = workspace.open_document(_document())
    await provider.wait_idle()

    assert provider.health.executable_not_found
    assert len(notifier.warnings) == 1
    assert "hlint" in notifier.warnings[0]

    workspace.change_document(URI, "main = print 1\n")
    workspace.update_configuration(LinterSettings(debounce_ms=0))
    await provider.wait_idle()
    assert provider.trigger_lint(document) is None
    assert len(fake_runner.invocations) == 1
    assert len(notifier.warnings) == 1

    fake_runner.queue([SUGGESTION])
    workspace.update_configuration(LinterSettings(debounce_ms=0, executable_path="/opt/hlint/bin/hlint"))
    await provider.wait_idle()

    assert not provider.health.executable_not_found
    assert fake_runner.invocations[-1].executable == "/opt/hlint/bin/hlint"
    assert len(provider.store.get(URI)) == 1
    provider.dispose()


@pytest.mark.asyncio()
async def test_spawn_error_is_sticky(fake_runner: FakeRunner, notifier: RecordingNotifier) -> None:
    fake_runner.queue(SpawnError("hlint", "Permission denied"))
    workspace, provider = _start(fake_runner, notifier)
    document = workspace.open_document(_document())

    result = await provider.lint_document(document)

    assert result is not None
    assert isinstance(result.error, SpawnError)
    assert notifier.warnings == ["Failed to run 'hlint': Permission denied"]
    assert provider.trigger_lint(document) is None
    provider.dispose()


@pytest.mark.asyncio()
async def test_parse_errors_surface_each_time_and_keep_old_results(
    fake_runner: FakeRunner,
    notifier: RecordingNotifier,
) -> None:
    fake_runner.queue([SUGGESTION], "[{", "[{")
    workspace, provider = _start(fake_runner, notifier)
    document = workspace.open_document(_document())
    await provider.wait_idle()

    first = await provider.lint_document(document)
    second = await provider.lint_document(document)

    assert first is not None and isinstance(first.error, OutputParseError)
    assert second is not None and not second.ok
    assert len(notifier.errors) == 2
    assert not provider.health.executable_not_found
    assert len(provider.store.get(URI)) == 1
    provider.dispose()


@pytest.mark.asyncio()
async def test_line_mode_parses_each_line(fake_runner: FakeRunner, notifier: RecordingNotifier) -> None:
    fake_runner.queue(json.dumps(SUGGESTION) + "\n" + json.dumps([PARSE_ERROR]) + "\n")
    workspace, provider = _start(fake_runner, notifier, LinterSettings(debounce_ms=0, process=ProcessMode.LINE))
    document = workspace.open_document(_document())

    result = await provider.lint_document(document)

    assert result is not None and result.stored
    assert len(provider.store.get(URI)) == 2
    provider.dispose()


@pytest.mark.asyncio()
async def test_ignore_severity_reports_warnings(fake_runner: FakeRunner, notifier: RecordingNotifier) -> None:
    fake_runner.queue([finding(severity="Error")])
    workspace, provider = _start(fake_runner, notifier, LinterSettings(debounce_ms=0, ignore_severity=True))
    document = workspace.open_document(_document())

    await provider.lint_document(document)

    assert [diagnostic.severity for diagnostic in provider.store.get(URI)] == [Severity.WARNING]
    provider.dispose()


@pytest.mark.asyncio()
async def test_close_removes_diagnostics_and_drops_late_results(
    fake_runner: FakeRunner,
    notifier: RecordingNotifier,
) -> None:
    fake_runner.queue([SUGGESTION])
    fake_runner.gate = asyncio.Event()
    workspace, provider = _start(fake_runner, notifier)
    document = workspace.open_document(_document())
    pending = provider.trigger_lint(document)
    assert pending is not None
    await fake_runner.started.wait()

    workspace.close_document(URI)
    fake_runner.gate.set()
    result = await pending

    assert not result.stored
    assert len(result.diagnostics) == 1
    assert URI not in provider.store
    provider.dispose()


@pytest.mark.asyncio()
async def test_reopened_document_gets_fresh_delayer(fake_runner: FakeRunner, notifier: RecordingNotifier) -> None:
    fake_runner.queue([SUGGESTION])
    workspace, provider = _start(fake_runner, notifier)
    workspace.open_document(_document())
    await provider.wait_idle()
    workspace.close_document(URI)

    workspace.open_document(_document())
    await provider.wait_idle()

    assert len(provider.store.get(URI)) == 1
    assert len(fake_runner.invocations) == 2
    provider.dispose()


@pytest.mark.asyncio()
async def test_code_action_applies_once_then_reports_staleness(
    fake_runner: FakeRunner,
    notifier: RecordingNotifier,
) -> None:
    fake_runner.queue([SUGGESTION, PARSE_ERROR])
    workspace, provider = _start(fake_runner, notifier, LinterSettings(debounce_ms=0, run=RunTrigger.ON_SAVE))
    document = workspace.open_document(_document())
    await provider.wait_idle()

    actions = provider.provide_code_actions(document)
    assert [action.replacement for action in actions] == ["print x"]

    assert provider.run_code_action(actions[0])
    assert document.text == "module Main where\n\nmain = print x\n  where x = 1\n"

    assert not provider.run_code_action(actions[0])
    assert notifier.errors == ["Suggestion out of date; it may have been applied twice"]
    provider.dispose()


@pytest.mark.asyncio()
async def test_code_action_for_closed_document_is_refused(
    fake_runner: FakeRunner,
    notifier: RecordingNotifier,
) -> None:
    fake_runner.queue([SUGGESTION])
    workspace, provider = _start(fake_runner, notifier)
    document = workspace.open_document(_document())
    await provider.wait_idle()
    actions = provider.provide_code_actions(document)
    workspace.close_document(URI)

    assert not provider.run_code_action(actions[0])
    assert len(notifier.errors) == 1
    provider.dispose()


@pytest.mark.asyncio()
async def test_dispose_detaches_from_workspace(fake_runner: FakeRunner, notifier: RecordingNotifier) -> None:
    fake_runner.queue([SUGGESTION])
    workspace, provider = _start(fake_runner, notifier)
    workspace.open_document(_document())
    await provider.wait_idle()

    provider.dispose()
    workspace.change_document(URI, "main = print 1\n")
    await asyncio.sleep(0.01)

    assert len(provider.store) == 0
    assert len(fake_runner.invocations) == 1
    assert len(workspace.did_change) == 0
    assert len(workspace.did_open) == 0


@pytest.mark.asyncio()
async def test_real_tool_end_to_end(
    make_tool: Callable[..., FakeTool],
    notifier: RecordingNotifier,
    tmp_path: Path,
) -> None:
    tool = make_tool([CAMEL_CASE])
    settings = LinterSettings(executable_path=str(tool.path), debounce_ms=0)
    workspace = Workspace(tmp_path, settings=settings, notifier=notifier)
    provider = LintingProvider()
    provider.activate(workspace)
    document = workspace.open_document(_document("let my_var = 1\n"))

    result = await provider.lint_document(document)

    assert result is not None and result.stored
    assert tool.args() == ["-", "--json"]
    assert tool.stdin() == "let my_var = 1\n"
    assert provider.store.get(URI)[0].range == Range.from_coordinates(0, 4, 0, 9)
    assert notifier.warnings == []
    provider.dispose()


@pytest.mark.asyncio()
async def test_non_zero_exit_with_findings_is_a_normal_pass(
    make_tool: Callable[..., FakeTool],
    notifier: RecordingNotifier,
    tmp_path: Path,
) -> None:
    tool = make_tool([CAMEL_CASE], exit_code=1, stderr="1 hint\n")
    settings = LinterSettings(executable_path=str(tool.path), debounce_ms=0)
    workspace = Workspace(tmp_path, settings=settings, notifier=notifier)
    provider = LintingProvider()
    provider.activate(workspace)

    result = await provider.lint_document(workspace.open_document(_document("let my_var = 1\n")))

    assert result is not None
    assert result.ok and result.stored
    assert result.returncode == 1
    assert len(provider.store.get(URI)) == 1
    assert notifier.warnings == [] and notifier.errors == []
    provider.dispose()


@pytest.mark.asyncio()
async def test_real_missing_tool_is_reported(notifier: RecordingNotifier, tmp_path: Path) -> None:
    settings = LinterSettings(executable_path=str(tmp_path / "hlint-missing"), debounce_ms=0)
    workspace = Workspace(tmp_path, settings=settings, notifier=notifier)
    provider = LintingProvider()
    provider.activate(workspace)

    result = await provider.lint_document(workspace.open_document(_document()))

    assert result is not None
    assert isinstance(result.error, ExecutableNotFoundError)
    assert len(notifier.warnings) == 1
    assert "executablePath" in notifier.warnings[0]
    provider.dispose()


def test_health_resets_only_for_a_different_path() -> None:
    health = ExecutableHealth()

    assert health.mark_failed("hlint")
    assert not health.mark_failed("hlint")
    health.reconsider("hlint")
    assert health.executable_not_found
    health.reconsider("/usr/local/bin/hlint")
    assert not health.executable_not_found
    assert health.failed_executable is None
