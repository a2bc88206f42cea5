# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Drive the linting provider from one-shot command-line runs."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from ..config import LinterSettings, RunTrigger
from ..fixes import FixAction, fix_action
from ..provider import LintingProvider, LintResult, Runner
from ..process import run_invocation
from ..workspace import Notifier, TextDocument, Workspace
from .shared import CLIError


@dataclass(slots=True)
class DocumentReport:
    """Lint outcome for one document."""

    document: TextDocument
    result: LintResult | None

    @property
    def failed(self) -> bool:
        """Return ``True`` when the pass did not run or did not complete."""

        return self.result is None or not self.result.ok


@dataclass(slots=True)
class FixReport:
    """Outcome of applying fixes to one file."""

    document: TextDocument
    lint: LintResult | None
    applied: list[FixAction]
    refused: list[FixAction]


def read_source(path: Path, *, language_id: str) -> TextDocument:
    """Open the file at ``path`` as a document, reporting unreadable files as CLI errors.

    Raises:
        CLIError: If the file cannot be read or is not valid UTF-8.
    """

    try:
        return TextDocument.from_path(path, language_id=language_id)
    except UnicodeDecodeError as exc:
        raise CLIError(f"Cannot decode {path} as UTF-8: {exc.reason} at byte {exc.start}") from exc
    except OSError as exc:
        raise CLIError(f"Cannot read {path}: {exc.strerror or exc}") from exc


def file_settings(settings: LinterSettings) -> LinterSettings:
    """Return ``settings`` adjusted to lint saved files without debounce."""

    return settings.model_copy(update={"run": RunTrigger.ON_SAVE})


def buffer_settings(settings: LinterSettings) -> LinterSettings:
    """Return ``settings`` adjusted to lint a buffer through stdin without debounce."""

    return settings.model_copy(update={"run": RunTrigger.ON_TYPE, "debounce_ms": 0})


async def lint_documents(
    root: Path,
    settings: LinterSettings,
    documents: Sequence[TextDocument],
    *,
    notifier: Notifier,
    runner: Runner = run_invocation,
) -> list[DocumentReport]:
    """Open ``documents`` in a fresh workspace and lint each of them once.

    Args:
        root: Workspace root used as the tool's working directory.
        settings: Settings in effect; the run trigger selects file or buffer mode.
        documents: Documents to lint, in order.
        notifier: Sink for user-visible messages.
        runner: Coroutine function executing the tool.

    Returns:
        list[DocumentReport]: One report per document.
    """

    workspace = Workspace(root, settings=settings, notifier=notifier)
    provider = LintingProvider(runner=runner)
    provider.activate(workspace)
    reports: list[DocumentReport] = []
    try:
        for document in documents:
            opened = workspace.open_document(document)
            result = await provider.lint_document(opened)
            reports.append(DocumentReport(document=opened, result=result))
    finally:
        provider.dispose()
    return reports


async def fix_document(
    root: Path,
    settings: LinterSettings,
    path: Path,
    *,
    notifier: Notifier,
    selected: Sequence[int] = (),
    write: bool = True,
    runner: Runner = run_invocation,
) -> FixReport:
    """Lint ``path`` and apply its suggestions from the bottom of the file up.

    Args:
        root: Workspace root used as the tool's working directory.
        settings: Settings in effect; linting runs in file mode.
        path: File to fix.
        notifier: Sink for user-visible messages.
        selected: 1-based diagnostic numbers, as listed by the lint command,
            to apply; every fixable diagnostic when empty. Numbers of
            diagnostics without a fix select nothing.
        write: Save the fixed buffer back to ``path``.
        runner: Coroutine function executing the tool.

    Returns:
        FixReport: Applied and refused actions.

    Raises:
        CLIError: If ``path`` cannot be read.
    """

    workspace = Workspace(root, settings=file_settings(settings), notifier=notifier)
    provider = LintingProvider(runner=runner)
    provider.activate(workspace)
    try:
        document = workspace.open_document(read_source(path, language_id=workspace.settings.language_id))
        result = await provider.lint_document(document)
        if result is None or not result.ok:
            return FixReport(document=document, lint=result, applied=[], refused=[])
        wanted = set(selected)
        chosen = [
            action
            for number, diagnostic in enumerate(provider.store.get(document.uri), start=1)
            if (not wanted or number in wanted) and (action := fix_action(document.uri, diagnostic)) is not None
        ]
        chosen.sort(key=lambda action: (action.range.start.line, action.range.start.character), reverse=True)
        applied: list[FixAction] = []
        refused: list[FixAction] = []
        for action in chosen:
            (applied if provider.run_code_action(action) else refused).append(action)
    finally:
        provider.dispose()
    if applied and write:
        workspace.save_document(document.uri)
    return FixReport(document=document, lint=result, applied=applied, refused=refused)


__all__ = [
    "DocumentReport",
    "FixReport",
    "buffer_settings",
    "file_settings",
    "fix_document",
    "lint_documents",
    "read_source",
]
