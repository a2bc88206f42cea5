# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI command linting files or standard input."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from ...workspace import ConsoleNotifier, TextDocument
from ..runtime import DocumentReport, buffer_settings, file_settings, lint_documents, read_source
from ..shared import (
    EXIT_FAILURE,
    EXIT_FINDINGS,
    CLIError,
    ConfigOption,
    EmojiOption,
    RootOption,
    build_cli_logger,
    resolve_settings,
)


def lint_command(
    paths: Annotated[
        list[Path] | None,
        typer.Argument(help="Files to lint.", exists=True, dir_okay=False, readable=True),
    ] = None,
    stdin: Annotated[bool, typer.Option("--stdin", help="Lint the buffer read from standard input.")] = False,
    stdin_name: Annotated[
        str,
        typer.Option("--stdin-name", help="Name reported for the standard input buffer."),
    ] = "stdin",
    executable: Annotated[
        str | None,
        typer.Option("--executable", "-e", help="Analysis tool to run instead of the configured one."),
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Print diagnostics as JSON.")] = False,
    root: RootOption = None,
    config: ConfigOption = None,
    no_emoji: EmojiOption = False,
) -> None:
    """Lint files on disk, or a buffer from standard input, and print the diagnostics.

    Exits with status 1 when diagnostics were found and 2 when the tool could
    not run or its output could not be read.
    """

    logger = build_cli_logger(emoji=not no_emoji)
    if stdin == bool(paths):
        raise typer.BadParameter("Provide either file paths or --stdin.")
    overrides = {"executable_path": executable} if executable else None
    try:
        resolved = resolve_settings(root, config, overrides=overrides)
    except CLIError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc
    for message in resolved.warnings:
        logger.warn(message)

    language_id = resolved.settings.language_id
    try:
        if stdin:
            settings = buffer_settings(resolved.settings)
            documents = [
                TextDocument(uri=f"untitled:{stdin_name}", language_id=language_id, text=_read_stdin(stdin_name))
            ]
        else:
            settings = file_settings(resolved.settings)
            documents = [read_source(path, language_id=language_id) for path in paths or []]
    except CLIError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc

    reports = asyncio.run(
        lint_documents(resolved.root, settings, documents, notifier=ConsoleNotifier(use_emoji=not no_emoji))
    )

    if json_output:
        logger.echo(json.dumps(_reports_as_json(reports), indent=2))
    else:
        for report in reports:
            _print_report(report, logger.console)

    failed = [report for report in reports if report.failed]
    if failed:
        names = ", ".join(report.document.file_name for report in failed)
        logger.fail(f"Linting did not complete for: {names}")
        raise typer.Exit(code=EXIT_FAILURE)
    total = sum(len(report.result.diagnostics) for report in reports if report.result is not None)
    if total:
        raise typer.Exit(code=EXIT_FINDINGS)
    if not json_output:
        logger.ok("No findings")


def _read_stdin(name: str) -> str:
    try:
        return typer.get_text_stream("stdin").read()
    except UnicodeDecodeError as exc:
        raise CLIError(f"Cannot decode {name} as UTF-8: {exc.reason} at byte {exc.start}") from exc


def _reports_as_json(reports: list[DocumentReport]) -> list[dict[str, object]]:
    payload: list[dict[str, object]] = []
    for report in reports:
        result = report.result
        payload.append(
            {
                "file": report.document.file_name,
                "ok": not report.failed,
                "error": str(result.error) if result is not None and result.error is not None else None,
                "diagnostics": [
                    diagnostic.model_dump(mode="json") for diagnostic in (result.diagnostics if result else ())
                ],
            }
        )
    return payload


def _print_report(report: DocumentReport, console: Console) -> None:
    result = report.result
    if result is None or not result.diagnostics:
        return
    table = Table(title=report.document.file_name, box=box.SIMPLE, expand=True)
    table.add_column("#", justify="right")
    table.add_column("Range")
    table.add_column("Severity")
    table.add_column("Message", overflow="fold")
    for number, diagnostic in enumerate(result.diagnostics, start=1):
        table.add_row(str(number), str(diagnostic.range), diagnostic.severity.value, diagnostic.message)
    console.print(table)


__all__ = ["lint_command"]
