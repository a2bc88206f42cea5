# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI command applying the tool's suggested replacements to a file."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from ...workspace import ConsoleNotifier
from ..runtime import fix_document
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


def fix_command(
    path: Annotated[
        Path,
        typer.Argument(help="File to fix.", exists=True, dir_okay=False, readable=True, writable=True),
    ],
    index: Annotated[
        list[int] | None,
        typer.Option("--index", "-i", min=1, help="Apply only suggestion N (as numbered by 'lint'); repeatable."),
    ] = None,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Report the fixes without writing the file.")] = False,
    executable: Annotated[
        str | None,
        typer.Option("--executable", "-e", help="Analysis tool to run instead of the configured one."),
    ] = None,
    root: RootOption = None,
    config: ConfigOption = None,
    no_emoji: EmojiOption = False,
) -> None:
    """Apply suggested fixes to ``path``, bottom of the file first.

    A fix whose target text changed since the tool ran is refused. Exits with
    status 1 when some fixes were refused and 2 when linting failed.
    """

    logger = build_cli_logger(emoji=not no_emoji)
    overrides = {"executable_path": executable} if executable else None
    try:
        resolved = resolve_settings(root, config, overrides=overrides)
    except CLIError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc
    for message in resolved.warnings:
        logger.warn(message)

    try:
        report = asyncio.run(
            fix_document(
                resolved.root,
                resolved.settings,
                path,
                notifier=ConsoleNotifier(use_emoji=not no_emoji),
                selected=index or (),
                write=not dry_run,
            )
        )
    except CLIError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc
    if report.lint is None or not report.lint.ok:
        logger.fail(f"Linting did not complete for {report.document.file_name}")
        raise typer.Exit(code=EXIT_FAILURE)

    for action in report.applied:
        logger.echo(f"{action.range}: {action.title}")
    for action in report.refused:
        logger.warn(f"Refused {action.range}: {action.title}")
    if not report.applied and not report.refused:
        logger.ok("Nothing to fix")
        return
    verb = "Would apply" if dry_run else "Applied"
    logger.ok(f"{verb} {len(report.applied)} fix(es) to {report.document.file_name}")
    if report.refused:
        raise typer.Exit(code=EXIT_FINDINGS)


__all__ = ["fix_command"]
