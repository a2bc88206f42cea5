# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI command showing the effective settings."""

from __future__ import annotations

import json
from typing import Annotated

import typer
from rich import box
from rich.table import Table

from ..shared import CLIError, ConfigOption, EmojiOption, RootOption, build_cli_logger, resolve_settings


def config_command(
    json_output: Annotated[bool, typer.Option("--json", help="Print the settings as JSON.")] = False,
    root: RootOption = None,
    config: ConfigOption = None,
    no_emoji: EmojiOption = False,
) -> None:
    """Print the settings resolved from defaults and configuration files."""

    logger = build_cli_logger(emoji=not no_emoji)
    try:
        resolved = resolve_settings(root, config)
    except CLIError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc
    for message in resolved.warnings:
        logger.warn(message)

    values = resolved.settings.to_dict()
    if json_output:
        logger.echo(json.dumps({"settings": values, "sources": resolved.sources}, indent=2))
        return

    table = Table(title="Settings", box=box.SIMPLE, expand=True)
    table.add_column("Setting", style="bold")
    table.add_column("Value", overflow="fold")
    for key, value in values.items():
        rendered = " ".join(value) if isinstance(value, list) else str(value)
        table.add_row(key, rendered or "-")
    logger.console.print(table)
    logger.echo(f"Sources: {', '.join(resolved.sources) or '-'}")


__all__ = ["config_command"]
