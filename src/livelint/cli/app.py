# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring commands and shared services."""

from __future__ import annotations

from typing import Annotated

import typer

from .. import __version__
from .commands import register_commands

app = typer.Typer(
    name="livelint",
    help="Run an external analysis tool over source files and apply its suggestions.",
    no_args_is_help=True,
    add_completion=False,
)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"livelint {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", callback=_show_version, is_eager=True, help="Show the version and exit."),
    ] = False,
) -> None:
    """Live linting orchestrator."""


register_commands(app)

__all__ = ["app"]
