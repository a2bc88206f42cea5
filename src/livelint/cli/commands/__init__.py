# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""CLI command registry."""

from __future__ import annotations

import typer

from .config import config_command
from .fix import fix_command
from .lint import lint_command

__all__ = ["register_commands"]


def register_commands(app: typer.Typer) -> None:
    """Register the built-in commands on ``app``.

    Args:
        app: Typer application receiving command registrations.
    """

    app.command(name="lint")(lint_command)
    app.command(name="fix")(fix_command)
    app.command(name="config")(config_command)
