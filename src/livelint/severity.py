# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Severity related types and helpers."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Final


class Severity(str, Enum):
    """Severity levels exposed to the host; a lossy reduction of tool vocabularies."""

    ERROR = "error"
    WARNING = "warning"


DEFAULT_SEVERITY_LABELS: Final[dict[str, Severity]] = {
    "warning": Severity.WARNING,
    "suggestion": Severity.WARNING,
}


def map_severity(
    label: object,
    *,
    ignore_severity: bool = False,
    mapping: Mapping[str, Severity] | None = None,
    default: Severity = Severity.ERROR,
) -> Severity:
    """Return the :class:`Severity` for a tool-reported ``label``.

    Args:
        label: Free-text severity emitted by the tool (``"Warning"``, ``"Error"`` ...).
        ignore_severity: When ``True`` every finding is reported as a warning.
        mapping: Optional lower-cased label lookup; defaults to
            :data:`DEFAULT_SEVERITY_LABELS`.
        default: Severity returned for unrecognised or missing labels.

    Returns:
        Severity: Warning when overridden or recognised as a warning-class label,
        otherwise ``default``.
    """

    if ignore_severity:
        return Severity.WARNING
    active = mapping if mapping is not None else DEFAULT_SEVERITY_LABELS
    if isinstance(label, str):
        return active.get(label.strip().lower(), default)
    return default


__all__ = ["DEFAULT_SEVERITY_LABELS", "Severity", "map_severity"]
