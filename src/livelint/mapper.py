# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Translate the tool's JSON findings into host diagnostics."""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Final, TypeAlias, cast

from pydantic import ValidationError

from .errors import OutputParseError
from .models import Diagnostic, DiagnosticKind, LintItem
from .severity import map_severity

JsonValue: TypeAlias = "str | int | float | bool | None | list[JsonValue] | dict[str, JsonValue]"

SUGGESTION_PREFIX: Final[str] = "Hlint Suggestion: "
ERROR_PREFIX: Final[str] = "Hlint Error: "
REPLACE_SEPARATOR: Final[str] = " ==> "
PARSE_ERROR_MARKER: Final[str] = "parse error"
SOURCE_LABEL: Final[str] = "hlint"


def classify(item: LintItem) -> DiagnosticKind:
    """Return whether ``item`` is a suggestion or a parse failure.

    Args:
        item: Finding emitted by the tool.

    Returns:
        DiagnosticKind: ``PARSE_ERROR`` when the hint mentions a parse error.
    """

    if PARSE_ERROR_MARKER in item.hint.lower():
        return DiagnosticKind.PARSE_ERROR
    return DiagnosticKind.SUGGESTION


def format_message(item: LintItem, kind: DiagnosticKind) -> str:
    """Return the human-readable message for ``item``.

    Args:
        item: Finding emitted by the tool.
        kind: Category previously derived with :func:`classify`.

    Returns:
        str: ``"Hlint Suggestion: <hint>. Replace: <from> ==> <to>"`` for
        suggestions, ``"Hlint Error: <hint>"`` for parse errors.
    """

    if kind is DiagnosticKind.PARSE_ERROR:
        return f"{ERROR_PREFIX}{item.hint}"
    return f"{SUGGESTION_PREFIX}{item.hint}. Replace: {item.from_}{REPLACE_SEPARATOR}{item.to or ''}"


def to_diagnostic(item: LintItem, *, ignore_severity: bool = False) -> Diagnostic:
    """Build the :class:`Diagnostic` for one finding.

    Args:
        item: Finding emitted by the tool.
        ignore_severity: When ``True`` the tool's severity is replaced by a warning.

    Returns:
        Diagnostic: Zero-based, host-facing diagnostic.
    """

    kind = classify(item)
    return Diagnostic(
        range=item.range,
        message=format_message(item, kind),
        severity=map_severity(item.severity, ignore_severity=ignore_severity),
        kind=kind,
        source_text=item.from_,
        replacement=item.to if kind is DiagnosticKind.SUGGESTION else None,
        notes=item.note,
        source=SOURCE_LABEL,
    )


def parse_items(payload: JsonValue) -> list[LintItem]:
    """Validate a decoded JSON payload into lint items.

    Args:
        payload: Decoded JSON; either a list of records (``null`` entries are
            skipped) or a single record.

    Returns:
        list[LintItem]: Parsed items in output order.

    Raises:
        OutputParseError: If the payload has the wrong shape or a record is invalid.
    """

    records: Iterable[JsonValue]
    if isinstance(payload, Mapping):
        records = (payload,)
    elif isinstance(payload, list):
        records = payload
    else:
        raise OutputParseError(f"Expected a JSON array of findings, got {type(payload).__name__}")
    items: list[LintItem] = []
    for index, record in enumerate(records):
        if record is None:
            continue
        if not isinstance(record, Mapping):
            raise OutputParseError(f"Finding #{index} is not an object: {record!r}")
        try:
            items.append(LintItem.model_validate(record))
        except ValidationError as exc:
            raise OutputParseError(f"Finding #{index} is invalid: {exc.error_count()} validation error(s)") from exc
    return items


def parse_output(text: str, *, ignore_severity: bool = False) -> list[Diagnostic]:
    """Parse the complete output of one run (whole-output mode).

    Args:
        text: Entire stdout of the tool.
        ignore_severity: Report every finding as a warning.

    Returns:
        list[Diagnostic]: One diagnostic per non-null finding; empty when the
        tool printed nothing.

    Raises:
        OutputParseError: If ``text`` is not valid JSON of the expected shape.
    """

    stripped = text.strip()
    if not stripped:
        return []
    payload = _load_json(stripped)
    return [to_diagnostic(item, ignore_severity=ignore_severity) for item in parse_items(payload)]


def parse_lines(lines: Sequence[str], *, ignore_severity: bool = False) -> list[Diagnostic]:
    """Parse output one line at a time (per-line mode).

    Every non-blank line must hold a JSON object or array of objects.

    Args:
        lines: Decoded stdout lines.
        ignore_severity: Report every finding as a warning.

    Returns:
        list[Diagnostic]: Diagnostics from every line, in order.

    Raises:
        OutputParseError: If any non-blank line is not valid JSON of the expected shape.
    """

    diagnostics: list[Diagnostic] = []
    for line in _non_blank(lines):
        payload = _load_json(line)
        diagnostics.extend(to_diagnostic(item, ignore_severity=ignore_severity) for item in parse_items(payload))
    return diagnostics


def _non_blank(lines: Sequence[str]) -> Iterator[str]:
    for raw_line in lines:
        trimmed = raw_line.strip()
        if trimmed:
            yield trimmed


def _load_json(text: str) -> JsonValue:
    try:
        return cast(JsonValue, json.loads(text))
    except json.JSONDecodeError as exc:
        message = f"Malformed tool output: {exc.msg} (line {exc.lineno}, column {exc.colno})"
        raise OutputParseError(message, output=text) from exc


__all__ = [
    "ERROR_PREFIX",
    "JsonValue",
    "REPLACE_SEPARATOR",
    "SUGGESTION_PREFIX",
    "classify",
    "format_message",
    "parse_items",
    "parse_lines",
    "parse_output",
    "to_diagnostic",
]
