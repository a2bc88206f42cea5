# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for :mod:`livelint.mapper`."""

from __future__ import annotations

import json

import pytest
from conftest import PARSE_ERROR, SUGGESTION, finding

from livelint.errors import OutputParseError
from livelint.mapper import parse_items, parse_lines, parse_output, to_diagnostic
from livelint.models import DiagnosticKind, LintItem, Range
from livelint.severity import Severity


def test_suggestion_maps_to_zero_based_warning() -> None:
    diagnostic = to_diagnostic(LintItem.model_validate(SUGGESTION))

    assert diagnostic.range == Range.from_coordinates(2, 7, 2, 24)
    assert diagnostic.severity is Severity.WARNING
    assert diagnostic.kind is DiagnosticKind.SUGGESTION
    assert diagnostic.message == "Hlint Suggestion: Use print. Replace: putStrLn (show x) ==> print x"
    assert diagnostic.source_text == "putStrLn (show x)"
    assert diagnostic.replacement == "print x"
    assert diagnostic.source == "hlint"
    assert diagnostic.is_fixable


def test_parse_error_is_error_without_fix() -> None:
    diagnostic = to_diagnostic(LintItem.model_validate(PARSE_ERROR))

    assert diagnostic.kind is DiagnosticKind.PARSE_ERROR
    assert diagnostic.severity is Severity.ERROR
    assert diagnostic.message == "Hlint Error: Parse error: possibly incorrect indentation"
    assert diagnostic.replacement is None
    assert not diagnostic.is_fixable


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("Suggestion", Severity.WARNING),
        ("warning", Severity.WARNING),
        ("WARNING", Severity.WARNING),
        ("Error", Severity.ERROR),
        ("Ignore", Severity.ERROR),
        ("", Severity.ERROR),
    ],
)
def test_severity_mapping(label: str, expected: Severity) -> None:
    item = LintItem.model_validate(finding(severity=label))

    assert to_diagnostic(item).severity is expected


def test_ignore_severity_forces_warning() -> None:
    item = LintItem.model_validate(finding(severity="Error"))

    assert to_diagnostic(item, ignore_severity=True).severity is Severity.WARNING


def test_empty_replacement_is_still_fixable() -> None:
    diagnostic = to_diagnostic(LintItem.model_validate(finding(hint="Redundant bracket", to="")))

    assert diagnostic.message.endswith("==> ")
    assert diagnostic.replacement == ""
    assert diagnostic.is_fixable


def test_null_replacement_renders_empty() -> None:
    diagnostic = to_diagnostic(LintItem.model_validate(finding(to=None)))

    assert diagnostic.message.endswith("==> ")
    assert not diagnostic.is_fixable


def test_coordinates_are_clamped_at_zero() -> None:
    item = LintItem.model_validate(finding(startLine=0, startColumn=0, endLine=1, endColumn=1))

    assert item.range == Range.from_coordinates(0, 0, 0, 0)


def test_item_accepts_snake_case_and_legacy_names() -> None:
    item = LintItem.model_validate(
        {
            "module": "Main",
            "declaration": ["main", "helper"],
            "hint": "Use map",
            "start_line": 1,
            "start_column": 1,
            "end_line": 1,
            "end_column": 4,
            "from": None,
            "note": "increases laziness",
        }
    )

    assert item.decl == "main, helper"
    assert item.from_ == ""
    assert item.note == ("increases laziness",)


def test_parse_output_whole_array_skips_nulls() -> None:
    text = json.dumps([SUGGESTION, None, PARSE_ERROR])

    diagnostics = parse_output(text)

    assert [diagnostic.kind for diagnostic in diagnostics] == [DiagnosticKind.SUGGESTION, DiagnosticKind.PARSE_ERROR]


@pytest.mark.parametrize("text", ["", "   \n", "[]"])
def test_parse_output_empty(text: str) -> None:
    assert parse_output(text) == []


def test_parse_lines_reads_one_document_per_line() -> None:
    lines = [json.dumps([SUGGESTION]), "", json.dumps(PARSE_ERROR)]

    diagnostics = parse_lines(lines)

    assert len(diagnostics) == 2
    assert diagnostics[1].kind is DiagnosticKind.PARSE_ERROR


@pytest.mark.parametrize(
    "text",
    [
        "[{",
        "not json",
        '"a string"',
        "[1, 2]",
        json.dumps([{"hint": "missing coordinates"}]),
    ],
)
def test_parse_output_rejects_malformed_output(text: str) -> None:
    with pytest.raises(OutputParseError):
        parse_output(text)


def test_malformed_output_keeps_raw_text() -> None:
    with pytest.raises(OutputParseError) as excinfo:
        parse_output("[{")

    assert excinfo.value.output == "[{"
    assert "Malformed tool output" in str(excinfo.value)


def test_parse_items_accepts_single_object() -> None:
    assert [item.hint for item in parse_items(SUGGESTION)] == ["Use print"]


def test_coordinate_mapping_is_exact() -> None:
    item = LintItem.model_validate(finding(startLine=5, startColumn=3, endLine=5, endColumn=10))

    assert to_diagnostic(item).range == Range.from_coordinates(4, 2, 4, 9)
