# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Core data models shared across the livelint package."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .severity import Severity


class Position(BaseModel):
    """Zero-based line/character position inside a document."""

    model_config = ConfigDict(frozen=True)

    line: int = Field(ge=0)
    character: int = Field(ge=0)

    def __lt__(self, other: Position) -> bool:
        return (self.line, self.character) < (other.line, other.character)

    def __le__(self, other: Position) -> bool:
        return (self.line, self.character) <= (other.line, other.character)


class Range(BaseModel):
    """Half-open span between two :class:`Position` values."""

    model_config = ConfigDict(frozen=True)

    start: Position
    end: Position

    @classmethod
    def from_coordinates(cls, start_line: int, start_character: int, end_line: int, end_character: int) -> Range:
        """Build a range from zero-based coordinates.

        Args:
            start_line: Zero-based line of the first character.
            start_character: Zero-based column of the first character.
            end_line: Zero-based line of the end position.
            end_character: Zero-based column of the end position.

        Returns:
            Range: Range spanning the supplied coordinates.
        """

        return cls(
            start=Position(line=start_line, character=start_character),
            end=Position(line=end_line, character=end_character),
        )

    @classmethod
    def from_tool(cls, start_line: int, start_column: int, end_line: int, end_column: int) -> Range:
        """Convert the tool's one-based coordinates into a zero-based range.

        Args:
            start_line: One-based start line reported by the tool.
            start_column: One-based start column reported by the tool.
            end_line: One-based end line reported by the tool.
            end_column: One-based end column reported by the tool.

        Returns:
            Range: Range whose coordinates are each one less than the input,
            clamped at zero.
        """

        return cls.from_coordinates(
            max(start_line - 1, 0),
            max(start_column - 1, 0),
            max(end_line - 1, 0),
            max(end_column - 1, 0),
        )

    def __str__(self) -> str:
        return f"({self.start.line},{self.start.character})-({self.end.line},{self.end.character})"


class LintItem(BaseModel):
    """One finding emitted by the external analysis tool."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    module: str | None = None
    decl: str | None = Field(default=None, validation_alias=AliasChoices("decl", "declaration"))
    severity: str = ""
    hint: str
    file: str | None = None
    start_line: int
    start_column: int
    end_line: int
    end_column: int
    from_: str = Field(default="", alias="from")
    to: str | None = None
    note: tuple[str, ...] = Field(default_factory=tuple)

    @field_validator("module", "decl", mode="before")
    @classmethod
    def _join_names(cls, value: object) -> object:
        """Accept the list form newer tool releases emit for module/declaration names."""

        if isinstance(value, Sequence) and not isinstance(value, str):
            return ", ".join(str(item) for item in value) or None
        return value

    @field_validator("from_", mode="before")
    @classmethod
    def _coerce_from(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("note", mode="before")
    @classmethod
    def _coerce_note(cls, value: object) -> object:
        if value is None:
            return ()
        if isinstance(value, str):
            return (value,)
        return value

    @property
    def range(self) -> Range:
        """Return the zero-based range covered by the finding."""

        return Range.from_tool(self.start_line, self.start_column, self.end_line, self.end_column)


class DiagnosticKind(str, Enum):
    """Category distinguishing actionable suggestions from parse failures."""

    SUGGESTION = "suggestion"
    PARSE_ERROR = "parse-error"


class Diagnostic(BaseModel):
    """Host-facing representation of a finding."""

    model_config = ConfigDict(frozen=True)

    range: Range
    message: str
    severity: Severity
    kind: DiagnosticKind = DiagnosticKind.SUGGESTION
    source_text: str = ""
    replacement: str | None = None
    notes: tuple[str, ...] = Field(default_factory=tuple)
    source: str = "hlint"

    @property
    def is_fixable(self) -> bool:
        """Return ``True`` when the diagnostic carries an applicable replacement."""

        return self.kind is DiagnosticKind.SUGGESTION and self.replacement is not None


__all__ = [
    "Diagnostic",
    "DiagnosticKind",
    "LintItem",
    "Position",
    "Range",
]
