# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Offer and apply the replacements suggested by the analysis tool.

A fix is applied only while the text it targets still matches, ignoring
whitespace, the ``from`` text recorded when the diagnostic was computed.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from .errors import FixError, StaleFixError
from .mapper import SUGGESTION_PREFIX
from .models import Diagnostic, Range


class EditableDocument(Protocol):
    """Document surface the applier needs: read a range, replace a range."""

    uri: str

    def text_in_range(self, target: Range) -> str:
        """Return the current text covered by ``target``."""

        raise NotImplementedError


class EditSink(Protocol):
    """Apply a range replacement atomically, returning ``False`` when rejected."""

    def apply_edit(self, uri: str, target: Range, new_text: str) -> bool:
        """Replace ``target`` in ``uri`` with ``new_text``."""

        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class FixAction:
    """User-invocable replacement derived from one diagnostic.

    Attributes:
        title: Label shown to the user.
        resource_id: Identity of the targeted document.
        range: Range the replacement covers.
        expected: Text the tool saw at ``range`` (``from``).
        replacement: Text to insert (``to``); may be empty.
    """

    title: str
    resource_id: str
    range: Range
    expected: str
    replacement: str


def normalize_whitespace(text: str) -> str:
    """Return ``text`` with every whitespace character removed."""

    return "".join(text.split())


def fix_action(resource_id: str, diagnostic: Diagnostic) -> FixAction | None:
    """Return the action for ``diagnostic``, or ``None`` when it is not fixable.

    Args:
        resource_id: Identity of the document the diagnostic belongs to.
        diagnostic: Diagnostic produced by the mapper.

    Returns:
        FixAction | None: ``None`` for parse errors and findings without a replacement.
    """

    if not diagnostic.is_fixable or diagnostic.replacement is None:
        return None
    title = diagnostic.message.removeprefix(SUGGESTION_PREFIX)
    return FixAction(
        title=title,
        resource_id=resource_id,
        range=diagnostic.range,
        expected=diagnostic.source_text,
        replacement=diagnostic.replacement,
    )


def code_actions(resource_id: str, diagnostics: Iterable[Diagnostic]) -> list[FixAction]:
    """Return the fix actions for ``diagnostics``, last diagnostic first.

    Args:
        resource_id: Identity of the document.
        diagnostics: Diagnostics in the order the tool reported them.

    Returns:
        list[FixAction]: Actions in reverse order; parse errors are never offered.
    """

    actions = [action for diagnostic in diagnostics if (action := fix_action(resource_id, diagnostic)) is not None]
    actions.reverse()
    return actions


def check_fresh(document: EditableDocument, action: FixAction) -> str:
    """Verify the targeted text still matches what the tool saw.

    Args:
        document: Document the action targets.
        action: Action to verify.

    Returns:
        str: The current text at the action's range.

    Raises:
        StaleFixError: If the normalised texts differ.
    """

    current = document.text_in_range(action.range)
    if normalize_whitespace(current) != normalize_whitespace(action.expected):
        raise StaleFixError(expected=action.expected, actual=current)
    return current


def apply_fix(document: EditableDocument, action: FixAction, sink: EditSink) -> None:
    """Apply ``action`` to ``document`` after the staleness check.

    Args:
        document: Document the action targets.
        action: Replacement to apply.
        sink: Edit sink applying the replacement atomically.

    Raises:
        StaleFixError: If the document changed since the suggestion was computed.
        FixError: If the action targets another document or the sink rejects the edit.
    """

    if action.resource_id != document.uri:
        raise FixError(f"Fix targets {action.resource_id}, not {document.uri}")
    check_fresh(document, action)
    if not sink.apply_edit(document.uri, action.range, action.replacement):
        raise FixError(f"Edit rejected for {document.uri} at {action.range}")


__all__ = [
    "EditSink",
    "EditableDocument",
    "FixAction",
    "apply_fix",
    "check_fresh",
    "code_actions",
    "fix_action",
    "normalize_whitespace",
]
