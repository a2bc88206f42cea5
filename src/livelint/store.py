# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Per-document diagnostic collection.

Entries are replaced wholesale on every successful lint pass and removed when
their document closes. The store itself is last-write-wins: ordering is
guaranteed upstream, because each document's :class:`~livelint.delayer.ThrottledDelayer`
allows a single run in flight and the provider drops results from a delayer
that has since been replaced.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator

from .models import Diagnostic

ChangeListener = Callable[[str, tuple[Diagnostic, ...] | None], None]


class DiagnosticStore:
    """Keyed table of diagnostics, one entry per open document."""

    def __init__(self, listener: ChangeListener | None = None) -> None:
        """Create an empty store.

        Args:
            listener: Optional callback notified with ``(resource_id, diagnostics)``
                after every change; ``diagnostics`` is ``None`` on removal.
        """

        self._entries: dict[str, tuple[Diagnostic, ...]] = {}
        self._listener = listener

    def set(self, resource_id: str, diagnostics: Iterable[Diagnostic]) -> None:
        """Replace every diagnostic recorded for ``resource_id``.

        Args:
            resource_id: Document identity (URI).
            diagnostics: Complete diagnostic set produced by one lint pass.
        """

        entry = tuple(diagnostics)
        self._entries[resource_id] = entry
        self._notify(resource_id, entry)

    def get(self, resource_id: str) -> tuple[Diagnostic, ...]:
        """Return the diagnostics for ``resource_id``, empty when none are recorded."""

        return self._entries.get(resource_id, ())

    def delete(self, resource_id: str) -> None:
        """Remove the entry for ``resource_id`` if present."""

        if self._entries.pop(resource_id, None) is not None:
            self._notify(resource_id, None)

    def clear(self) -> None:
        """Remove every entry."""

        keys = list(self._entries)
        self._entries.clear()
        for key in keys:
            self._notify(key, None)

    def items(self) -> Iterator[tuple[str, tuple[Diagnostic, ...]]]:
        """Yield ``(resource_id, diagnostics)`` pairs in insertion order."""

        yield from self._entries.items()

    def __contains__(self, resource_id: object) -> bool:
        return resource_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def _notify(self, resource_id: str, diagnostics: tuple[Diagnostic, ...] | None) -> None:
        if self._listener is not None:
            self._listener(resource_id, diagnostics)


__all__ = ["ChangeListener", "DiagnosticStore"]
