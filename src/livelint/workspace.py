# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""In-memory model of the host editor: documents, events, edits and notifications."""

from __future__ import annotations

import bisect
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from .config import LinterSettings, load_settings
from .logging import fail, info, warn
from .models import Position, Range

T = TypeVar("T")


@runtime_checkable
class Notifier(Protocol):
    """Surface messages to the user."""

    def show_info(self, message: str) -> None:
        """Display an informational message."""

        raise NotImplementedError

    def show_warning(self, message: str) -> None:
        """Display a warning."""

        raise NotImplementedError

    def show_error(self, message: str) -> None:
        """Display an error."""

        raise NotImplementedError


@dataclass(slots=True)
class ConsoleNotifier:
    """Notifier printing to standard error through the Rich helpers."""

    use_emoji: bool = True

    def show_info(self, message: str) -> None:
        info(message, use_emoji=self.use_emoji, stderr=True)

    def show_warning(self, message: str) -> None:
        warn(message, use_emoji=self.use_emoji, stderr=True)

    def show_error(self, message: str) -> None:
        fail(message, use_emoji=self.use_emoji, stderr=True)


class Subscription:
    """Handle returned by :meth:`EventEmitter.subscribe`."""

    def __init__(self, dispose: Callable[[], None]) -> None:
        self._dispose: Callable[[], None] | None = dispose

    @property
    def disposed(self) -> bool:
        """Return ``True`` once :meth:`dispose` has run."""

        return self._dispose is None

    def dispose(self) -> None:
        """Stop receiving events; repeated calls are ignored."""

        if self._dispose is not None:
            self._dispose()
            self._dispose = None


class EventEmitter(Generic[T]):
    """Synchronous publish/subscribe channel for one event type."""

    def __init__(self) -> None:
        self._listeners: list[Callable[[T], Any]] = []

    def subscribe(self, listener: Callable[[T], Any]) -> Subscription:
        """Register ``listener`` and return the handle that removes it.

        Args:
            listener: Callable invoked with each fired value.

        Returns:
            Subscription: Handle whose ``dispose`` unregisters the listener.
        """

        self._listeners.append(listener)
        return Subscription(lambda: self._remove(listener))

    def fire(self, value: T) -> None:
        """Invoke every listener with ``value`` in subscription order."""

        for listener in list(self._listeners):
            listener(value)

    def __len__(self) -> int:
        return len(self._listeners)

    def _remove(self, listener: Callable[[T], Any]) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass


@dataclass(slots=True)
class TextDocument:
    """Open text document tracked by the workspace.

    Attributes:
        uri: Opaque document identity.
        language_id: Language of the document (``"haskell"`` ...).
        text: Current buffer contents.
        path: File backing the document, when it has one.
        version: Incremented on every change.
        dirty: ``True`` when the buffer differs from the last save.
    """

    uri: str
    language_id: str
    text: str = ""
    path: Path | None = None
    version: int = 1
    dirty: bool = False
    _line_starts: list[int] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        self._line_starts = _line_starts(self.text)

    @classmethod
    def from_path(cls, path: Path, *, language_id: str, encoding: str = "utf-8") -> TextDocument:
        """Open ``path`` as a clean document whose URI is the file URI."""

        resolved = path.resolve()
        return cls(
            uri=resolved.as_uri(),
            language_id=language_id,
            text=resolved.read_text(encoding=encoding),
            path=resolved,
        )

    @property
    def file_name(self) -> str:
        """Return the backing file path, or the URI for untitled buffers."""

        return str(self.path) if self.path is not None else self.uri

    @property
    def line_count(self) -> int:
        """Return the number of lines in the document."""

        return len(self._line_starts)

    def get_text(self) -> str:
        """Return the whole buffer."""

        return self.text

    def line_text(self, line: int) -> str:
        """Return line ``line`` without its terminator."""

        start = self._line_starts[line]
        end = self._line_starts[line + 1] if line + 1 < len(self._line_starts) else len(self.text)
        return self.text[start:end].rstrip("\r\n")

    def end_position(self) -> Position:
        """Return the position just past the last character."""

        last = self.line_count - 1
        return Position(line=last, character=len(self.line_text(last)))

    def validate_position(self, position: Position) -> Position:
        """Clamp ``position`` to the document, as editors do for stale coordinates."""

        if position.line >= self.line_count:
            return self.end_position()
        width = len(self.line_text(position.line))
        return Position(line=position.line, character=min(position.character, width))

    def contains(self, target: Range) -> bool:
        """Return ``True`` when ``target`` lies entirely inside the document."""

        return (
            target.start <= target.end
            and self.validate_position(target.start) == target.start
            and self.validate_position(target.end) == target.end
        )

    def offset_at(self, position: Position) -> int:
        """Return the character offset of ``position`` after clamping."""

        valid = self.validate_position(position)
        return self._line_starts[valid.line] + valid.character

    def position_at(self, offset: int) -> Position:
        """Return the position of character ``offset``."""

        offset = max(0, min(offset, len(self.text)))
        line = bisect.bisect_right(self._line_starts, offset) - 1
        return self.validate_position(Position(line=line, character=offset - self._line_starts[line]))

    def text_in_range(self, target: Range) -> str:
        """Return the text covered by ``target`` after clamping it to the document."""

        return self.text[self.offset_at(target.start) : self.offset_at(target.end)]

    def replace(self, target: Range, new_text: str) -> None:
        """Replace the text covered by ``target`` with ``new_text``."""

        start = self.offset_at(target.start)
        end = self.offset_at(target.end)
        self.set_text(self.text[:start] + new_text + self.text[end:])

    def set_text(self, new_text: str) -> None:
        """Replace the whole buffer."""

        self.text = new_text
        self._line_starts = _line_starts(new_text)
        self.version += 1
        self.dirty = True


def _line_starts(text: str) -> list[int]:
    starts = [0]
    index = 0
    length = len(text)
    while index < length:
        char = text[index]
        if char == "\r" and index + 1 < length and text[index + 1] == "\n":
            index += 1
        if char in "\r\n":
            starts.append(index + 1)
        index += 1
    return starts


class Workspace:
    """Host environment the provider attaches to."""

    def __init__(
        self,
        root: Path | None = None,
        *,
        settings: LinterSettings | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        """Create a workspace.

        Args:
            root: Workspace root used as the tool's working directory.
            settings: Initial linter settings; defaults apply when omitted.
            notifier: Message sink; defaults to :class:`ConsoleNotifier`.
        """

        self.root = root
        self.settings = settings or LinterSettings()
        self.notifier: Notifier = notifier or ConsoleNotifier()
        self._documents: dict[str, TextDocument] = {}
        self.did_open: EventEmitter[TextDocument] = EventEmitter()
        self.did_change: EventEmitter[TextDocument] = EventEmitter()
        self.did_save: EventEmitter[TextDocument] = EventEmitter()
        self.did_close: EventEmitter[TextDocument] = EventEmitter()
        self.did_change_configuration: EventEmitter[LinterSettings] = EventEmitter()

    @property
    def text_documents(self) -> list[TextDocument]:
        """Return the open documents in opening order."""

        return list(self._documents.values())

    def get(self, uri: str) -> TextDocument | None:
        """Return the open document identified by ``uri``."""

        return self._documents.get(uri)

    def __iter__(self) -> Iterator[TextDocument]:
        return iter(self.text_documents)

    def open_document(self, document: TextDocument) -> TextDocument:
        """Track ``document`` and announce it; reopening returns the tracked instance."""

        existing = self._documents.get(document.uri)
        if existing is not None:
            return existing
        self._documents[document.uri] = document
        self.did_open.fire(document)
        return document

    def open_path(self, path: Path, *, language_id: str | None = None) -> TextDocument:
        """Open the file at ``path`` using the configured language when none is given."""

        document = TextDocument.from_path(path, language_id=language_id or self.settings.language_id)
        return self.open_document(document)

    def change_document(self, uri: str, text: str) -> TextDocument:
        """Replace the buffer of ``uri`` and announce the change.

        Raises:
            KeyError: If ``uri`` is not open.
        """

        document = self._documents[uri]
        document.set_text(text)
        self.did_change.fire(document)
        return document

    def save_document(self, uri: str, *, write: bool = True) -> TextDocument:
        """Persist ``uri`` to its backing file and announce the save.

        Args:
            uri: Identity of an open document.
            write: Write the buffer to disk when the document has a path.

        Returns:
            TextDocument: The saved document.

        Raises:
            KeyError: If ``uri`` is not open.
        """

        document = self._documents[uri]
        if write and document.path is not None:
            document.path.write_text(document.text, encoding="utf-8")
        document.dirty = False
        self.did_save.fire(document)
        return document

    def close_document(self, uri: str) -> None:
        """Stop tracking ``uri`` and announce the close; unknown URIs are ignored."""

        document = self._documents.pop(uri, None)
        if document is not None:
            self.did_close.fire(document)

    def apply_edit(self, uri: str, target: Range, new_text: str) -> bool:
        """Apply a single range replacement atomically.

        Args:
            uri: Identity of the edited document.
            target: Range to replace; it must lie inside the document.
            new_text: Replacement text.

        Returns:
            bool: ``True`` when applied, ``False`` when rejected without change.
        """

        document = self._documents.get(uri)
        if document is None or not document.contains(target):
            return False
        document.replace(target, new_text)
        self.did_change.fire(document)
        return True

    def update_configuration(self, settings: LinterSettings | Mapping[str, Any]) -> LinterSettings:
        """Install new settings and announce the change.

        Args:
            settings: Validated settings or a raw mapping; raw mappings never fail
                and fall back to defaults for invalid or missing keys.

        Returns:
            LinterSettings: The settings now in effect.
        """

        if isinstance(settings, LinterSettings):
            self.settings = settings
        else:
            result = load_settings(settings)
            for message in result.warnings:
                self.notifier.show_warning(message)
            self.settings = result.settings
        self.did_change_configuration.fire(self.settings)
        return self.settings


__all__ = [
    "ConsoleNotifier",
    "EventEmitter",
    "Notifier",
    "Subscription",
    "TextDocument",
    "Workspace",
]
