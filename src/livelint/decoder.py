# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Incremental conversion of a raw byte stream into text lines."""

from __future__ import annotations

import codecs
from typing import Final

_LINE_BREAKS: Final[frozenset[str]] = frozenset({"\r", "\n"})


class LineDecoder:
    """Turn byte chunks into complete lines as they arrive.

    Lines are delimited by CR, LF or CRLF. A run of terminators collapses, so
    no empty line is ever produced between them, and leading terminators are
    skipped. The unterminated tail is carried between :meth:`write` calls so a
    chunk boundary, even one falling inside a CRLF pair or a multi-byte
    character, never changes the result.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        """Initialise the decoder for ``encoding``.

        Args:
            encoding: Codec used to decode incoming bytes; invalid sequences are replaced.
        """

        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._remaining: str | None = None
        self._lines: list[str] = []

    @property
    def lines(self) -> list[str]:
        """Return every line recognised so far, including a flushed remainder."""

        return list(self._lines)

    @property
    def remaining(self) -> str | None:
        """Return the partial line buffered since the last terminator."""

        return self._remaining

    def write(self, chunk: bytes) -> list[str]:
        """Feed ``chunk`` and return the lines it completed.

        Args:
            chunk: Next block of raw bytes in arrival order.

        Returns:
            list[str]: Complete lines recognised by this call, in order.
        """

        decoded = self._decoder.decode(chunk)
        value = self._remaining + decoded if self._remaining else decoded
        result = self._split(value)
        self._lines.extend(result)
        return result

    def end(self) -> str | None:
        """Flush the trailing partial line.

        Returns:
            str | None: The unterminated tail of the stream, or ``None`` when the
            stream ended on a terminator.
        """

        tail = self._decoder.decode(b"", final=True)
        if tail:
            self._lines.extend(self._split((self._remaining or "") + tail))
        remaining = self._remaining
        self._remaining = None
        if remaining:
            self._lines.append(remaining)
        return remaining

    def _split(self, value: str) -> list[str]:
        result: list[str] = []
        length = len(value)
        start = 0
        while start < length and value[start] in _LINE_BREAKS:
            start += 1
        index = start
        while index < length:
            if value[index] in _LINE_BREAKS:
                result.append(value[start:index])
                index += 1
                while index < length and value[index] in _LINE_BREAKS:
                    index += 1
                start = index
            else:
                index += 1
        self._remaining = value[start:] if start < length else None
        return result


def decode_lines(data: bytes, *, encoding: str = "utf-8") -> list[str]:
    """Decode a complete byte stream into lines in one call.

    Args:
        data: Entire stream contents.
        encoding: Codec used to decode ``data``.

    Returns:
        list[str]: Lines of the stream followed by the unterminated tail, if any.
    """

    decoder = LineDecoder(encoding)
    decoder.write(data)
    decoder.end()
    return decoder.lines


__all__ = ["LineDecoder", "decode_lines"]
