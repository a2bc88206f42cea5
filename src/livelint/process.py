# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Asynchronous execution of the external analysis tool."""

from __future__ import annotations

import asyncio
import contextlib
import shutil

# Bandit: subprocess usage is intentional; arguments are passed as a list and
# no shell is involved.
import subprocess  # nosec B404
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .decoder import LineDecoder
from .errors import ExecutableNotFoundError, SpawnError

READ_CHUNK_SIZE: Final[int] = 64 * 1024


@dataclass(frozen=True, slots=True)
class Invocation:
    """Describe one run of the analysis tool.

    Attributes:
        executable: Executable name or path.
        args: Arguments passed after the executable.
        cwd: Working directory, usually the workspace root.
        stdin_text: Live buffer text written to stdin; ``None`` in file mode.
        encoding: Codec used for stdin and stdout.
    """

    executable: str
    args: tuple[str, ...] = ()
    cwd: Path | None = None
    stdin_text: str | None = None
    encoding: str = "utf-8"

    @property
    def buffer_mode(self) -> bool:
        """Return ``True`` when the buffer text is streamed to stdin."""

        return self.stdin_text is not None

    def command_line(self) -> str:
        """Return a printable rendition of the command."""

        return " ".join((self.executable, *self.args))


@dataclass(frozen=True, slots=True)
class ProcessOutput:
    """Output collected from a finished tool run."""

    lines: tuple[str, ...]
    returncode: int
    stderr: str = ""

    @property
    def text(self) -> str:
        """Return the stdout lines reassembled into one string."""

        return "\n".join(self.lines)


def resolve_executable(executable: str) -> str:
    """Return the path used to spawn ``executable``.

    Args:
        executable: Executable name or path from configuration.

    Returns:
        str: Absolute or explicitly relative paths unchanged, bare names resolved on ``PATH``.

    Raises:
        ExecutableNotFoundError: If ``executable`` is empty or cannot be found on ``PATH``.
    """

    if not executable:
        raise ExecutableNotFoundError(executable, "No executable configured")
    path = Path(executable)
    if path.is_absolute() or len(path.parts) > 1:
        return str(path)
    resolved = shutil.which(executable)
    if resolved is None:
        raise ExecutableNotFoundError(executable, f"Executable '{executable}' was not found on PATH")
    return resolved


async def run_invocation(invocation: Invocation) -> ProcessOutput:
    """Spawn the tool, feed it and collect its output.

    The exit status is recorded but never interpreted: the tool reports
    findings through its structured output.

    Args:
        invocation: Description of the command to run.

    Returns:
        ProcessOutput: Decoded stdout lines, stderr text and exit status.

    Raises:
        ExecutableNotFoundError: If the executable does not exist.
        SpawnError: If the operating system refuses to start the executable.
    """

    program = resolve_executable(invocation.executable)
    try:
        process = await asyncio.create_subprocess_exec(
            program,
            *invocation.args,
            cwd=str(invocation.cwd) if invocation.cwd is not None else None,
            stdin=subprocess.PIPE if invocation.buffer_mode else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise ExecutableNotFoundError(invocation.executable, _describe(exc, invocation.executable)) from exc
    except OSError as exc:
        raise SpawnError(invocation.executable, _describe(exc, invocation.executable)) from exc

    decoder = LineDecoder(invocation.encoding)
    try:
        _, _, stderr = await asyncio.gather(
            _feed_stdin(process, invocation),
            _read_stdout(process, decoder),
            _read_stderr(process, invocation.encoding),
        )
        returncode = await process.wait()
    finally:
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
    return ProcessOutput(lines=tuple(decoder.lines), returncode=returncode, stderr=stderr)


async def _feed_stdin(process: asyncio.subprocess.Process, invocation: Invocation) -> None:
    if process.stdin is None or invocation.stdin_text is None:
        return
    try:
        process.stdin.write(invocation.stdin_text.encode(invocation.encoding, errors="replace"))
        await process.stdin.drain()
    except (BrokenPipeError, ConnectionResetError):
        # The tool exited before consuming its input; its stdout still decides the result.
        pass
    finally:
        process.stdin.close()


async def _read_stdout(process: asyncio.subprocess.Process, decoder: LineDecoder) -> None:
    if process.stdout is None:
        return
    while chunk := await process.stdout.read(READ_CHUNK_SIZE):
        decoder.write(chunk)
    decoder.end()


async def _read_stderr(process: asyncio.subprocess.Process, encoding: str) -> str:
    if process.stderr is None:
        return ""
    payload = await process.stderr.read()
    return payload.decode(encoding, errors="replace")


def _describe(exc: OSError, executable: str) -> str:
    return exc.strerror or str(exc) or f"Failed to run executable using path: {executable}. Reason is unknown."


__all__ = [
    "Invocation",
    "ProcessOutput",
    "READ_CHUNK_SIZE",
    "resolve_executable",
    "run_invocation",
]
