# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Per-key debounce scheduler with a single trailing run.

Each :class:`ThrottledDelayer` guards one debounce key (a document). It is an
explicit state machine::

    IDLE --trigger--> SCHEDULED --timer--> RUNNING --done--> IDLE
                                             |  ^
                                      trigger|  |done, pending task starts at once
                                             v  |
                                        RUNNING_PENDING

Triggers arriving while SCHEDULED replace the task without touching the
timer, so one debounce window fires once. Triggers arriving while a run is in
flight are remembered (newest wins) and started as soon as the run finishes.
At most one run is in flight per delayer at any time.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Generic, TypeVar

from .errors import DelayerDisposedError

T = TypeVar("T")

Task = Callable[[], Awaitable[T]]


class DelayerState(str, Enum):
    """Lifecycle states of a :class:`ThrottledDelayer`."""

    IDLE = "idle"
    SCHEDULED = "scheduled"
    RUNNING = "running"
    RUNNING_PENDING = "running-pending"
    DISPOSED = "disposed"


class ThrottledDelayer(Generic[T]):
    """Debounce triggers for one key and coalesce work arriving mid-run."""

    def __init__(self, delay: float) -> None:
        """Create a delayer firing ``delay`` seconds after the first trigger.

        Args:
            delay: Debounce interval in seconds; ``0`` defers to the next loop iteration.
        """

        if delay < 0:
            raise ValueError("delay must be non-negative")
        self._delay = delay
        self._state = DelayerState.IDLE
        self._timer: asyncio.TimerHandle | None = None
        self._pending: Task[T] | None = None
        self._waiters: list[asyncio.Future[T]] = []
        self._running: asyncio.Task[T] | None = None
        self._idle = asyncio.Event()
        self._idle.set()
        self._runs = 0

    @property
    def state(self) -> DelayerState:
        """Return the current lifecycle state."""

        return self._state

    @property
    def delay(self) -> float:
        """Return the debounce interval in seconds."""

        return self._delay

    @delay.setter
    def delay(self, value: float) -> None:
        if value < 0:
            raise ValueError("delay must be non-negative")
        self._delay = value

    @property
    def is_idle(self) -> bool:
        """Return ``True`` when nothing is scheduled or running."""

        return self._state is DelayerState.IDLE

    @property
    def runs(self) -> int:
        """Return the number of runs started so far."""

        return self._runs

    def trigger(self, task: Task[T]) -> asyncio.Future[T]:
        """Request a run of ``task`` without blocking the caller.

        Args:
            task: Zero-argument callable returning the awaitable to execute.

        Returns:
            asyncio.Future[T]: Future resolved with the outcome of the run that
            services this trigger.

        Raises:
            DelayerDisposedError: If the delayer has been disposed.
        """

        if self._state is DelayerState.DISPOSED:
            raise DelayerDisposedError("cannot trigger a disposed delayer")
        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[T] = loop.create_future()
        self._pending = task
        self._waiters.append(waiter)
        if self._state is DelayerState.IDLE:
            self._state = DelayerState.SCHEDULED
            self._idle.clear()
            self._timer = loop.call_later(self._delay, self._on_timer)
        elif self._state is DelayerState.RUNNING:
            self._state = DelayerState.RUNNING_PENDING
        return waiter

    def dispose(self) -> None:
        """Drop scheduled work; an in-flight run completes but nothing follows it."""

        if self._state is DelayerState.DISPOSED:
            return
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending = None
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            waiter.cancel()
        self._state = DelayerState.DISPOSED
        self._idle.set()

    async def wait_idle(self) -> None:
        """Wait until no run is scheduled, pending or in flight."""

        await self._idle.wait()
        if self._running is not None:
            await asyncio.wait({self._running})

    def _on_timer(self) -> None:
        self._timer = None
        if self._state is DelayerState.SCHEDULED:
            self._start_next()

    def _start_next(self) -> None:
        task = self._pending
        waiters, self._waiters = self._waiters, []
        self._pending = None
        if task is None:
            self._state = DelayerState.IDLE
            self._idle.set()
            return
        self._state = DelayerState.RUNNING
        self._runs += 1
        running = asyncio.ensure_future(self._invoke(task))
        self._running = running
        running.add_done_callback(lambda done: self._on_done(done, waiters))

    @staticmethod
    async def _invoke(task: Task[T]) -> T:
        return await task()

    def _on_done(self, done: asyncio.Task[T], waiters: list[asyncio.Future[T]]) -> None:
        self._running = None
        _settle(done, waiters)
        if self._state is DelayerState.RUNNING_PENDING:
            self._start_next()
        elif self._state is DelayerState.RUNNING:
            self._state = DelayerState.IDLE
            self._idle.set()


def _settle(done: asyncio.Task[T], waiters: list[asyncio.Future[T]]) -> None:
    """Propagate the outcome of ``done`` to every waiter still listening."""

    cancelled = done.cancelled()
    error = None if cancelled else done.exception()
    for waiter in waiters:
        if waiter.done():
            continue
        if cancelled:
            waiter.cancel()
        elif error is not None:
            waiter.set_exception(error)
        else:
            waiter.set_result(done.result())


__all__ = ["DelayerState", "Task", "ThrottledDelayer"]
