"""Deferred callbacks with cancellation handles.

Sessions use a scheduler for the opponent's thinking delay and for the
puzzle feedback delay. AsyncioScheduler runs on a live event loop (the
MCP server); ManualScheduler keeps a virtual clock that the caller
advances (the terminal CLI and the tests).
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable
from typing import Protocol


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class AsyncioScheduler:
    """Schedule callbacks on an asyncio event loop.

    Uses the given loop, or the loop running at scheduling time.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(0.0, delay), callback)


class ManualTask:
    """Handle for a callback queued on a ManualScheduler."""

    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.done = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual-clock scheduler; nothing runs until the clock is advanced."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, ManualTask]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTask:
        task = ManualTask(self.now + max(0.0, delay), callback)
        heapq.heappush(self._queue, (task.due, next(self._counter), task))
        return task

    @property
    def pending(self) -> int:
        return sum(1 for _, _, t in self._queue if not t.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running every callback that falls due.

        Callbacks scheduled by callbacks run too if they fall due within
        the window.

        Returns:
            Number of callbacks run.
        """
        target = self.now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self.now = max(self.now, due)
            task.done = True
            task.callback()
            ran += 1
        self.now = target
        return ran

    def run_all(self) -> int:
        """Run every pending callback, advancing the clock as needed."""
        ran = 0
        while self._queue:
            due = self._queue[0][0]
            ran += self.advance(max(0.0, due - self.now))
        return ran
