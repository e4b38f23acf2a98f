"""
Timer primitives for the single-threaded, callback-driven runtime.

Everything that waits (progress frames, typewriter characters, the speech
start check, the post-narration advance) goes through a Scheduler, so the
same controller code runs on a live asyncio loop or on a virtual clock.
"""

import asyncio
import heapq
import itertools
from typing import Any, Callable, Protocol


class TimerHandle(Protocol):
    cancelled: bool

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def now_ms(self) -> float: ...

    def call_later(
        self, delay_ms: float, callback: Callable[..., Any], *args: Any
    ) -> TimerHandle: ...


class _LoopTimer:
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True
        self._handle.cancel()


class LoopScheduler:
    """Scheduler backed by the running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now_ms(self) -> float:
        return self.loop.time() * 1000.0

    def call_later(self, delay_ms: float, callback, *args) -> _LoopTimer:
        handle = self.loop.call_later(max(0.0, delay_ms) / 1000.0, callback, *args)
        return _LoopTimer(handle)


class ManualTimer:
    def __init__(self, due_ms: float, callback, args: tuple):
        self.due_ms = due_ms
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """
    Virtual clock. Time only moves when advance() is called.

    Callbacks fire in due-time order (ties in scheduling order), including
    callbacks scheduled by other callbacks while advancing.
    """

    def __init__(self, start_ms: float = 0.0):
        self._now = start_ms
        self._queue: list[tuple[float, int, ManualTimer]] = []
        self._seq = itertools.count()

    def now_ms(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback, *args) -> ManualTimer:
        timer = ManualTimer(self._now + max(0.0, delay_ms), callback, args)
        heapq.heappush(self._queue, (timer.due_ms, next(self._seq), timer))
        return timer

    @property
    def pending(self) -> int:
        """Number of timers that are scheduled and not cancelled."""
        return sum(1 for _, _, t in self._queue if not t.cancelled)

    def advance(self, ms: float) -> None:
        """Move the clock forward by ms, firing every timer that comes due."""
        target = self._now + ms
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now = max(self._now, due)
            timer.callback(*timer.args)
        self._now = target

    def run_until_idle(self, limit_ms: float = 600_000) -> None:
        """Fire timers until none are left, or until limit_ms of virtual time passes."""
        deadline = self._now + limit_ms
        while True:
            live = [entry for entry in self._queue if not entry[2].cancelled]
            if not live:
                return
            next_due = min(entry[0] for entry in live)
            if next_due > deadline:
                self._now = deadline
                return
            self.advance(next_due - self._now)
