"""
sehatik/engine/scheduler.py
============================
Cooperative Schedulers — Sehatik Conversation Engine

Responsibility:
    - Run callbacks after a delay (milliseconds) on a single logical timeline
    - Return cancellable handles so a session can drop pending continuations

Two implementations:
    - AsyncioScheduler: wraps ``loop.call_later`` on the running event loop
      (used by the HTTP surface)
    - ManualScheduler: a virtual clock advanced explicitly, for deterministic
      replays and tests; no wall-clock time passes

Neither scheduler runs callbacks in parallel.

This module does NOT:
    - Know anything about sessions, scripts, or generation tokens
"""

import asyncio
import heapq
import itertools
import logging
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger("sehatik.engine.scheduler")


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can run ``callback`` after ``delay_ms`` milliseconds."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Handle: ...


# ---------------------------------------------------------------------------
# asyncio-backed scheduler
# ---------------------------------------------------------------------------


class AsyncioScheduler:
    """
    Schedule continuations on an asyncio event loop.

    If no loop is given, the running loop is looked up at call time, so the
    scheduler can be created outside of a coroutine.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Handle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(delay_ms, 0) / 1000.0, callback)


# ---------------------------------------------------------------------------
# Virtual-clock scheduler
# ---------------------------------------------------------------------------


class _ManualHandle:
    __slots__ = ("due_ms", "seq", "callback", "cancelled")

    def __init__(self, due_ms: int, seq: int, callback: Callable[[], None]) -> None:
        self.due_ms = due_ms
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __lt__(self, other: "_ManualHandle") -> bool:
        return (self.due_ms, self.seq) < (other.due_ms, other.seq)


class ManualScheduler:
    """
    Deterministic scheduler driven by ``advance()``.

    Callbacks due at the same instant run in the order they were scheduled.
    Callbacks scheduled while advancing run in the same ``advance()`` call
    if they fall due within the advanced window.
    """

    def __init__(self) -> None:
        self.now_ms: int = 0
        self._queue: list[_ManualHandle] = []
        self._seq = itertools.count()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Handle:
        handle = _ManualHandle(self.now_ms + max(delay_ms, 0), next(self._seq), callback)
        heapq.heappush(self._queue, handle)
        return handle

    @property
    def pending(self) -> int:
        """Number of scheduled, not-yet-cancelled callbacks."""
        return sum(1 for handle in self._queue if not handle.cancelled)

    def advance(self, delta_ms: int) -> int:
        """
        Move the clock forward by ``delta_ms`` and run everything that falls due.

        Returns:
            Number of callbacks executed.
        """
        target = self.now_ms + delta_ms
        executed = 0
        while self._queue and self._queue[0].due_ms <= target:
            handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now_ms = handle.due_ms
            handle.callback()
            executed += 1
        self.now_ms = target
        return executed

    def run_until_idle(self, max_callbacks: int = 10_000) -> int:
        """
        Run callbacks in due order until nothing is scheduled.

        Raises:
            RuntimeError: If ``max_callbacks`` is exceeded (runaway loop).
        """
        executed = 0
        while self._queue:
            handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now_ms = max(self.now_ms, handle.due_ms)
            handle.callback()
            executed += 1
            if executed > max_callbacks:
                raise RuntimeError(
                    f"ManualScheduler exceeded {max_callbacks} callbacks"
                )
        return executed
