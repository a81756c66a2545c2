"""Task scheduler — runs callbacks after a delay on a real or virtual clock."""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

logger = logging.getLogger(__name__)


class ScheduledTask:
    """Handle to a pending callback; ``cancel()`` is safe to call twice."""

    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.done = False
        self._handle: asyncio.TimerHandle | None = None

    def cancel(self) -> None:
        if self.done or self.cancelled:
            return
        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()

    def run(self) -> None:
        if self.cancelled or self.done:
            return
        self.done = True
        try:
            self.callback()
        except Exception:
            logger.exception("Scheduled task %r failed", self.callback)


class Scheduler(ABC):
    """Abstract scheduler.

    It is also the clock for everything time-based in the app (OTP expiry,
    message timestamps, chat ids), so a test that swaps in
    :class:`VirtualScheduler` controls all of them at once.
    """

    def __init__(self) -> None:
        self._pending: set[ScheduledTask] = set()

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds since the epoch."""

    @abstractmethod
    def _arm(self, task: ScheduledTask, delay: float) -> None:
        """Arrange for ``task.run()`` to be called after *delay* seconds."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask(self.now() + delay, callback)
        self._pending.add(task)
        self._arm(task, delay)
        return task

    def _fire(self, task: ScheduledTask) -> None:
        self._pending.discard(task)
        task.run()

    @property
    def pending_count(self) -> int:
        return sum(1 for t in self._pending if not t.cancelled)

    def cancel_all(self) -> int:
        """Cancel every pending task and return how many were cancelled."""
        count = 0
        for task in list(self._pending):
            if not task.cancelled:
                task.cancel()
                count += 1
        self._pending.clear()
        if count:
            logger.info("Cancelled %d pending scheduled task(s)", count)
        return count


class AsyncioScheduler(Scheduler):
    """Wall-clock scheduler backed by the running event loop.

    ``call_later`` must be invoked from code running on the loop (i.e. from
    an ``async def`` route), which is how every caller in the app uses it.
    """

    def now(self) -> float:
        return time.time()

    def _arm(self, task: ScheduledTask, delay: float) -> None:
        loop = asyncio.get_running_loop()
        task._handle = loop.call_later(delay, self._fire, task)


class VirtualScheduler(Scheduler):
    """Deterministic scheduler whose clock only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        super().__init__()
        self._now = start
        self._queue: list[tuple[float, int, ScheduledTask]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def _arm(self, task: ScheduledTask, delay: float) -> None:
        heapq.heappush(self._queue, (task.due, next(self._seq), task))

    def advance(self, seconds: float) -> None:
        """Move the clock forward, running due callbacks in due-time order."""
        target = self._now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, task = heapq.heappop(self._queue)
            self._now = max(self._now, due)
            self._fire(task)
        self._now = target
