"""Keyed delayed-task schedulers.

A scheduler runs a callback once after a delay and lets callers cancel it by
key. `AsyncioScheduler` is used by the running application;
`VirtualClockScheduler` fires callbacks only when its clock is advanced, so
time-based behaviour can be tested without sleeping.
"""

import asyncio
import heapq
import itertools
from collections.abc import Callable, Hashable
from typing import Protocol

import structlog

logger = structlog.get_logger(__name__)

Callback = Callable[[], None]


class Scheduler(Protocol):
    def schedule(self, key: Hashable, delay: float, callback: Callback) -> None:
        """Run `callback` once after `delay` seconds, replacing any task for `key`."""
        ...

    def cancel(self, key: Hashable) -> bool:
        """Cancel the task for `key`. Returns True if one was pending."""
        ...

    def cancel_all(self) -> int:
        """Cancel every pending task and return how many there were."""
        ...

    def pending(self) -> list[Hashable]:
        """Keys of tasks that have not yet run."""
        ...


class AsyncioScheduler:
    """Schedules callbacks on the running asyncio event loop."""

    def __init__(self) -> None:
        self._handles: dict[Hashable, asyncio.TimerHandle] = {}

    def schedule(self, key: Hashable, delay: float, callback: Callback) -> None:
        loop = asyncio.get_running_loop()
        self.cancel(key)

        def run() -> None:
            self._handles.pop(key, None)
            callback()

        self._handles[key] = loop.call_later(max(delay, 0.0), run)

    def cancel(self, key: Hashable) -> bool:
        handle = self._handles.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> int:
        count = 0
        for key in list(self._handles):
            if self.cancel(key):
                count += 1
        return count

    def pending(self) -> list[Hashable]:
        return list(self._handles)


class VirtualClockScheduler:
    """Scheduler driven by an explicit virtual clock.

    Nothing fires until `advance` moves the clock past a task's due time.
    Tasks due at the same instant run in scheduling order.
    """

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self._queue: list[tuple[float, int, Hashable]] = []
        self._tasks: dict[Hashable, tuple[int, Callback]] = {}
        self._seq = itertools.count()

    def schedule(self, key: Hashable, delay: float, callback: Callback) -> None:
        seq = next(self._seq)
        self._tasks[key] = (seq, callback)
        heapq.heappush(self._queue, (self.now + max(delay, 0.0), seq, key))

    def cancel(self, key: Hashable) -> bool:
        return self._tasks.pop(key, None) is not None

    def cancel_all(self) -> int:
        count = len(self._tasks)
        self._tasks.clear()
        self._queue.clear()
        return count

    def pending(self) -> list[Hashable]:
        return list(self._tasks)

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward and run every task that became due.

        Returns:
            Number of callbacks run.
        """
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, seq, key = heapq.heappop(self._queue)
            task = self._tasks.get(key)
            # Stale heap entry: cancelled or rescheduled since it was pushed.
            if task is None or task[0] != seq:
                continue
            del self._tasks[key]
            self.now = due
            task[1]()
            fired += 1
        self.now = target
        return fired
