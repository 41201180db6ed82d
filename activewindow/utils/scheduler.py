"""Deferred callback scheduling.

The tracking core never sleeps. Every retry and poll step is a callback
handed to a scheduler, which lets the daemon run on the asyncio loop
while tests drive a virtual clock.
"""

import abc
import asyncio
import heapq
import itertools
from typing import Callable, List, Optional, Tuple


class Scheduler(abc.ABC):
    """Runs callbacks after a delay on the caller's thread."""

    @abc.abstractmethod
    def schedule_after(self, delay: float, callback: Callable[[], None]) -> None:
        """Run ``callback`` once, ``delay`` seconds from now."""
        raise NotImplementedError


class AsyncioScheduler(Scheduler):
    """Scheduler backed by ``loop.call_later``."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule_after(self, delay: float, callback: Callable[[], None]) -> None:
        self.loop.call_later(max(delay, 0), callback)


class ManualScheduler(Scheduler):
    """Virtual clock scheduler; time only moves when ``advance`` is called."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: List[Tuple[float, int, Callable[[], None]]] = []
        self._counter = itertools.count()

    def schedule_after(self, delay: float, callback: Callable[[], None]) -> None:
        heapq.heappush(self._queue, (self.now + max(delay, 0), next(self._counter), callback))

    @property
    def pending(self) -> int:
        return len(self._queue)

    def next_due(self) -> Optional[float]:
        return self._queue[0][0] if self._queue else None

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing everything that falls due on the way.

        Callbacks scheduled while advancing also fire if they are due
        before the target time.
        """
        target = self.now + seconds
        # Tolerate float drift from summed millisecond delays
        while self._queue and self._queue[0][0] <= target + 1e-9:
            due, _, callback = heapq.heappop(self._queue)
            self.now = max(self.now, due)
            callback()
        self.now = target

    def run_pending(self) -> None:
        """Fire callbacks that are already due without moving the clock."""
        self.advance(0)
