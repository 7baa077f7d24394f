"""Cooperative timer schedulers.

Playback runs on a single timeline of delayed callbacks. ``AsyncioScheduler``
binds that timeline to an asyncio event loop; ``VirtualScheduler`` is a manual
clock used for tests and dry runs.
"""

import asyncio
import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class TimerHandle:
    """Handle to a scheduled callback."""

    def __init__(self, deadline: float, callback: Callback):
        self.deadline = deadline
        self.callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled

    def __repr__(self) -> str:
        state = 'cancelled' if self._cancelled else 'pending'
        return f"TimerHandle(deadline={self.deadline:.3f}, {state})"


class Scheduler(ABC):
    """Source of cancellable delayed callbacks."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callback):
        """Run ``callback`` after ``delay`` seconds; returns a handle with ``cancel()``."""

    @abstractmethod
    def time(self) -> float:
        """Current time on this scheduler's clock, in seconds."""


class AsyncioScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop or asyncio.get_running_loop()

    def call_later(self, delay: float, callback: Callback) -> asyncio.TimerHandle:
        return self.loop.call_later(max(0.0, delay), callback)

    def time(self) -> float:
        return self.loop.time()


class VirtualScheduler(Scheduler):
    """Deterministic manual clock.

    Timers fire only when the clock is advanced. Timers with equal deadlines
    fire in scheduling order.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: List[Tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()
        self.fired = 0

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        handle = TimerHandle(self._now + max(0.0, delay), callback)
        heapq.heappush(self._queue, (handle.deadline, next(self._counter), handle))
        return handle

    def time(self) -> float:
        return self._now

    def pending(self) -> int:
        """Number of timers that are scheduled and not cancelled."""
        return sum(1 for _, _, handle in self._queue if not handle.cancelled())

    def next_deadline(self) -> Optional[float]:
        self._discard_cancelled()
        return self._queue[0][0] if self._queue else None

    def _discard_cancelled(self) -> None:
        while self._queue and self._queue[0][2].cancelled():
            heapq.heappop(self._queue)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every timer that falls due.

        Returns:
            Number of callbacks fired
        """
        target = self._now + seconds
        fired = 0
        while True:
            self._discard_cancelled()
            if not self._queue or self._queue[0][0] > target:
                break
            deadline, _, handle = heapq.heappop(self._queue)
            self._now = deadline
            handle.callback()
            fired += 1

        self._now = target
        self.fired += fired
        return fired

    def run_until_idle(self, max_callbacks: int = 10000) -> int:
        """Fire timers in deadline order until none are pending."""
        fired = 0
        while fired < max_callbacks:
            deadline = self.next_deadline()
            if deadline is None:
                return fired
            fired += self.advance(deadline - self._now)
        raise RuntimeError(f"Scheduler still busy after {max_callbacks} callbacks")
