"""Clock and timer abstraction used by the context manager.

Production code runs on ``ThreadingScheduler``; tests drive time explicitly
with ``ManualScheduler.advance``.
"""

import heapq
import itertools
import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


class Scheduler(ABC):
    """Abstract clock plus one-shot timers (milliseconds)."""

    @abstractmethod
    def now(self) -> int:
        """Return the current time in milliseconds."""
        pass

    @abstractmethod
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        """Run ``callback`` once after ``delay_ms``.

        Returns:
            Opaque handle accepted by ``cancel``
        """
        pass

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        """Cancel a pending call; cancelling a fired or unknown handle is a no-op."""
        pass


class ThreadingScheduler(Scheduler):
    """Wall-clock scheduler backed by daemon ``threading.Timer`` threads.

    Callbacks run on timer threads; callers serialise them with their own lock.
    """

    def now(self) -> int:
        return int(time.time() * 1000)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(max(delay_ms, 0) / 1000, callback)
        timer.daemon = True
        timer.start()
        return timer

    def cancel(self, handle: Any) -> None:
        if handle is not None:
            handle.cancel()


@dataclass(order=True)
class ScheduledCall:
    """Pending call of a ``ManualScheduler``; ordered by due time, then creation."""

    due: int
    sequence: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


class ManualScheduler(Scheduler):
    """Deterministic scheduler whose clock only moves through ``advance``."""

    def __init__(self, start_ms: int = 0) -> None:
        self._now = start_ms
        self._queue: list[ScheduledCall] = []
        self._sequence = itertools.count()

    def now(self) -> int:
        return self._now

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledCall:
        call = ScheduledCall(self._now + max(delay_ms, 0), next(self._sequence), callback)
        heapq.heappush(self._queue, call)
        return call

    def cancel(self, handle: Any) -> None:
        if isinstance(handle, ScheduledCall):
            handle.cancelled = True

    def advance(self, delay_ms: int) -> int:
        """Move the clock forward, firing due callbacks in due-time order.

        Callbacks scheduled while advancing fire in the same call if they fall
        due before the target time.

        Returns:
            Number of callbacks fired
        """
        target = self._now + delay_ms
        fired = 0

        while self._queue and self._queue[0].due <= target:
            call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            self._now = call.due
            call.cancelled = True
            call.callback()
            fired += 1

        self._now = target
        return fired

    @property
    def pending(self) -> int:
        """Number of calls still waiting to fire."""
        return sum(1 for call in self._queue if not call.cancelled)
