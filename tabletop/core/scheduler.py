"""Deferred callbacks for bot "thinking" steps.

Everything runs on the host loop's thread. The loop calls run_due() between
input polls; callbacks whose deadline has passed run in deadline order.
There is no parallelism and nothing ever blocks: a wait is just a
continuation scheduled for later.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class CancelToken:
    """
    Shared flag checked at the start of every continuation in a chain.

    Cancelling is one-way; a chain that sees a cancelled token must return
    without touching game state.
    """

    __slots__ = ("_cancelled", "reason")

    def __init__(self) -> None:
        self._cancelled = False
        self.reason = ""

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: str = "") -> None:
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason


class TimerHandle:
    """One scheduled callback. cancel() turns a later firing into a no-op."""

    __slots__ = ("when", "seq", "callback", "cancelled")

    def __init__(self, when: float, seq: int, callback: Callable[[], None]) -> None:
        self.when = when
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __lt__(self, other: "TimerHandle") -> bool:
        return (self.when, self.seq) < (other.when, other.seq)


class Scheduler:
    """
    Min-heap of timers keyed by deadline.

    Args:
        clock: Monotonic time source in seconds (default: time.monotonic).
               Tests inject a manual clock.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._heap: List[TimerHandle] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._clock()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        handle = TimerHandle(self._clock() + delay, next(self._seq), callback)
        heapq.heappush(self._heap, handle)
        logger.debug("scheduled timer #%d in %.3fs", handle.seq, delay)
        return handle

    def next_deadline(self) -> Optional[float]:
        """Deadline of the earliest live timer, or None when nothing is pending."""
        self._drop_cancelled()
        return self._heap[0].when if self._heap else None

    def run_due(self) -> int:
        """
        Run every live callback whose deadline has passed.

        Callbacks scheduled while running (e.g. the next link of a bot
        chain) only run in this pass if they are already due.

        Returns:
            Number of callbacks executed.
        """
        ran = 0
        now = self._clock()
        while self._heap and self._heap[0].when <= now:
            handle = heapq.heappop(self._heap)
            if handle.cancelled:
                continue
            handle.callback()
            ran += 1
        return ran

    def cancel_all(self) -> None:
        """Drop every pending timer. Used when the host loop shuts down."""
        for handle in self._heap:
            handle.cancel()
        self._heap.clear()

    def _drop_cancelled(self) -> None:
        while self._heap and self._heap[0].cancelled:
            heapq.heappop(self._heap)
