"""
Cooperative scheduler driven by a per-frame tick.

Callbacks are queued against a virtual clock and run from tick() once their
due time has passed. Nothing blocks: a capture window is just a callback due
at the end of the window.
"""

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, List

logger = logging.getLogger(__name__)


@dataclass(order=True)
class ScheduledCall:
    """A queued callback. Ordered by due time, then scheduling order."""

    due: float
    sequence: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


class Scheduler:
    """Virtual-time callback queue polled once per tick."""

    def __init__(self, start_time: float = 0.0):
        self._now = start_time
        self._queue: List[ScheduledCall] = []
        self._running: List[ScheduledCall] = []
        self._sequence = itertools.count()

    @property
    def now(self) -> float:
        """Current virtual time in seconds."""
        return self._now

    @property
    def pending(self) -> int:
        """Number of callbacks still waiting to run."""
        return sum(1 for call in self._queue if not call.cancelled)

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        """
        Schedule a callback to run on the first tick at or after now + delay.

        Args:
            delay: Seconds from the current virtual time (negative is treated as 0).
            callback: Zero-argument callable.

        Returns:
            Handle that can be passed to cancel().
        """
        call = ScheduledCall(
            due=self._now + max(0.0, delay),
            sequence=next(self._sequence),
            callback=callback,
        )
        heapq.heappush(self._queue, call)
        return call

    def cancel(self, call: ScheduledCall) -> bool:
        """Cancel a scheduled call. Returns False if it already ran or was cancelled."""
        if call.cancelled:
            return False
        call.cancelled = True
        return True

    def cancel_all(self) -> None:
        """Cancel everything queued, including calls due later in the running tick."""
        for call in self._queue + self._running:
            call.cancelled = True
        self._queue.clear()

    def tick(self, now: float) -> int:
        """
        Advance the clock and run every callback due by `now`.

        Callbacks scheduled while the tick runs wait for a later tick, even
        with zero delay. A failing callback is logged and does not stop the
        others due in the same tick.

        Returns:
            Number of callbacks executed.
        """
        if now < self._now:
            raise ValueError(f"Time cannot go backwards: {now} < {self._now}")
        self._now = now

        due: List[ScheduledCall] = []
        while self._queue and self._queue[0].due <= now:
            due.append(heapq.heappop(self._queue))

        self._running = due
        executed = 0
        try:
            for call in due:
                if call.cancelled:
                    continue
                call.cancelled = True  # consumed
                executed += 1
                try:
                    call.callback()
                except Exception:
                    logger.exception("Scheduled callback due at %.3f failed", call.due)
        finally:
            self._running = []
        return executed

    def advance(self, seconds: float) -> int:
        """Tick forward by a relative amount of time."""
        return self.tick(self._now + seconds)
