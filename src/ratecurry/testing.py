"""Utilities for testing code that uses rate controllers, on virtual time."""

from __future__ import annotations

import heapq
import itertools
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Any

__all__ = ["FakeClock", "ManualScheduler"]


class FakeClock:
    """A clock that only moves when told to.

    Parameters
    ----------
    start : float
        The initial time in milliseconds, by default 0.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def set(self, ms: float) -> None:
        """Jump to `ms`.  Time never goes backwards."""
        if ms < self._now:
            raise ValueError(f"Cannot move a monotonic clock back to {ms} ms")
        self._now = float(ms)

    def advance(self, ms: float) -> None:
        """Move the clock forward by `ms` milliseconds."""
        self.set(self._now + ms)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(now={self._now})"


class _ScheduledCall:
    __slots__ = ("when", "seq", "callback", "cancelled")

    def __init__(self, when: float, seq: int, callback: Callable[[], Any]) -> None:
        self.when = when
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def __lt__(self, other: _ScheduledCall) -> bool:
        return (self.when, self.seq) < (other.when, other.seq)

    def __repr__(self) -> str:
        state = " cancelled" if self.cancelled else ""
        return f"<ScheduledCall at {self.when} ms{state}>"


class ManualScheduler:
    """A scheduler whose callbacks only run when virtual time is advanced.

    Pass both `scheduler` and `scheduler.clock` to a rate controller, then drive
    it with `advance`.

    Parameters
    ----------
    clock : FakeClock, optional
        The clock to read and advance.  A new one starting at 0 is created if not
        provided.

    Examples
    --------
    ```python
    from unittest.mock import Mock

    from ratecurry import debounced
    from ratecurry.testing import ManualScheduler

    sched = ManualScheduler()
    mock = Mock()
    f = debounced(mock, timeout=100, clock=sched.clock, scheduler=sched)
    f(1)
    sched.advance(99)
    mock.assert_not_called()
    sched.advance(1)
    mock.assert_called_once_with(1)
    ```
    """

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.clock = clock if clock is not None else FakeClock()
        self._queue: list[_ScheduledCall] = []
        self._counter = itertools.count()

    @property
    def pending(self) -> int:
        """Number of scheduled callbacks that have neither run nor been cancelled."""
        return sum(1 for c in self._queue if not c.cancelled)

    def after(self, delay_ms: float, callback: Callable[[], Any]) -> _ScheduledCall:
        if delay_ms < 0:
            raise ValueError(f"Timers cannot have negative delays (got {delay_ms} ms)")
        when = self.clock.now() + delay_ms
        call = _ScheduledCall(when, next(self._counter), callback)
        heapq.heappush(self._queue, call)
        return call

    def cancel(self, handle: _ScheduledCall) -> None:
        handle.cancelled = True

    def advance(self, ms: float) -> None:
        """Move time forward by `ms`, running every callback that falls due.

        Callbacks run in due-time order, with the clock set to their due time.
        Callbacks scheduled while advancing also run if they fall due in time.
        """
        target = self.clock.now() + ms
        while self._queue and self._queue[0].when <= target:
            call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            self.clock.set(max(call.when, self.clock.now()))
            call.cancelled = True
            call.callback()
        self.clock.set(target)

    def run_all(self) -> None:
        """Run callbacks (advancing time) until nothing is scheduled."""
        while self._queue:
            call = self._queue[0]
            if call.cancelled:
                heapq.heappop(self._queue)
                continue
            self.advance(max(call.when - self.clock.now(), 0))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(clock={self.clock!r}, pending={self.pending})"
