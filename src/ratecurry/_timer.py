"""Clocks and single-shot schedulers used by the rate controllers."""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Callable

__all__ = [
    "AsyncioScheduler",
    "Clock",
    "MonotonicClock",
    "Scheduler",
    "ThreadingScheduler",
]


@runtime_checkable
class Clock(Protocol):
    """Source of monotonic timestamps, in milliseconds."""

    def now(self) -> float: ...


@runtime_checkable
class Scheduler(Protocol):
    """Single-shot delayed-callback facility.

    `after` calls `callback` once, `delay_ms` milliseconds from now, and returns
    a handle that may be passed to `cancel`.  Cancelling a handle that already
    ran (or was already cancelled) must be a no-op.
    """

    def after(self, delay_ms: float, callback: Callable[[], Any]) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


def _check_delay(delay_ms: float) -> None:
    if delay_ms < 0:
        raise ValueError(f"Timers cannot have negative delays (got {delay_ms!r} ms)")


class MonotonicClock:
    """Clock backed by `time.monotonic`, reporting milliseconds."""

    def now(self) -> float:
        return time.monotonic() * 1000

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class ThreadingScheduler:
    """Scheduler that runs each callback on its own `threading.Timer` thread.

    Exceptions raised by a callback are reported by `threading.excepthook`.
    """

    def after(self, delay_ms: float, callback: Callable[[], Any]) -> threading.Timer:
        _check_delay(delay_ms)
        timer = threading.Timer(delay_ms / 1000, callback)
        timer.daemon = True
        timer.start()
        return timer

    def cancel(self, handle: threading.Timer) -> None:
        handle.cancel()

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class AsyncioScheduler:
    """Scheduler that runs callbacks on an asyncio event loop via `call_later`.

    Parameters
    ----------
    loop : asyncio.AbstractEventLoop, optional
        The loop to schedule on.  If not provided, the running loop is looked up
        the first time a callback is scheduled (so `after` must then be called
        from inside a running loop).
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            import asyncio

            self._loop = asyncio.get_running_loop()
        return self._loop

    def after(
        self, delay_ms: float, callback: Callable[[], Any]
    ) -> asyncio.TimerHandle:
        _check_delay(delay_ms)
        return self.loop.call_later(delay_ms / 1000, callback)

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(loop={self._loop!r})"
