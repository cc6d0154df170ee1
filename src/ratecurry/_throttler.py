from __future__ import annotations

import threading
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ._exceptions import ControllerDisposedError, InvalidConfigurationError
from ._timer import MonotonicClock, ThreadingScheduler

if TYPE_CHECKING:
    import inspect
    from collections.abc import Callable
    from types import TracebackType
    from typing import Literal, ParamSpec, Union

    from typing_extensions import Self

    from ._timer import Clock, Scheduler

    ModeLike = Union[Literal["debounce", "throttle"], "Mode"]
    _Call = tuple[tuple[Any, ...], dict[str, Any]]

    P = ParamSpec("P")
else:
    # just so that we don't have to depend on a new version of typing_extensions
    # at runtime
    P = TypeVar("P")

__all__ = [
    "Debouncer",
    "Mode",
    "RateController",
    "Throttler",
    "debounced",
    "rate_controlled",
    "throttled",
]


class Mode(str, Enum):
    """How a `RateController` decides when to call its function."""

    DEBOUNCE = "debounce"
    THROTTLE = "throttle"

    def __str__(self) -> str:
        return self.value


class RateController(Generic[P]):
    """Wrap `func` so that calls to it are debounced or throttled.

    Calling the controller never returns the result of `func`: depending on the
    mode and edge policy, each call either invokes `func` right away, schedules a
    trailing invocation, or only records its arguments for a trailing invocation
    that is already scheduled.  Trailing invocations always use the arguments of
    the most recent call.

    Parameters
    ----------
    func : Callable[P, Any]
        a function to wrap
    interval : float, optional
        the interval in ms, by default 100.  For debouncing, this is the quiet
        period that must follow the last call; for throttling, the minimum time
        between two invocations of `func`.  With an interval of 0, every call
        invokes `func` immediately.
    mode : {"debounce", "throttle"}, optional
        by default "debounce"
    leading : bool, optional
        Whether to invoke `func` on the leading edge of a burst (debounce) or
        interval (throttle).  By default, False for debounce and True for throttle.
    trailing : bool, optional
        Whether to invoke `func` at the end of the quiet period or interval, by
        default True
    clock : Clock, optional
        Source of monotonic time in ms, by default a `MonotonicClock`.
    scheduler : Scheduler, optional
        Single-shot timer facility used for trailing invocations, by default a
        `ThreadingScheduler`.

    Raises
    ------
    InvalidConfigurationError
        If `interval` is negative, `mode` is unknown, or both `leading` and
        `trailing` are False.
    """

    def __init__(
        self,
        func: Callable[P, Any],
        interval: float = 100,
        *,
        mode: ModeLike = Mode.DEBOUNCE,
        leading: bool | None = None,
        trailing: bool = True,
        clock: Clock | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        try:
            self._mode = Mode(mode)
        except ValueError:
            raise InvalidConfigurationError(
                f"mode must be one of {[m.value for m in Mode]}, not {mode!r}"
            ) from None
        if leading is None:
            leading = self._mode is Mode.THROTTLE
        if not (leading or trailing):
            raise InvalidConfigurationError(
                "At least one of 'leading' or 'trailing' must be True, "
                "otherwise the function would never be called."
            )
        _validate_interval(interval)

        self.__wrapped__: Callable[P, Any] = func
        self._interval: float = interval
        self._leading: bool = bool(leading)
        self._trailing: bool = bool(trailing)
        self._clock: Clock = clock if clock is not None else MonotonicClock()
        self._scheduler: Scheduler = (
            scheduler if scheduler is not None else ThreadingScheduler()
        )

        # guards the state below against the scheduler thread, never held while
        # `func` runs
        self._lock = threading.RLock()
        self._timer: Any = None
        # bumped whenever the timer is cancelled, so that a callback the scheduler
        # has already started can tell that it is stale.
        self._generation: int = 0
        self._has_pending: bool = False
        self._last_fire: float | None = None
        self._disposed: bool = False
        self._args: tuple[Any, ...] = ()
        self._kwargs: dict[str, Any] = {}

        # this mimics what functools.wraps does, but avoids __dict__ usage
        self.__module__: str = getattr(func, "__module__", "")
        self.__name__: str = getattr(func, "__name__", "")
        self.__qualname__: str = getattr(func, "__qualname__", "")
        self.__doc__: str | None = getattr(func, "__doc__", None)
        self.__annotations__: dict[str, Any] = getattr(func, "__annotations__", {})

    # ------------------------- public API -------------------------

    @property
    def mode(self) -> Mode:
        """Return whether this controller debounces or throttles."""
        return self._mode

    @property
    def leading(self) -> bool:
        return self._leading

    @property
    def trailing(self) -> bool:
        return self._trailing

    @property
    def interval(self) -> float:
        """Return current interval in milliseconds."""
        return self._interval

    @interval.setter
    def interval(self, interval: float) -> None:
        """Set interval in milliseconds (applies to the next scheduled timer)."""
        _validate_interval(interval)
        self._interval = interval

    @property
    def pending(self) -> bool:
        """Return True if a timer is outstanding."""
        return self._timer is not None

    @property
    def disposed(self) -> bool:
        return self._disposed

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> None:
        """Record the call and invoke, schedule or skip `func` accordingly."""
        now = self._clock.now() if self._mode is Mode.THROTTLE else 0.0
        with self._lock:
            if self._disposed:
                raise ControllerDisposedError(self.__name__)
            self._args = args
            self._kwargs = kwargs
            self._has_pending = True

            if self._interval <= 0:
                self._cancel_timer()
                call = self._take_call()
            elif self._mode is Mode.THROTTLE:
                call = self._throttle(now)
            else:
                call = self._debounce()
        if call is not None:
            self._invoke(call)

    def cancel(self) -> None:
        """Cancel any pending calls."""
        with self._lock:
            self._has_pending = False
            self._cancel_timer()
            if self._mode is Mode.THROTTLE and not self._leading:
                self._last_fire = None

    def flush(self) -> None:
        """Force a call if there is one pending."""
        now = self._clock.now() if self._mode is Mode.THROTTLE else 0.0
        with self._lock:
            if self._timer is None:
                return
            self._cancel_timer()
            call = self._on_timeout(now)
        if call is not None:
            self._invoke(call)

    def dispose(self) -> None:
        """Cancel any pending call and refuse all further calls."""
        with self._lock:
            self.cancel()
            self._disposed = True

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.dispose()

    @property
    def __signature__(self) -> inspect.Signature:
        import inspect

        return inspect.signature(self.__wrapped__)

    def __repr__(self) -> str:
        name = self.__qualname__ or repr(self.__wrapped__)
        return (
            f"<{type(self).__name__} {name} mode={self._mode.value!r} "
            f"interval={self._interval!r} leading={self._leading} "
            f"trailing={self._trailing}>"
        )

    # ------------------------- internals -------------------------
    # Methods returning `_Call | None` run with `self._lock` held. The call they
    # return is invoked by the caller once the lock is released, so that `func`
    # may call the controller again.

    def _debounce(self) -> _Call | None:
        call = None
        if self._leading and self._timer is None:
            call = self._take_call()
        # restart the quiet period on every call
        self._start_timer(self._interval)
        return call

    def _throttle(self, now: float) -> _Call | None:
        if self._last_fire is None and not self._leading:
            # a fresh window without a leading edge: start waiting now
            self._last_fire = now
        remaining = (
            0 if self._last_fire is None else self._interval - (now - self._last_fire)
        )

        if remaining <= 0:
            self._cancel_timer()
            self._last_fire = now
            return self._take_call()
        if self._timer is None and self._trailing:
            self._start_timer(remaining)
        return None

    def _take_call(self) -> _Call:
        self._has_pending = False
        return self._args, self._kwargs

    def _invoke(self, call: _Call) -> None:
        args, kwargs = call
        self.__wrapped__(*args, **kwargs)

    def _start_timer(self, delay: float) -> None:
        self._cancel_timer()
        generation = self._generation

        def _timeout() -> None:
            # read the clock before locking: it is a collaborator and may block
            now = self._clock.now() if self._mode is Mode.THROTTLE else 0.0
            with self._lock:
                if generation != self._generation:
                    return
                self._timer = None
                call = self._on_timeout(now)
            if call is not None:
                self._invoke(call)

        self._timer = self._scheduler.after(delay, _timeout)

    def _cancel_timer(self) -> None:
        with self._lock:
            self._generation += 1
            if self._timer is not None:
                timer, self._timer = self._timer, None
                self._scheduler.cancel(timer)

    def _on_timeout(self, now: float) -> _Call | None:
        fire = self._trailing and self._has_pending
        if self._mode is Mode.THROTTLE:
            if fire:
                self._last_fire = now if self._leading else None
            elif not self._leading:
                self._last_fire = None
        if fire:
            return self._take_call()
        self._has_pending = False
        return None


class Throttler(RateController, Generic[P]):
    """Class that prevents calling `func` more than once per `interval`.

    Parameters
    ----------
    func : Callable[P, Any]
        a function to wrap
    interval : float, optional
        the minimum interval in ms that must pass before the function is called again,
        by default 100
    leading : bool, optional
        Whether to invoke the function at the start of an interval, by default True
    trailing : bool, optional
        Whether to invoke the function at the end of an interval with the latest
        arguments (if calls were skipped), by default True
    clock, scheduler : optional
        Collaborators for time keeping and timers, see `RateController`.
    """

    def __init__(
        self,
        func: Callable[P, Any],
        interval: float = 100,
        leading: bool = True,
        trailing: bool = True,
        *,
        clock: Clock | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        super().__init__(
            func,
            interval,
            mode=Mode.THROTTLE,
            leading=leading,
            trailing=trailing,
            clock=clock,
            scheduler=scheduler,
        )


class Debouncer(RateController, Generic[P]):
    """Class that waits at least `interval` after the last call before calling `func`.

    Parameters
    ----------
    func : Callable[P, Any]
        a function to wrap
    interval : float, optional
        the quiet period in ms that must follow the last call, by default 100
    leading : bool, optional
        Whether to invoke the function on the first call of a burst, by default False
    trailing : bool, optional
        Whether to invoke the function once the burst is over, by default True.
        When both edges are enabled, a burst made of a single call only invokes
        the function once.
    clock, scheduler : optional
        Collaborators for time keeping and timers, see `RateController`.
    """

    def __init__(
        self,
        func: Callable[P, Any],
        interval: float = 100,
        leading: bool = False,
        trailing: bool = True,
        *,
        clock: Clock | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        super().__init__(
            func,
            interval,
            mode=Mode.DEBOUNCE,
            leading=leading,
            trailing=trailing,
            clock=clock,
            scheduler=scheduler,
        )


def _validate_interval(interval: float) -> None:
    if interval < 0:
        raise InvalidConfigurationError(
            f"interval must be non-negative, got {interval!r}"
        )


def rate_controlled(
    func: Callable[P, Any] | None = None,
    interval: float = 100,
    *,
    mode: ModeLike = Mode.DEBOUNCE,
    leading: bool | None = None,
    trailing: bool = True,
    clock: Clock | None = None,
    scheduler: Scheduler | None = None,
) -> RateController[P] | Callable[[Callable[P, Any]], RateController[P]]:
    """Wrap `func` in a `RateController`.

    This decorator may be used with or without parameters.  See `RateController`
    for the meaning of each option.
    """

    def deco(func: Callable[P, Any]) -> RateController[P]:
        return RateController(
            func,
            interval,
            mode=mode,
            leading=leading,
            trailing=trailing,
            clock=clock,
            scheduler=scheduler,
        )

    return deco(func) if func is not None else deco


def throttled(
    func: Callable[P, Any] | None = None,
    timeout: float = 100,
    leading: bool = True,
    trailing: bool = True,
    *,
    clock: Clock | None = None,
    scheduler: Scheduler | None = None,
) -> Throttler[P] | Callable[[Callable[P, Any]], Throttler[P]]:
    """Create a throttled function that invokes func at most once per timeout.

    The throttled function comes with a `cancel` method to cancel delayed func
    invocations, a `flush` method to immediately invoke them, and a `dispose`
    method to shut it down for good. Options indicate whether func should be
    invoked on the leading and/or trailing edge of the wait timeout. The func is
    invoked with the last arguments provided to the throttled function. Calling
    the throttled function always returns None.

    This decorator may be used with or without parameters.

    Parameters
    ----------
    func : Callable
        A function to throttle
    timeout : float
        Timeout in milliseconds to wait before allowing another call, by default 100
    leading : bool
        Whether to invoke the function on the leading edge of the wait timer,
        by default True
    trailing : bool
        Whether to invoke the function on the trailing edge of the wait timer,
        by default True

    Examples
    --------
    ```python
    from ratecurry import throttled

    @throttled(timeout=50)
    def on_scroll(position: int) -> None:
        # do something possibly expensive
        ...

    # no matter how fast positions arrive, `on_scroll` runs at most
    # once every 50 milliseconds, and the last position is never lost.
    for position in range(1000):
        on_scroll(position)
    ```
    """

    def deco(func: Callable[P, Any]) -> Throttler[P]:
        return Throttler(
            func, timeout, leading, trailing, clock=clock, scheduler=scheduler
        )

    return deco(func) if func is not None else deco


def debounced(
    func: Callable[P, Any] | None = None,
    timeout: float = 100,
    leading: bool = False,
    trailing: bool = True,
    *,
    clock: Clock | None = None,
    scheduler: Scheduler | None = None,
) -> Debouncer[P] | Callable[[Callable[P, Any]], Debouncer[P]]:
    """Create a debounced function that delays invoking `func`.

    `func` will not be invoked until `timeout` ms have elapsed since the last time
    the debounced function was invoked.

    The debounced function comes with a `cancel` method to cancel delayed func
    invocations, a `flush` method to immediately invoke them, and a `dispose`
    method to shut it down for good. Options indicate whether func should be
    invoked on the leading and/or trailing edge of the wait timeout. The func is
    invoked with the *last* arguments provided to the debounced function. Calling
    the debounced function always returns None.

    This decorator may be used with or without parameters.

    Parameters
    ----------
    func : Callable
        A function to debounce
    timeout : float
        Quiet period in milliseconds to wait after the last call, by default 100
    leading : bool
        Whether to invoke the function on the leading edge of the wait timer,
        by default False
    trailing : bool
        Whether to invoke the function on the trailing edge of the wait timer,
        by default True

    Examples
    --------
    ```python
    from ratecurry import debounced

    def search(query: str) -> None:
        # hit some expensive index
        ...

    on_keystroke = debounced(search, timeout=300)

    # only searches for "ratecurry", once 300 ms have passed without typing
    for i in range(1, 10):
        on_keystroke("ratecurry"[:i])
    ```
    """

    def deco(func: Callable[P, Any]) -> Debouncer[P]:
        return Debouncer(
            func, timeout, leading, trailing, clock=clock, scheduler=scheduler
        )

    return deco(func) if func is not None else deco
