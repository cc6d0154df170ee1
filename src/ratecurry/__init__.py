"""Ratecurry provides debounce/throttle rate controllers and placeholder currying.

Both are plain function wrappers: `debounced`/`throttled` decide when a wrapped
function actually runs, and `curry` lets its arguments arrive in several steps,
out of order with the `_` placeholder.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("ratecurry")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = [
    "PLACEHOLDER",
    "ArityMismatchError",
    "AsyncioScheduler",
    "Clock",
    "ControllerDisposedError",
    "Curried",
    "Debouncer",
    "InvalidConfigurationError",
    "Mode",
    "MonotonicClock",
    "PlaceholderType",
    "RateController",
    "RateCurryError",
    "Scheduler",
    "ThreadingScheduler",
    "Throttler",
    "_",
    "__version__",
    "curry",
    "debounced",
    "rate_controlled",
    "throttled",
]

from ._curry import PLACEHOLDER, Curried, PlaceholderType, _, curry
from ._exceptions import (
    ArityMismatchError,
    ControllerDisposedError,
    InvalidConfigurationError,
    RateCurryError,
)
from ._throttler import (
    Debouncer,
    Mode,
    RateController,
    Throttler,
    debounced,
    rate_controlled,
    throttled,
)
from ._timer import (
    AsyncioScheduler,
    Clock,
    MonotonicClock,
    Scheduler,
    ThreadingScheduler,
)
