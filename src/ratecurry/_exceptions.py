from __future__ import annotations


class RateCurryError(Exception):
    """Base class for errors raised by ratecurry itself."""

    __module__ = "ratecurry"


class InvalidConfigurationError(RateCurryError, ValueError):
    """Error raised when a rate controller is given options it cannot honor.

    This covers negative intervals, unknown modes, and controllers with both the
    leading and trailing edge disabled (which would never call anything).
    """

    __module__ = "ratecurry"


class ControllerDisposedError(RateCurryError, RuntimeError):
    """Error raised when a disposed rate controller is called again."""

    __module__ = "ratecurry"

    def __init__(self, name: str = "") -> None:
        target = f" wrapping {name!r}" if name else ""
        super().__init__(
            f"Rate controller{target} has been disposed and cannot be called."
        )


class ArityMismatchError(RateCurryError, TypeError):
    """Error raised when the arity of a function to curry can't be determined."""

    __module__ = "ratecurry"
