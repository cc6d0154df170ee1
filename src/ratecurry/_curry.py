from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ._exceptions import ArityMismatchError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from typing_extensions import Self

__all__ = ["PLACEHOLDER", "Curried", "PlaceholderType", "_", "curry"]

_R = TypeVar("_R")

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


class PlaceholderType:
    """Type of the `_` sentinel, which marks a positional slot to fill later."""

    __slots__ = ()
    _instance: PlaceholderType | None = None

    def __new__(cls) -> Self:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance  # type: ignore [return-value]

    def __repr__(self) -> str:
        return "_"

    def __reduce__(self) -> str:
        return "PLACEHOLDER"

    def __copy__(self) -> Self:
        return self

    def __deepcopy__(self, memo: Any) -> Self:
        return self


PLACEHOLDER = PlaceholderType()
_ = PLACEHOLDER


def _introspect_arity(func: Callable) -> int:
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError) as e:
        raise ArityMismatchError(
            f"Cannot determine the arity of {func!r}. Pass `arity=` explicitly."
        ) from e

    params = list(sig.parameters.values())
    positional = [p for p in params if p.kind in _POSITIONAL]
    if not positional and any(p.kind is p.VAR_POSITIONAL for p in params):
        raise ArityMismatchError(
            f"{func!r} only takes variadic positional arguments, so its arity is "
            "unknown. Pass `arity=` explicitly."
        )
    # like a declared parameter count: stop at the first parameter with a default
    arity = 0
    for p in positional:
        if p.default is not p.empty:
            break
        arity += 1
    return arity


def _merge(collected: tuple[Any, ...], new_args: tuple[Any, ...]) -> tuple[Any, ...]:
    """Fill placeholders in `collected` from `new_args`, appending the rest.

    Only real values fill existing placeholders, left to right.  New
    placeholders, and values left over once every hole is filled, are appended
    in the order they were given.
    """
    holes = sum(1 for slot in collected if slot is PLACEHOLDER)
    values = iter([a for a in new_args if a is not PLACEHOLDER][:holes])
    used = 0
    merged = []
    for slot in collected:
        if slot is PLACEHOLDER:
            slot = next(values, PLACEHOLDER)
            used += slot is not PLACEHOLDER
        merged.append(slot)
    for a in new_args:
        if used and a is not PLACEHOLDER:
            used -= 1
            continue
        merged.append(a)
    return tuple(merged)


class Curried(Generic[_R]):
    """Immutable partial application of `func`, built by `curry`.

    Calling a `Curried` merges the new positional arguments into the collected
    ones: each `_` placeholder, left to right, takes the next new value, and
    new placeholders or leftover values are appended.  Once the first `arity`
    slots are all filled, `func` is called and its result returned.  Otherwise a
    new `Curried` is returned, and this one is left untouched so it can be
    reused.

    Keyword arguments are accumulated across steps (later ones win) and passed
    on the final call.  They do not count towards `arity`.
    """

    def __init__(
        self,
        func: Callable[..., _R],
        arity: int,
        args: tuple[Any, ...] = (),
        kwargs: Mapping[str, Any] | None = None,
    ) -> None:
        self._func = func
        self._arity = arity
        self._args = tuple(args)
        self._kwargs = dict(kwargs or {})

        # this mimics what functools.wraps does, like RateController
        self.__wrapped__: Callable[..., _R] = func
        self.__module__: str = getattr(func, "__module__", "")
        self.__name__: str = getattr(func, "__name__", "")
        self.__qualname__: str = getattr(func, "__qualname__", "")
        self.__doc__: str | None = getattr(func, "__doc__", None)

    @property
    def func(self) -> Callable[..., _R]:
        return self._func

    @property
    def arity(self) -> int:
        return self._arity

    @property
    def args(self) -> tuple[Any, ...]:
        """The collected positional slots, placeholders included."""
        return self._args

    @property
    def keywords(self) -> dict[str, Any]:
        return dict(self._kwargs)

    @property
    def placeholders(self) -> int:
        """Number of unresolved placeholders among the first `arity` slots."""
        return sum(1 for a in self._args[: self._arity] if a is PLACEHOLDER)

    @property
    def missing(self) -> int:
        """Number of positional values still needed before `func` is called."""
        return self.placeholders + max(self._arity - len(self._args), 0)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        merged = _merge(self._args, args)
        keywords = {**self._kwargs, **kwargs}
        if not _is_complete(merged, self._arity):
            return type(self)(self._func, self._arity, merged, keywords)

        head, extra = merged[: self._arity], merged[self._arity :]
        extra = tuple(a for a in extra if a is not PLACEHOLDER)
        return self._func(*head, *extra, **keywords)

    def __repr__(self) -> str:
        name = getattr(self._func, "__qualname__", None) or repr(self._func)
        parts = [repr(a) for a in self._args]
        parts.extend(f"{k}={v!r}" for k, v in self._kwargs.items())
        return f"<{type(self).__name__} {name}({', '.join(parts)}) arity={self._arity}>"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Curried):
            return (
                self._func == other._func
                and self._arity == other._arity
                and self._args == other._args
                and self._kwargs == other._kwargs
            )
        return NotImplemented

    __hash__ = None  # type: ignore [assignment]


def _is_complete(slots: tuple[Any, ...], arity: int) -> bool:
    return len(slots) >= arity and all(a is not PLACEHOLDER for a in slots[:arity])


def curry(
    func: Callable[..., _R] | None = None, *, arity: int | None = None
) -> Curried[_R] | Callable[[Callable[..., _R]], Curried[_R]]:
    """Curry `func`, so it can be called with its arguments in several steps.

    Arguments may be supplied out of order with the `_` placeholder: each
    placeholder reserves a positional slot, which is filled by the next value
    (not another placeholder) supplied in a later step.  `func` is called as
    soon as its first `arity` positional slots hold real values.

    This decorator may be used with or without parameters.

    Parameters
    ----------
    func : Callable
        A function to curry.
    arity : int, optional
        The number of positional arguments `func` needs.  By default, this is
        the number of positional parameters of `func` that have no default.

    Raises
    ------
    ArityMismatchError
        If `arity` isn't given and cannot be determined from the signature of
        `func`, or if it isn't a non-negative integer.

    Examples
    --------
    ```python
    from ratecurry import _, curry

    @curry
    def volume(length: float, width: float, height: float) -> float:
        return length * width * height

    volume(2)(3)(4)  # 24
    volume(_, 3)(2, 4)  # 24 (length=2, width=3, height=4)
    flat = volume(_, _, 1)
    flat(2, 3)  # 6
    ```
    """

    def deco(func: Callable[..., _R]) -> Curried[_R]:
        if isinstance(func, Curried) and arity is None:
            return func
        if arity is None:
            n = _introspect_arity(func)
        elif isinstance(arity, bool) or not isinstance(arity, int) or arity < 0:
            raise ArityMismatchError(
                f"arity must be a non-negative integer, not {arity!r}"
            )
        else:
            n = arity
        return Curried(func, n)

    return deco(func) if func is not None else deco
