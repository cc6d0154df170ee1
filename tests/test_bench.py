import sys
from typing import Callable

import pytest

from ratecurry import _, curry, rate_controlled
from ratecurry.testing import ManualScheduler

if all(x not in {"--codspeed", "--benchmark", "tests/test_bench.py"} for x in sys.argv):
    pytest.skip("use --benchmark to run benchmark", allow_module_level=True)


# fmt: off
def no_args() -> None: ...
def one_int(x: int) -> None: ...
def three_ints(x: int, y: int, z: int) -> int: return x + y + z
# fmt: on


# Creation suite ------------------------------------------


@pytest.mark.parametrize("mode", ["debounce", "throttle"])
def test_create_controller(benchmark: Callable, mode: str) -> None:
    sched = ManualScheduler()
    benchmark(rate_controlled, one_int, 100, mode=mode, scheduler=sched)


def test_create_curried(benchmark: Callable) -> None:
    benchmark(curry, three_ints)


# Call suite ------------------------------------------------


@pytest.mark.parametrize("leading", [True, False])
@pytest.mark.parametrize("mode", ["debounce", "throttle"])
def test_call_in_burst(benchmark: Callable, mode: str, leading: bool) -> None:
    sched = ManualScheduler()
    f = rate_controlled(
        one_int, 100, mode=mode, leading=leading, clock=sched.clock, scheduler=sched
    )
    benchmark(f, 1)


def test_call_zero_interval(benchmark: Callable) -> None:
    f = rate_controlled(no_args, 0, scheduler=ManualScheduler())
    benchmark(f)


@pytest.mark.parametrize(
    "steps",
    [((1, 2, 3),), ((1,), (2,), (3,)), ((_, _, 3), (1,), (2,))],
    ids=["all_at_once", "one_by_one", "placeholders"],
)
def test_curried_call(benchmark: Callable, steps: tuple) -> None:
    curried = curry(three_ints)

    def _doit() -> None:
        f = curried
        for args in steps:
            f = f(*args)

    benchmark(_doit)
