from unittest.mock import Mock, call

import pytest

from ratecurry.testing import FakeClock, ManualScheduler


def test_fake_clock() -> None:
    clock = FakeClock(5)
    assert clock.now() == 5
    clock.advance(10)
    assert clock.now() == 15
    clock.set(20)
    assert clock.now() == 20
    with pytest.raises(ValueError, match="back"):
        clock.set(10)
    assert repr(clock) == "FakeClock(now=20.0)"


def test_manual_scheduler_order() -> None:
    sched = ManualScheduler()
    mock = Mock()
    sched.after(30, lambda: mock("c", sched.clock.now()))
    sched.after(10, lambda: mock("a", sched.clock.now()))
    sched.after(10, lambda: mock("b", sched.clock.now()))
    assert sched.pending == 3

    sched.advance(20)
    assert mock.call_args_list == [call("a", 10), call("b", 10)]
    assert sched.clock.now() == 20

    sched.advance(100)
    assert mock.call_args_list[-1] == call("c", 30)
    assert sched.clock.now() == 120
    assert sched.pending == 0


def test_manual_scheduler_cancel() -> None:
    sched = ManualScheduler()
    mock = Mock()
    handle = sched.after(10, mock)
    sched.cancel(handle)
    assert sched.pending == 0
    sched.run_all()
    mock.assert_not_called()
    assert sched.clock.now() == 0


def test_callbacks_scheduled_while_advancing() -> None:
    sched = ManualScheduler(FakeClock(100))
    seen = []

    def tick() -> None:
        seen.append(sched.clock.now())
        if len(seen) < 3:
            sched.after(10, tick)

    sched.after(10, tick)
    sched.advance(25)
    assert seen == [110, 120]
    sched.run_all()
    assert seen == [110, 120, 130]
