from datetime import datetime
import pytest
from wordlinks.terminal.clock import FakeClock


def test_timers_fire_in_due_order():
    clock = FakeClock()
    fired = []
    clock.call_later(2.0, lambda: fired.append("b"))
    clock.call_later(1.0, lambda: fired.append("a"))
    clock.call_later(2.0, lambda: fired.append("c"))  # Same time as "b", scheduled later

    clock.advance(1.5)
    assert fired == ["a"]

    clock.advance(0.5)
    assert fired == ["a", "b", "c"]
    assert clock.now() == 2.0


def test_timers_scheduled_while_advancing_fire_in_the_same_window():
    clock = FakeClock()
    fired = []

    def first():
        fired.append(clock.now())
        clock.call_later(1.0, lambda: fired.append(clock.now()))

    clock.call_later(1.0, first)
    clock.advance(3.0)

    assert fired == [1.0, 2.0]


def test_cancelled_timer_never_fires():
    clock = FakeClock()
    fired = []
    timer = clock.call_later(1.0, lambda: fired.append(True))
    timer.cancel()

    clock.advance(5.0)

    assert fired == []
    assert timer.cancelled
    assert clock.pending == 0


def test_datetime_follows_virtual_time():
    clock = FakeClock(datetime(2025, 1, 15, 23, 59, 0))
    clock.advance(90)
    assert clock.datetime_now() == datetime(2025, 1, 16, 0, 0, 30)


def test_run_until_idle_stops_runaway_timers():
    clock = FakeClock()

    def forever():
        clock.call_later(1.0, forever)

    clock.call_later(1.0, forever)
    with pytest.raises(RuntimeError):
        clock.run_until_idle(max_steps=50)
