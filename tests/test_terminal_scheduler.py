import logging
import pytest
from pydantic import ValidationError
from wordlinks.terminal.clock import FakeClock
from wordlinks.terminal.commands import ClearAll, Delay, Parallel, SetLine, WriteLine
from wordlinks.terminal.scheduler import TerminalScheduler


def make_scheduler():
    clock = FakeClock()
    return clock, TerminalScheduler(clock)


def test_commands_run_one_after_another():
    clock, scheduler = make_scheduler()
    scheduler.write_line(0, "AB", speed=1.0)
    scheduler.write_line(1, "CD", speed=1.0)

    clock.advance(1.0)
    assert (scheduler.visible(0), scheduler.visible(1)) == ("A", "")
    clock.advance(1.0)
    assert (scheduler.visible(0), scheduler.visible(1)) == ("AB", "")
    clock.advance(1.0)
    assert (scheduler.visible(0), scheduler.visible(1)) == ("AB", "C")
    clock.advance(1.0)
    assert scheduler.visible(1) == "CD"
    assert not scheduler.is_animating


def test_parallel_waits_for_its_slowest_member():
    clock, scheduler = make_scheduler()
    finished = []

    # 1, 5 and 3 ticks long
    scheduler.parallel([
        WriteLine(index=0, text="A", speed=1.0),
        WriteLine(index=1, text="ABCDE", speed=1.0),
        WriteLine(index=2, text="ABC", speed=1.0),
    ])
    scheduler.on_completion(lambda: finished.append(clock.now()))
    scheduler.write_line(3, "Z", speed=1.0)

    clock.advance(3.0)
    assert scheduler.snapshot()[:3] == ["A", "ABC", "ABC"]
    assert finished == []

    clock.advance(2.0)
    assert finished == [5.0]
    assert scheduler.visible(3) == ""

    clock.advance(1.0)
    assert scheduler.visible(3) == "Z"


def test_parallel_only_accepts_line_commands():
    with pytest.raises(ValidationError):
        Parallel(commands=[Delay(duration=1.0)])
    with pytest.raises(ValidationError):
        Parallel(commands=[ClearAll()])


def test_disallowed_parallel_member_is_ignored():
    clock, scheduler = make_scheduler()
    finished = []

    # Bypasses validation the way a careless caller could
    group = Parallel.model_construct(commands=[Delay(duration=100.0), SetLine(index=2, text="SET")])
    scheduler.enqueue(group)
    scheduler.on_completion(lambda: finished.append(True))

    assert finished == [True]
    assert scheduler.content(2) == "SET"


def test_out_of_range_lines_are_skipped():
    clock, scheduler = make_scheduler()
    finished = []

    scheduler.write_line(99, "NOWHERE")
    scheduler.replace_line(-1, "NOWHERE")
    scheduler.clear_line(500)
    scheduler.on_completion(lambda: finished.append(True))

    assert finished == [True]
    assert scheduler.content(99) == ""
    assert not scheduler.is_animating


def test_delay_holds_the_queue():
    clock, scheduler = make_scheduler()
    finished = []

    scheduler.delay(2.0)
    scheduler.on_completion(lambda: finished.append(clock.now()))

    clock.advance(1.9)
    assert finished == []
    assert scheduler.is_animating
    clock.advance(0.1)
    assert finished == [2.0]
    assert not scheduler.is_animating


def test_commands_queued_by_a_completion_run_after_earlier_ones():
    clock, scheduler = make_scheduler()
    order = []

    scheduler.on_completion(lambda: scheduler.on_completion(lambda: order.append("late")))
    scheduler.on_completion(lambda: order.append("early"))
    clock.run_until_idle()

    assert order == ["early", "late"]


def test_failing_completion_does_not_stall_the_queue(caplog):
    clock, scheduler = make_scheduler()

    def broken():
        raise RuntimeError("boom")

    with caplog.at_level(logging.ERROR):
        scheduler.on_completion(broken)
        scheduler.set_line(0, "STILL RUNNING")

    assert scheduler.content(0) == "STILL RUNNING"
    assert "Completion callback failed" in caplog.text


def test_clear_commands_apply_immediately():
    clock, scheduler = make_scheduler()
    for i in range(6):
        scheduler.set_line(i, f"LINE {i}")

    scheduler.clear_range(1, 3)
    assert scheduler.snapshot()[:6] == ["LINE 0", "", "", "", "LINE 4", "LINE 5"]

    scheduler.clear_line(0)
    assert scheduler.content(0) == ""

    scheduler.clear_all()
    assert all(line == "" for line in scheduler.snapshot())


def test_clear_all_immediate_drops_queued_work():
    clock, scheduler = make_scheduler()
    finished = []

    scheduler.write_line(0, "HELLO THERE", speed=1.0)
    scheduler.delay(5.0)
    scheduler.on_completion(lambda: finished.append(True))
    clock.advance(3.0)

    scheduler.clear_all_immediate()
    assert scheduler.visible(0) == ""
    assert scheduler.queue_size == 0
    assert not scheduler.is_animating

    clock.advance(60.0)
    assert finished == []
    assert scheduler.visible(0) == ""

    # The queue keeps working afterwards
    scheduler.write_line(1, "OK", speed=1.0)
    clock.advance(2.0)
    assert scheduler.visible(1) == "OK"


def test_write_lines_stops_at_the_last_line():
    clock, scheduler = make_scheduler()
    scheduler.write_lines(28, ["A", "B", "C", "D"], speed=0.1)
    clock.run_until_idle()

    assert scheduler.content(28) == "A"
    assert scheduler.content(29) == "B"
    assert len(scheduler.lines) == 30


def test_snapshot_covers_visible_lines_only():
    clock, scheduler = make_scheduler()
    scheduler.set_line(27, "OFFSCREEN")

    assert len(scheduler.snapshot()) == 25
    assert "OFFSCREEN" not in scheduler.snapshot()
    assert scheduler.content(27) == "OFFSCREEN"
