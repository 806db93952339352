"""Tests for the manual scheduler used to drive timers deterministically."""

from tablevoice.scheduling import ManualScheduler, ThreadingScheduler


def test_advance_fires_in_due_order():
    scheduler = ManualScheduler(start_ms=1_000)
    fired = []

    scheduler.call_later(300, lambda: fired.append(("c", scheduler.now())))
    scheduler.call_later(100, lambda: fired.append(("a", scheduler.now())))
    scheduler.call_later(100, lambda: fired.append(("b", scheduler.now())))

    assert scheduler.advance(300) == 3
    assert fired == [("a", 1_100), ("b", 1_100), ("c", 1_300)]
    assert scheduler.now() == 1_300


def test_callbacks_beyond_target_stay_pending():
    scheduler = ManualScheduler()
    fired = []
    scheduler.call_later(500, lambda: fired.append(1))

    assert scheduler.advance(499) == 0
    assert scheduler.pending == 1
    assert scheduler.advance(1) == 1
    assert fired == [1]
    assert scheduler.pending == 0


def test_cancel():
    scheduler = ManualScheduler()
    fired = []
    handle = scheduler.call_later(10, lambda: fired.append(1))

    scheduler.cancel(handle)
    scheduler.cancel(None)

    assert scheduler.advance(100) == 0
    assert fired == []


def test_calls_scheduled_while_advancing():
    scheduler = ManualScheduler()
    fired = []

    def tick():
        fired.append(scheduler.now())
        if len(fired) < 3:
            scheduler.call_later(60, tick)

    scheduler.call_later(60, tick)

    assert scheduler.advance(1_000) == 3
    assert fired == [60, 120, 180]


def test_threading_scheduler_clock_and_cancel():
    scheduler = ThreadingScheduler()
    fired = []

    assert scheduler.now() > 1_600_000_000_000
    handle = scheduler.call_later(60_000, lambda: fired.append(1))
    scheduler.cancel(handle)

    assert not handle.is_alive() or handle.finished.is_set()
    assert fired == []
