from __future__ import annotations

from datetime import datetime
import unittest

from deadlines.scheduler import MIDNIGHT_SLACK_SECONDS, MidnightScheduler


class _FakeTimer:
    def __init__(self, delay: float, fn) -> None:
        self.delay = delay
        self.fn = fn
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class _FakeTimers:
    def __init__(self) -> None:
        self.created: list[_FakeTimer] = []

    def __call__(self, delay: float, fn) -> _FakeTimer:
        timer = _FakeTimer(delay, fn)
        self.created.append(timer)
        return timer


class MidnightSchedulerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.now = datetime(2026, 3, 5, 23, 59, 30)
        self.timers = _FakeTimers()
        self.calls = 0

        def callback() -> None:
            self.calls += 1

        self.scheduler = MidnightScheduler(callback, clock=lambda: self.now, timer_factory=self.timers)

    def test_start_schedules_for_next_midnight(self) -> None:
        self.scheduler.start()
        self.assertTrue(self.scheduler.is_scheduled)
        self.assertEqual(len(self.timers.created), 1)
        self.assertAlmostEqual(self.timers.created[0].delay, 30.0 + MIDNIGHT_SLACK_SECONDS)

    def test_starting_twice_keeps_one_timer(self) -> None:
        self.scheduler.start()
        self.scheduler.start()
        self.assertEqual(len(self.timers.created), 1)

    def test_firing_runs_callback_and_reschedules_from_clock(self) -> None:
        self.scheduler.start()
        self.now = datetime(2026, 3, 6, 0, 0, 1)
        self.timers.created[0].fn()
        self.assertEqual(self.calls, 1)
        self.assertEqual(len(self.timers.created), 2)
        self.assertAlmostEqual(self.timers.created[1].delay, 86399.0 + MIDNIGHT_SLACK_SECONDS)
        self.assertTrue(self.scheduler.is_scheduled)

    def test_stop_cancels_and_ignores_late_firing(self) -> None:
        self.scheduler.start()
        first = self.timers.created[0]
        self.scheduler.stop()
        self.assertTrue(first.cancelled)
        self.assertFalse(self.scheduler.is_scheduled)
        first.fn()
        self.assertEqual(self.calls, 0)
        self.assertEqual(len(self.timers.created), 1)

    def test_failing_callback_still_reschedules(self) -> None:
        scheduler = MidnightScheduler(lambda: 1 / 0, clock=lambda: self.now, timer_factory=self.timers)
        scheduler.start()
        with self.assertLogs("deadlines.scheduler", level="ERROR"):
            self.timers.created[0].fn()
        self.assertEqual(len(self.timers.created), 2)
        self.assertTrue(scheduler.is_scheduled)


if __name__ == "__main__":
    unittest.main()
