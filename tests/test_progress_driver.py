import asyncio
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.upload.progress import (  # noqa: E402
    EASE_DURATION_S,
    PROGRESS_CEILING,
    AsyncioScheduler,
    SyntheticProgressDriver,
    ease_out_cubic,
    eased_progress,
)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeScheduler:
    def __init__(self):
        self.pending = {}
        self.cancelled = []
        self._next_handle = 0

    def schedule(self, callback):
        self._next_handle += 1
        self.pending[self._next_handle] = callback
        return self._next_handle

    def cancel(self, handle):
        self.cancelled.append(handle)
        self.pending.pop(handle, None)

    def run_pending(self):
        callbacks = list(self.pending.values())
        self.pending.clear()
        for callback in callbacks:
            callback()


class EasingTests(unittest.TestCase):
    def test_ease_out_cubic_endpoints(self):
        self.assertEqual(ease_out_cubic(0.0), 0.0)
        self.assertEqual(ease_out_cubic(1.0), 1.0)
        self.assertEqual(ease_out_cubic(5.0), 1.0)
        self.assertEqual(ease_out_cubic(-1.0), 0.0)

    def test_eased_progress_halfway(self):
        value = eased_progress(EASE_DURATION_S / 2)
        self.assertAlmostEqual(value, PROGRESS_CEILING * 0.875)

    def test_eased_progress_from_custom_start(self):
        self.assertAlmostEqual(eased_progress(0.0, start=40.0), 40.0)
        self.assertAlmostEqual(eased_progress(EASE_DURATION_S, start=40.0), PROGRESS_CEILING)

    def test_never_exceeds_ceiling(self):
        for elapsed in (0.0, 0.5, 1.0, 1.8, 10.0, 1000.0):
            self.assertLessEqual(eased_progress(elapsed), PROGRESS_CEILING)


class SyntheticProgressDriverTests(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.scheduler = FakeScheduler()
        self.values = []
        self.driver = SyntheticProgressDriver(
            self.values.append,
            scheduler=self.scheduler,
            clock=self.clock,
        )

    def test_ticks_are_monotonic_and_settle_at_ceiling(self):
        self.driver.start()
        while self.scheduler.pending:
            self.clock.advance(0.016)
            self.scheduler.run_pending()

        self.assertEqual(self.values, sorted(self.values))
        self.assertEqual(self.values[-1], PROGRESS_CEILING)
        self.assertFalse(self.driver.running)

    def test_stop_releases_handle_and_is_idempotent(self):
        self.driver.start()
        self.assertEqual(len(self.scheduler.pending), 1)

        self.driver.stop()
        self.driver.stop()

        self.assertEqual(self.scheduler.pending, {})
        self.assertEqual(len(self.scheduler.cancelled), 1)
        self.assertFalse(self.driver.running)

    def test_stop_before_start_is_noop(self):
        self.driver.stop()
        self.assertEqual(self.scheduler.cancelled, [])

    def test_callback_that_stops_driver_prevents_rescheduling(self):
        driver = SyntheticProgressDriver(
            lambda value: driver.stop(),
            scheduler=self.scheduler,
            clock=self.clock,
        )
        driver.start()
        self.clock.advance(0.1)
        self.scheduler.run_pending()
        self.assertEqual(self.scheduler.pending, {})

    def test_restart_replaces_previous_schedule(self):
        self.driver.start()
        self.driver.start()
        self.assertEqual(len(self.scheduler.pending), 1)
        self.assertEqual(len(self.scheduler.cancelled), 1)


class AsyncioSchedulerTests(unittest.IsolatedAsyncioTestCase):
    async def test_driver_runs_on_event_loop(self):
        values = []
        driver = SyntheticProgressDriver(
            values.append,
            scheduler=AsyncioScheduler(interval_s=0.001),
            duration_s=0.02,
        )
        driver.start()
        for _ in range(200):
            if not driver.running:
                break
            await asyncio.sleep(0.005)

        self.assertFalse(driver.running)
        self.assertTrue(values)
        self.assertEqual(values[-1], PROGRESS_CEILING)

    async def test_stop_cancels_timer(self):
        values = []
        driver = SyntheticProgressDriver(values.append, scheduler=AsyncioScheduler(interval_s=0.05))
        driver.start()
        driver.stop()
        await asyncio.sleep(0.1)
        self.assertEqual(values, [])


if __name__ == "__main__":
    unittest.main()
