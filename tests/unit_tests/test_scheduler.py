"""
Unit tests for PollScheduler.
"""

import time
import unittest
from unittest.mock import MagicMock

from errors import ConfigError, UpgradeInterruptedError
from scheduler import PollScheduler


class TestPollScheduler(unittest.TestCase):
    """Test interval waits and the progress-log cadence."""

    def setUp(self):
        self.sleep = MagicMock()
        self.scheduler = PollScheduler(5000, sleep=self.sleep)

    def test_wait_sleeps_one_interval(self):
        """Test one wait sleeps the interval in seconds and advances elapsed."""
        tick = self.scheduler.wait(0)

        self.sleep.assert_called_once_with(5.0)
        self.assertEqual(tick.elapsed_ms, 5000)

    def test_log_ticks_every_fourth_interval(self):
        """Test log ticks fall on multiples of four intervals only."""
        elapsed = 0
        log_ticks = []
        for _ in range(12):
            tick = self.scheduler.wait(elapsed)
            elapsed = tick.elapsed_ms
            if tick.log_tick:
                log_ticks.append(elapsed)

        self.assertEqual(log_ticks, [20000, 40000, 60000])
        self.assertEqual(self.sleep.call_count, 12)

    def test_no_log_tick_on_early_intervals(self):
        for elapsed in (5000, 10000, 15000):
            self.assertFalse(self.scheduler.is_log_tick(elapsed))

    def test_cadence_uses_elapsed_time(self):
        """Test the cadence depends on elapsed time, not on the tick count."""
        tick = self.scheduler.wait(35000)
        self.assertEqual(tick.elapsed_ms, 40000)
        self.assertTrue(tick.log_tick)

    def test_interrupt_aborts(self):
        """Test an interrupted wait becomes a fatal abort."""
        self.sleep.side_effect = KeyboardInterrupt()

        with self.assertRaises(UpgradeInterruptedError):
            self.scheduler.wait(5000)

    def test_rejects_non_positive_interval(self):
        with self.assertRaises(ConfigError):
            PollScheduler(0)
        with self.assertRaises(ConfigError):
            PollScheduler(-5000)

    def test_default_sleep(self):
        self.assertIs(PollScheduler(1000)._sleep, time.sleep)


if __name__ == "__main__":
    unittest.main()
