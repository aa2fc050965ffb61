"""
Timing discipline for the upgrade polling loop.
"""

import logging
import time
from typing import Callable, Optional

from errors import ConfigError, UpgradeInterruptedError
from models import PollTick

logger = logging.getLogger(__name__)

# Progress is reported once every LOG_EVERY_TICKS intervals of elapsed time.
LOG_EVERY_TICKS = 4


class PollScheduler:
    """Blocking fixed-interval waits with a progress-log cadence."""

    def __init__(
        self,
        poll_interval_ms: int,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """
        Initialize the scheduler.

        Args:
            poll_interval_ms: Wait between status reads (milliseconds)
            sleep: Blocking sleep taking seconds, defaults to time.sleep
        """
        if poll_interval_ms <= 0:
            raise ConfigError(
                f"status check interval must be positive, got {poll_interval_ms}ms"
            )
        self.poll_interval_ms = poll_interval_ms
        self._sleep = sleep or time.sleep

    def is_log_tick(self, elapsed_ms: int) -> bool:
        """True if elapsed time is an exact multiple of the log period."""
        return elapsed_ms % (self.poll_interval_ms * LOG_EVERY_TICKS) == 0

    def wait(self, elapsed_ms: int) -> PollTick:
        """
        Sleep for one interval and advance the elapsed counter.

        Args:
            elapsed_ms: Elapsed time before this tick (milliseconds)

        Returns:
            PollTick with the new elapsed time and the log flag

        Raises:
            UpgradeInterruptedError: If the wait is interrupted
        """
        try:
            self._sleep(self.poll_interval_ms / 1000.0)
        except KeyboardInterrupt as e:
            raise UpgradeInterruptedError(
                f"Polling interrupted after {elapsed_ms}ms"
            ) from e

        elapsed_ms += self.poll_interval_ms
        log_tick = self.is_log_tick(elapsed_ms)
        logger.debug(f"Poll tick at {elapsed_ms}ms (log={log_tick})")
        return PollTick(elapsed_ms=elapsed_ms, log_tick=log_tick)
