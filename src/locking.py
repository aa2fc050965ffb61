"""
Single-flight guard: at most one upgrade session per service in this process.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from errors import UpgradeInProgressError

logger = logging.getLogger(__name__)


class ServiceLockRegistry:
    """Keyed, non-blocking locks indexed by service id."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, service_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(service_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[service_id] = lock
            return lock

    def is_locked(self, service_id: str) -> bool:
        return self._lock_for(service_id).locked()

    @contextmanager
    def hold(self, service_id: str) -> Iterator[None]:
        """
        Hold the lock for a service for the duration of the block.

        Raises:
            UpgradeInProgressError: If another session holds the lock
        """
        lock = self._lock_for(service_id)
        if not lock.acquire(blocking=False):
            raise UpgradeInProgressError(
                f"An upgrade of service {service_id} is already in progress"
            )
        logger.debug(f"Acquired upgrade lock for {service_id}")
        try:
            yield
        finally:
            lock.release()
            logger.debug(f"Released upgrade lock for {service_id}")


# Process-wide registry shared by every ServiceUpgrader.
SERVICE_LOCKS = ServiceLockRegistry()
