"""
Exception types for the Rancher Service Upgrader.
"""

from typing import Optional


class UpgradeError(RuntimeError):
    """Base class for every fatal upgrade failure."""


class ConfigError(UpgradeError):
    """A required configuration value is missing or invalid."""


class NotFoundError(UpgradeError):
    """An environment, stack or service name did not resolve."""


class StateError(UpgradeError):
    """The service is not in a state that allows an upgrade."""


class RemoteError(UpgradeError):
    """A call to the Rancher API failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UpgradeTimeoutError(UpgradeError):
    """The upgrade did not become healthy within the timeout budget."""

    def __init__(self, message: str, session=None):
        super().__init__(message)
        self.session = session


class UpgradeInterruptedError(UpgradeError):
    """The polling wait was interrupted; the session is aborted."""


class UpgradeInProgressError(UpgradeError):
    """Another upgrade session already holds the lock for this service."""
