"""
Rancher Service Upgrader.
"""

from clients import RancherRestClient
from config import UpgraderConfig
from log_utils import setup_logging
from locator import ResourceLocator
from models import ServiceRef, SessionOutcome, UpgradeSession, UpgradeStrategy
from scheduler import PollScheduler
from upgrader import ServiceUpgrader

__all__ = [
    "RancherRestClient",
    "UpgraderConfig",
    "setup_logging",
    "ResourceLocator",
    "ServiceRef",
    "SessionOutcome",
    "UpgradeSession",
    "UpgradeStrategy",
    "PollScheduler",
    "ServiceUpgrader",
]
