"""
Data models for the Rancher Service Upgrader.
"""

import copy
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional

from errors import ConfigError

STATE_ACTIVE = "active"
STATE_UPGRADED = "upgraded"
HEALTH_HEALTHY = "healthy"


@dataclass(frozen=True)
class ServiceRef:
    """Snapshot of a Rancher service as last read from the API."""

    id: str
    name: str
    state: str  # active, upgrading, upgraded, inactive, ...
    health_state: str  # healthy, unhealthy, initializing, ...
    launch_config: Dict[str, Any] = field(default_factory=dict)
    project_id: Optional[str] = None  # accountId
    stack_id: Optional[str] = None  # environmentId in the v1 API

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ServiceRef":
        """
        Build a snapshot from a Rancher service resource.

        Args:
            data: Service JSON object as returned by the API

        Returns:
            ServiceRef instance
        """
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            state=str(data.get("state") or ""),
            health_state=str(data.get("healthState") or ""),
            launch_config=data.get("launchConfig") or {},
            project_id=data.get("accountId"),
            stack_id=data.get("environmentId"),
        )

    @property
    def label(self) -> str:
        return f"{self.name}({self.id})"

    def is_active(self) -> bool:
        return self.state == STATE_ACTIVE

    def is_upgraded_and_healthy(self) -> bool:
        return self.state == STATE_UPGRADED and self.health_state == HEALTH_HEALTHY


@dataclass(frozen=True)
class UpgradeStrategy:
    """In-service rollout policy submitted with the upgrade action."""

    batch_size: int = 1
    interval_millis: int = 2000
    start_first: bool = False
    launch_config: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if self.batch_size < 1:
            raise ConfigError(f"batch size must be positive, got {self.batch_size}")
        if self.interval_millis < 0:
            raise ConfigError(
                f"batch interval must not be negative, got {self.interval_millis}"
            )

    def with_launch_config(self, launch_config: Dict[str, Any]) -> "UpgradeStrategy":
        """Return a copy targeting the given launch config."""
        return replace(self, launch_config=copy.deepcopy(launch_config))

    def to_api(self) -> Dict[str, Any]:
        """Render the inServiceStrategy payload."""
        return {
            "batchSize": self.batch_size,
            "intervalMillis": self.interval_millis,
            "startFirst": self.start_first,
            "launchConfig": self.launch_config,
        }


class SessionOutcome(Enum):
    """Terminal result of an upgrade session."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    TIMED_OUT_ROLLED_BACK = "timed_out_rolled_back"
    TIMED_OUT_NO_ROLLBACK = "timed_out_no_rollback"


@dataclass
class UpgradeSession:
    """Working state of one supervised upgrade."""

    service_id: str
    service_name: str
    timeout_budget_ms: int
    poll_interval_ms: int
    rollback_on_fail: bool
    elapsed_ms: int = 0
    ticks: int = 0
    outcome: SessionOutcome = SessionOutcome.PENDING
    rollback_error: Optional[str] = None
    error: Optional[str] = None  # fatal error that ended a pending session
    start_time: Optional[float] = None
    end_time: Optional[float] = None

    @property
    def budget_exhausted(self) -> bool:
        return self.elapsed_ms >= self.timeout_budget_ms

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.start_time is None or self.end_time is None:
            return None
        return self.end_time - self.start_time


@dataclass(frozen=True)
class PollTick:
    """Result of one scheduler wait."""

    elapsed_ms: int
    log_tick: bool
