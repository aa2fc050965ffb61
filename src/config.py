"""
Configuration management for the Rancher Service Upgrader.
"""

from dataclasses import dataclass
from typing import List, Optional

from errors import ConfigError

DEFAULT_UPGRADE_TIMEOUT_MS = 600000
DEFAULT_STATUS_CHECK_INTERVAL_MS = 5000
DEFAULT_LOG_FILE = "rancher-upgrade.log"

_REQUIRED_FIELDS = (
    "rancher_url",
    "access_key",
    "secret_key",
    "environment_name",
    "stack_name",
    "service_name",
)


@dataclass
class UpgraderConfig:
    """Configuration for a single service upgrade."""

    rancher_url: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    environment_name: Optional[str] = None
    stack_name: Optional[str] = None
    service_name: Optional[str] = None
    upgrade_timeout_ms: int = DEFAULT_UPGRADE_TIMEOUT_MS
    rollback_on_fail: bool = False
    status_check_interval_ms: int = DEFAULT_STATUS_CHECK_INTERVAL_MS
    batch_size: int = 1
    batch_interval_ms: int = 2000
    start_first: bool = False
    request_timeout_s: int = 60
    max_retries: int = 0
    verbose: bool = False
    log_file: Optional[str] = DEFAULT_LOG_FILE

    @classmethod
    def from_args(cls, args) -> "UpgraderConfig":
        """
        Create configuration from command-line arguments.

        Args:
            args: Parsed argparse arguments

        Returns:
            UpgraderConfig instance
        """
        return cls(
            rancher_url=args.rancher_url,
            access_key=args.access_key,
            secret_key=args.secret_key,
            environment_name=args.environment,
            stack_name=args.stack,
            service_name=args.service,
            upgrade_timeout_ms=args.upgrade_timeout,
            rollback_on_fail=args.rollback_on_fail,
            status_check_interval_ms=args.status_check_interval,
            batch_size=args.batch_size,
            batch_interval_ms=args.batch_interval,
            start_first=args.start_first,
            request_timeout_s=args.request_timeout,
            max_retries=args.max_retries,
            verbose=args.verbose,
            log_file=args.log_file or None,
        )

    def missing_fields(self) -> List[str]:
        return [f for f in _REQUIRED_FIELDS if not getattr(self, f)]

    def validate(self) -> None:
        """
        Check required values and numeric bounds.

        Raises:
            ConfigError: Listing every problem found
        """
        errors: List[str] = []
        missing = self.missing_fields()
        if missing:
            errors.append(f"missing required values: {', '.join(missing)}")
        if self.status_check_interval_ms <= 0:
            errors.append("status check interval must be positive")
        if self.upgrade_timeout_ms < 0:
            errors.append("upgrade timeout must not be negative")
        if self.batch_size < 1:
            errors.append("batch size must be positive")
        if self.batch_interval_ms < 0:
            errors.append("batch interval must not be negative")
        if self.max_retries < 0:
            errors.append("max retries must not be negative")

        if errors:
            raise ConfigError(f"Invalid configuration: {'; '.join(errors)}")
