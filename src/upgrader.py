"""
Single-service upgrade orchestration for Rancher.

The upgrader validates that the service is active, issues one in-service
upgrade, then polls the service on a fixed interval until it is both
upgraded and healthy (finish the upgrade) or the timeout budget is used up
(optionally roll back, then fail).
"""

import logging
import time
from datetime import datetime
from typing import Callable, Optional

from clients import RancherRestClient
from config import UpgraderConfig
from errors import RemoteError, StateError, UpgradeError, UpgradeTimeoutError
from locator import ResourceLocator
from locking import SERVICE_LOCKS, ServiceLockRegistry
from models import ServiceRef, SessionOutcome, UpgradeSession, UpgradeStrategy
from scheduler import PollScheduler

logger = logging.getLogger(__name__)


class ServiceUpgrader:
    """Drives one service through an upgrade to a terminal outcome."""

    def __init__(
        self,
        api: RancherRestClient,
        timeout_ms: int,
        poll_interval_ms: int,
        rollback_on_fail: bool,
        strategy: Optional[UpgradeStrategy] = None,
        sleep: Optional[Callable[[float], None]] = None,
        locks: Optional[ServiceLockRegistry] = None,
    ):
        """
        Initialize the upgrader.

        Args:
            api: Rancher REST client
            timeout_ms: Total polling budget (milliseconds)
            poll_interval_ms: Wait between status reads (milliseconds)
            rollback_on_fail: Whether to roll back when the budget runs out
            strategy: Rollout policy template, launch config is filled in per run
            sleep: Blocking sleep used between polls, defaults to time.sleep
            locks: Single-flight registry, defaults to the process-wide one
        """
        self.api = api
        self.timeout_ms = timeout_ms
        self.poll_interval_ms = poll_interval_ms
        self.rollback_on_fail = rollback_on_fail
        self.strategy = strategy or UpgradeStrategy()
        self.scheduler = PollScheduler(poll_interval_ms, sleep=sleep)
        self.locks = locks or SERVICE_LOCKS

    @classmethod
    def from_config(cls, config: UpgraderConfig) -> "ServiceUpgrader":
        """Build an upgrader and its API client from validated configuration."""
        api = RancherRestClient(
            base_url=config.rancher_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            timeout_s=config.request_timeout_s,
            max_retries=config.max_retries,
        )
        strategy = UpgradeStrategy(
            batch_size=config.batch_size,
            interval_millis=config.batch_interval_ms,
            start_first=config.start_first,
        )
        return cls(
            api=api,
            timeout_ms=config.upgrade_timeout_ms,
            poll_interval_ms=config.status_check_interval_ms,
            rollback_on_fail=config.rollback_on_fail,
            strategy=strategy,
        )

    def run_by_name(
        self, environment_name: str, stack_name: str, service_name: str
    ) -> UpgradeSession:
        """Resolve the service by its names, then upgrade it."""
        service = ResourceLocator(self.api).resolve(
            environment_name, stack_name, service_name
        )
        return self.run(service)

    def run(self, service: ServiceRef) -> UpgradeSession:
        """
        Upgrade a service and wait for a terminal outcome.

        Args:
            service: Snapshot of the service, as resolved before the upgrade

        Returns:
            The finished session, with outcome SUCCEEDED

        Raises:
            StateError: If the service is not active
            RemoteError: If issuing, polling or finishing the upgrade fails
            UpgradeTimeoutError: If the service is not healthy within the budget
            UpgradeInterruptedError: If a polling wait is interrupted
            UpgradeInProgressError: If this service is already being upgraded
        """
        with self.locks.hold(service.id):
            session = UpgradeSession(
                service_id=service.id,
                service_name=service.name,
                timeout_budget_ms=self.timeout_ms,
                poll_interval_ms=self.poll_interval_ms,
                rollback_on_fail=self.rollback_on_fail,
            )
            self._log_banner(service)

            if not service.is_active():
                raise StateError(
                    f"Service {service.label} is not active (state={service.state})"
                )

            session.start_time = time.time()
            try:
                self._issue(service)
                if self._poll(session, service):
                    self.api.finish_upgrade(service.id)
                    session.outcome = SessionOutcome.SUCCEEDED
                    logger.info(f"Service {service.label} upgrade [[[Succeed]]] !")
                    return session
                self._handle_timeout(session, service)
            except UpgradeError as e:
                if session.outcome == SessionOutcome.PENDING:
                    session.error = f"{type(e).__name__}: {e}"
                raise
            finally:
                session.end_time = time.time()
                self._print_report(session)

    def _issue(self, service: ServiceRef) -> None:
        """Submit the upgrade action, targeting the service's current launch config."""
        strategy = self.strategy.with_launch_config(service.launch_config)
        self.api.upgrade(service.id, strategy)
        logger.info(
            f"Started upgrade: {service.label} (batchSize={strategy.batch_size}, "
            f"intervalMillis={strategy.interval_millis}, startFirst={strategy.start_first})"
        )

    def _poll(self, session: UpgradeSession, service: ServiceRef) -> bool:
        """
        Wait and re-read the service until it is upgraded and healthy.

        Returns:
            True on success, False once the budget is exhausted
        """
        while not session.budget_exhausted:
            tick = self.scheduler.wait(session.elapsed_ms)
            session.elapsed_ms = tick.elapsed_ms
            session.ticks += 1

            status = self.api.get_service(service.id)
            if tick.log_tick:
                logger.info(
                    f"Service {service.label} upgrading....... "
                    f"(state={status.state}, healthState={status.health_state}, "
                    f"{session.elapsed_ms / 1000:.0f}s elapsed)"
                )
            else:
                logger.debug(
                    f"  {service.label}: state={status.state}, healthState={status.health_state}"
                )

            if status.is_upgraded_and_healthy():
                return True

        return False

    def _handle_timeout(self, session: UpgradeSession, service: ServiceRef) -> None:
        """Roll back if configured, then raise the timeout."""
        session.outcome = SessionOutcome.TIMED_OUT_NO_ROLLBACK
        if session.rollback_on_fail:
            self._try_rollback(session, service)

        fail_info = (
            f"Service {service.label} upgrade [[[Failed]]] on time out "
            f"after {session.elapsed_ms}ms!"
        )
        logger.error(fail_info)
        raise UpgradeTimeoutError(fail_info, session=session)

    def _try_rollback(self, session: UpgradeSession, service: ServiceRef) -> None:
        """
        Attempt to roll back an upgrade.

        A failed rollback is logged and recorded on the session only.
        """
        try:
            self.api.rollback(service.id)
        except RemoteError as e:
            session.rollback_error = str(e)
            logger.error(f"Rollback failed for {service.label}: {e}")
            return
        session.outcome = SessionOutcome.TIMED_OUT_ROLLED_BACK
        logger.warning(f"Rollback started for {service.label}")

    def _log_banner(self, service: ServiceRef) -> None:
        logger.info("=" * 70)
        logger.info("Rancher Service Upgrade")
        logger.info("=" * 70)
        logger.info(f"Service: {service.label}")
        logger.info(f"State: {service.state} / {service.health_state}")
        logger.info(f"Upgrade timeout: {self.timeout_ms}ms")
        logger.info(f"Status check interval: {self.poll_interval_ms}ms")
        logger.info(f"Rollback on fail: {self.rollback_on_fail}")
        logger.info(f"Start time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        logger.info("=" * 70)

    def _format_duration(self, seconds: float) -> str:
        """Format duration in human-readable format."""
        if seconds < 60:
            return f"{seconds:.1f}s"
        elif seconds < 3600:
            mins = int(seconds // 60)
            secs = seconds % 60
            return f"{mins}m {secs:.0f}s"
        else:
            hours = int(seconds // 3600)
            mins = int((seconds % 3600) // 60)
            secs = seconds % 60
            return f"{hours}h {mins}m {secs:.0f}s"

    def _print_report(self, session: UpgradeSession) -> None:
        """Log a summary of the session."""
        logger.info("")
        logger.info("=" * 70)
        logger.info("UPGRADE REPORT")
        logger.info("=" * 70)
        logger.info(f"{'service':20s}: {session.service_name} ({session.service_id})")
        if session.error:
            logger.info(f"{'outcome':20s}: failed")
            logger.info(f"{'error':20s}: {session.error}")
        else:
            logger.info(f"{'outcome':20s}: {session.outcome.value}")
        logger.info(
            f"{'elapsed budget':20s}: {session.elapsed_ms}ms of {session.timeout_budget_ms}ms"
        )
        logger.info(f"{'status checks':20s}: {session.ticks}")
        if session.duration_seconds is not None:
            logger.info(
                f"{'wall time':20s}: {self._format_duration(session.duration_seconds)}"
            )
        if session.rollback_on_fail:
            rb = (
                "Yes"
                if session.outcome == SessionOutcome.TIMED_OUT_ROLLED_BACK
                else "No"
            )
            logger.info(f"{'rolled back':20s}: {rb}")
        if session.rollback_error:
            logger.info(f"{'rollback error':20s}: {session.rollback_error}")
        logger.info("=" * 70)
