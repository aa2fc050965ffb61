"""Console entry point for the Rancher Service Upgrader CLI."""

from __future__ import annotations

import argparse
import logging
import os
from typing import List

from config import (
    DEFAULT_LOG_FILE,
    DEFAULT_STATUS_CHECK_INTERVAL_MS,
    DEFAULT_UPGRADE_TIMEOUT_MS,
    UpgraderConfig,
)
from errors import ConfigError, UpgradeError
from log_utils import setup_logging
from upgrader import ServiceUpgrader

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "yes", "on"}


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser.

    Every option falls back to a RANCHER_* environment variable.
    """
    env = os.environ.get

    parser = argparse.ArgumentParser(
        description="Upgrade one Rancher service and wait for it to become healthy"
    )

    conn = parser.add_argument_group("rancher connection")
    conn.add_argument(
        "--rancher-url",
        default=env("RANCHER_URL"),
        help="API endpoint, e.g. http://rancher-server:8080/v1 (RANCHER_URL)",
    )
    conn.add_argument(
        "--access-key", default=env("RANCHER_ACCESS_KEY"), help="(RANCHER_ACCESS_KEY)"
    )
    conn.add_argument(
        "--secret-key", default=env("RANCHER_SECRET_KEY"), help="(RANCHER_SECRET_KEY)"
    )
    conn.add_argument(
        "--request-timeout",
        type=int,
        default=env("RANCHER_REQUEST_TIMEOUT", "60"),
        metavar="SECONDS",
    )
    conn.add_argument(
        "--max-retries",
        type=int,
        default=env("RANCHER_MAX_RETRIES", "0"),
        metavar="N",
        help="Retries for transient API errors (default: 0, fail fast)",
    )

    target = parser.add_argument_group("target service")
    target.add_argument(
        "--environment", default=env("RANCHER_ENVIRONMENT"), help="(RANCHER_ENVIRONMENT)"
    )
    target.add_argument("--stack", default=env("RANCHER_STACK"), help="(RANCHER_STACK)")
    target.add_argument(
        "--service", default=env("RANCHER_SERVICE"), help="(RANCHER_SERVICE)"
    )

    upgrade = parser.add_argument_group("upgrade policy")
    upgrade.add_argument(
        "--upgrade-timeout",
        type=int,
        default=env("RANCHER_UPGRADE_TIMEOUT", str(DEFAULT_UPGRADE_TIMEOUT_MS)),
        metavar="MILLIS",
        help=f"Maximum time to wait for a healthy upgrade (default: {DEFAULT_UPGRADE_TIMEOUT_MS})",
    )
    upgrade.add_argument(
        "--status-check-interval",
        type=int,
        default=env(
            "RANCHER_STATUS_CHECK_INTERVAL", str(DEFAULT_STATUS_CHECK_INTERVAL_MS)
        ),
        metavar="MILLIS",
        help=f"Time between status checks (default: {DEFAULT_STATUS_CHECK_INTERVAL_MS})",
    )
    upgrade.add_argument(
        "--rollback-on-fail",
        action=argparse.BooleanOptionalAction,
        default=_env_flag("RANCHER_ROLLBACK_ON_FAIL"),
        help="Roll back if the upgrade times out",
    )
    upgrade.add_argument(
        "--batch-size", type=int, default=env("RANCHER_BATCH_SIZE", "1"), metavar="N"
    )
    upgrade.add_argument(
        "--batch-interval",
        type=int,
        default=env("RANCHER_BATCH_INTERVAL", "2000"),
        metavar="MILLIS",
    )
    upgrade.add_argument(
        "--start-first",
        action=argparse.BooleanOptionalAction,
        default=_env_flag("RANCHER_START_FIRST"),
        help="Start new containers before stopping old ones",
    )

    out = parser.add_argument_group("logging and output")
    out.add_argument("--verbose", action="store_true")
    out.add_argument(
        "--log-file",
        default=env("RANCHER_LOG_FILE", DEFAULT_LOG_FILE),
        help="Log file path, empty to disable",
    )
    return parser


def main(argv: List[str] | None = None) -> int:
    """CLI main for console_scripts entry point."""
    parser = build_parser()
    args = parser.parse_args(args=argv)

    setup_logging(verbose=args.verbose, log_file=args.log_file or None)

    config = UpgraderConfig.from_args(args)
    try:
        config.validate()
    except ConfigError as e:
        logger.error(str(e))
        return EXIT_CONFIG

    try:
        upgrader = ServiceUpgrader.from_config(config)
        upgrader.run_by_name(
            config.environment_name, config.stack_name, config.service_name
        )
    except UpgradeError as e:
        logger.error(f"Upgrade failed: {e}")
        return EXIT_FAILED

    return EXIT_OK
