"""
Unit tests for CLI module.
"""

import os
import unittest
from unittest.mock import MagicMock, patch

from cli import EXIT_CONFIG, EXIT_FAILED, EXIT_OK, build_parser, main
from errors import NotFoundError, StateError, UpgradeTimeoutError

REQUIRED_ARGS = [
    "--rancher-url",
    "http://rancher-server:8080/v1",
    "--access-key",
    "access",
    "--secret-key",
    "secret",
    "--environment",
    "Default",
    "--stack",
    "web",
    "--service",
    "frontend",
]


class TestCLI(unittest.TestCase):
    """Test CLI argument parsing and entry point."""

    def setUp(self):
        env = patch.dict(os.environ, {}, clear=True)
        env.start()
        self.addCleanup(env.stop)

    def test_build_parser_defaults(self):
        """Test parser defaults match the documented configuration."""
        args = build_parser().parse_args(REQUIRED_ARGS)

        self.assertEqual(args.rancher_url, "http://rancher-server:8080/v1")
        self.assertEqual(args.environment, "Default")
        self.assertEqual(args.stack, "web")
        self.assertEqual(args.service, "frontend")
        self.assertEqual(args.upgrade_timeout, 600000)
        self.assertEqual(args.status_check_interval, 5000)
        self.assertFalse(args.rollback_on_fail)
        self.assertEqual(args.batch_size, 1)
        self.assertEqual(args.batch_interval, 2000)
        self.assertFalse(args.start_first)
        self.assertEqual(args.max_retries, 0)
        self.assertEqual(args.log_file, "rancher-upgrade.log")

    def test_parser_with_all_options(self):
        """Test parser handles all command-line options."""
        args = build_parser().parse_args(
            REQUIRED_ARGS
            + [
                "--upgrade-timeout",
                "10000",
                "--status-check-interval",
                "1000",
                "--rollback-on-fail",
                "--batch-size",
                "2",
                "--batch-interval",
                "500",
                "--start-first",
                "--request-timeout",
                "30",
                "--max-retries",
                "3",
                "--verbose",
                "--log-file",
                "",
            ]
        )

        self.assertEqual(args.upgrade_timeout, 10000)
        self.assertEqual(args.status_check_interval, 1000)
        self.assertTrue(args.rollback_on_fail)
        self.assertEqual(args.batch_size, 2)
        self.assertEqual(args.batch_interval, 500)
        self.assertTrue(args.start_first)
        self.assertEqual(args.request_timeout, 30)
        self.assertEqual(args.max_retries, 3)
        self.assertTrue(args.verbose)
        self.assertEqual(args.log_file, "")

    def test_parser_reads_environment(self):
        """Test options fall back to RANCHER_* environment variables."""
        os.environ.update(
            {
                "RANCHER_URL": "http://env:8080/v1",
                "RANCHER_SERVICE": "api",
                "RANCHER_UPGRADE_TIMEOUT": "20000",
                "RANCHER_ROLLBACK_ON_FAIL": "true",
            }
        )

        args = build_parser().parse_args([])

        self.assertEqual(args.rancher_url, "http://env:8080/v1")
        self.assertEqual(args.service, "api")
        self.assertEqual(args.upgrade_timeout, 20000)
        self.assertTrue(args.rollback_on_fail)
        self.assertIsNone(args.stack)

    def test_flags_can_override_environment(self):
        """Test --no-* flags switch off values enabled from the environment."""
        os.environ.update(
            {"RANCHER_ROLLBACK_ON_FAIL": "true", "RANCHER_START_FIRST": "1"}
        )

        defaults = build_parser().parse_args(REQUIRED_ARGS)
        overridden = build_parser().parse_args(
            REQUIRED_ARGS + ["--no-rollback-on-fail", "--no-start-first"]
        )

        self.assertTrue(defaults.rollback_on_fail)
        self.assertTrue(defaults.start_first)
        self.assertFalse(overridden.rollback_on_fail)
        self.assertFalse(overridden.start_first)

    @patch("cli.ServiceUpgrader")
    @patch("cli.setup_logging")
    def test_main_success(self, mock_setup_logging, mock_upgrader_class):
        """Test main returns 0 when the upgrade succeeds."""
        mock_upgrader = MagicMock()
        mock_upgrader_class.from_config.return_value = mock_upgrader

        result = main(REQUIRED_ARGS + ["--rollback-on-fail"])

        self.assertEqual(result, EXIT_OK)
        config = mock_upgrader_class.from_config.call_args[0][0]
        self.assertTrue(config.rollback_on_fail)
        mock_upgrader.run_by_name.assert_called_once_with("Default", "web", "frontend")
        mock_setup_logging.assert_called_once_with(
            verbose=False, log_file="rancher-upgrade.log"
        )

    @patch("cli.ServiceUpgrader")
    @patch("cli.setup_logging")
    def test_main_missing_config(self, mock_setup_logging, mock_upgrader_class):
        """Test missing required values exit with the config code."""
        result = main(["--rancher-url", "http://rancher-server:8080/v1"])

        self.assertEqual(result, EXIT_CONFIG)
        mock_upgrader_class.from_config.assert_not_called()

    @patch("cli.ServiceUpgrader")
    @patch("cli.setup_logging")
    def test_main_returns_failure_exit_code(
        self, mock_setup_logging, mock_upgrader_class
    ):
        """Test every fatal upgrade error maps to exit code 1."""
        for error in (
            UpgradeTimeoutError("timed out"),
            StateError("not active"),
            NotFoundError("no such stack"),
        ):
            mock_upgrader = MagicMock()
            mock_upgrader.run_by_name.side_effect = error
            mock_upgrader_class.from_config.return_value = mock_upgrader

            self.assertEqual(main(REQUIRED_ARGS), EXIT_FAILED)

    @patch("cli.ServiceUpgrader")
    @patch("cli.setup_logging")
    def test_main_disables_log_file(self, mock_setup_logging, mock_upgrader_class):
        main(REQUIRED_ARGS + ["--log-file", "", "--verbose"])

        mock_setup_logging.assert_called_once_with(verbose=True, log_file=None)


if __name__ == "__main__":
    unittest.main()
