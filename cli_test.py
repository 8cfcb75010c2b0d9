#!/usr/bin/env python3

import os
import sys
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

from click.testing import CliRunner

from cli import cli


class TestCLI(unittest.TestCase):
    """Tests for main CLI integration"""

    def setUp(self):
        """Set up test fixtures"""
        self.runner = CliRunner(env={"LOG_FILE": None})

    def test_cli_help(self) -> None:
        """Test that CLI help works."""
        result = self.runner.invoke(cli, ["--help"])

        self.assertEqual(result.exit_code, 0)
        self.assertIn("subkeeper - Subscription keeper for Clash", result.output)

    def test_cli_version(self) -> None:
        """Test that CLI version works."""
        result = self.runner.invoke(cli, ["--version"])

        self.assertEqual(result.exit_code, 0)
        self.assertIn("0.1.0", result.output)

    @patch("cli.setup_logging")
    def test_verbose_flag(self, mock_setup) -> None:
        """Test that --verbose switches to debug logging."""
        result = self.runner.invoke(cli, ["--verbose", "status", "--help"])

        self.assertEqual(result.exit_code, 0)
        mock_setup.assert_called_once_with("DEBUG", None)

    @patch("cli.setup_logging")
    def test_no_verbose_flag(self, mock_setup) -> None:
        """Test that without --verbose the level comes from the environment."""
        result = self.runner.invoke(cli, ["status", "--help"])

        self.assertEqual(result.exit_code, 0)
        mock_setup.assert_called_once_with(None, None)

    @patch("cli.setup_logging")
    def test_log_file_option(self, mock_setup) -> None:
        """Test that --log-file is handed to the logging setup."""
        result = self.runner.invoke(cli, ["--log-file", "/var/log/subkeeper.log", "status", "--help"])

        self.assertEqual(result.exit_code, 0)
        mock_setup.assert_called_once_with(None, "/var/log/subkeeper.log")

    @patch("cli.setup_logging")
    def test_log_file_from_env(self, mock_setup) -> None:
        """Test that LOG_FILE sets the log file when the option is omitted."""
        result = self.runner.invoke(cli, ["status", "--help"], env={"LOG_FILE": "/tmp/sk.log"})

        self.assertEqual(result.exit_code, 0)
        mock_setup.assert_called_once_with(None, "/tmp/sk.log")

    def test_commands_registered(self) -> None:
        """Test that all commands are registered."""
        for name in ("run", "status", "update", "validate"):
            result = self.runner.invoke(cli, [name, "--help"])
            self.assertEqual(result.exit_code, 0, name)


if __name__ == "__main__":
    unittest.main()
