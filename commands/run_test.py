#!/usr/bin/env python3

import os
import sys
import unittest
from unittest.mock import Mock, patch

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from click.testing import CliRunner
from commands.run import run
from subscriptions.errors import BootstrapError, ConfigError


class TestRun(unittest.TestCase):
    """Tests for run command"""

    def setUp(self):
        """Set up test fixtures"""
        self.runner = CliRunner()

    @patch("commands.run.SubscriptionManager")
    def test_run_starts_manager(self, mock_manager: Mock) -> None:
        """Test that run loads the home directory and runs the manager."""
        result = self.runner.invoke(run, ["-d", "/srv/clash"])

        self.assertEqual(result.exit_code, 0)
        mock_manager.from_home.assert_called_once_with("/srv/clash")
        mock_manager.from_home.return_value.run.assert_called_once()

    @patch("commands.run.SubscriptionManager")
    def test_run_defaults_home_to_env(self, mock_manager: Mock) -> None:
        """Test that run leaves home resolution to the manager when -d is omitted."""
        result = self.runner.invoke(run, [])

        self.assertEqual(result.exit_code, 0)
        mock_manager.from_home.assert_called_once_with(None)

    @patch("commands.run.SubscriptionManager")
    def test_run_fails_on_bad_config(self, mock_manager: Mock) -> None:
        """Test that run exits 1 when config.yaml cannot be loaded."""
        mock_manager.from_home.side_effect = ConfigError("Config not found: data/config.yaml")

        result = self.runner.invoke(run, [])

        self.assertEqual(result.exit_code, 1)

    @patch("commands.run.SubscriptionManager")
    def test_run_fails_when_bootstrap_fails(self, mock_manager: Mock) -> None:
        """Test that run exits 1 when the current subscription cannot be fetched."""
        mock_manager.from_home.return_value.run.side_effect = BootstrapError("[work] Initial update failed")

        result = self.runner.invoke(run, [])

        self.assertEqual(result.exit_code, 1)


if __name__ == "__main__":
    unittest.main()
