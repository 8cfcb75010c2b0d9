#!/usr/bin/env python3

import os
import sys
import unittest
from unittest.mock import Mock, patch

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from click.testing import CliRunner

from commands.update import update
from lib.models import Config, Subscription
from subscriptions.errors import ConfigError


def _manager(config: Config) -> Mock:
    manager = Mock()
    manager.config = config
    manager.find.side_effect = lambda name=None: config.find(name) if name else config.current_subscription()
    manager.update.return_value = True
    return manager


class TestUpdate(unittest.TestCase):
    """Tests for update command"""

    def setUp(self):
        """Set up test fixtures"""
        self.runner = CliRunner()
        self.config = Config(
            current="home",
            subscribe=[
                Subscription(name="work", url="https://example.com/work"),
                Subscription(name="home", url="https://example.com/home"),
                Subscription(name="manual"),
            ],
        )

    @patch("commands.update.SubscriptionManager")
    def test_update_current_by_default(self, mock_cls: Mock) -> None:
        """Test that update without arguments updates the current subscription."""
        manager = mock_cls.from_home.return_value = _manager(self.config)

        result = self.runner.invoke(update, [])

        self.assertEqual(result.exit_code, 0)
        manager.update.assert_called_once()
        self.assertEqual(manager.update.call_args.args[0].name, "home")

    @patch("commands.update.SubscriptionManager")
    def test_update_named(self, mock_cls: Mock) -> None:
        """Test that update accepts several names."""
        manager = mock_cls.from_home.return_value = _manager(self.config)

        result = self.runner.invoke(update, ["work", "home"])

        self.assertEqual(result.exit_code, 0)
        self.assertEqual([c.args[0].name for c in manager.update.call_args_list], ["work", "home"])

    @patch("commands.update.SubscriptionManager")
    def test_update_all_skips_subscriptions_without_url(self, mock_cls: Mock) -> None:
        """Test that --all only updates subscriptions with a url."""
        manager = mock_cls.from_home.return_value = _manager(self.config)

        result = self.runner.invoke(update, ["--all"])

        self.assertEqual(result.exit_code, 0)
        self.assertEqual([c.args[0].name for c in manager.update.call_args_list], ["work", "home"])

    @patch("commands.update.SubscriptionManager")
    def test_update_unknown_name(self, mock_cls: Mock) -> None:
        """Test that an unknown subscription name exits 1 without updating anything."""
        manager = mock_cls.from_home.return_value = _manager(self.config)
        manager.find.side_effect = ConfigError("Subscription not found: nope")

        result = self.runner.invoke(update, ["nope"])

        self.assertEqual(result.exit_code, 1)
        manager.update.assert_not_called()

    @patch("commands.update.SubscriptionManager")
    def test_update_failure_exits_nonzero(self, mock_cls: Mock) -> None:
        """Test that a failed update is reflected in the exit code after all updates ran."""
        manager = mock_cls.from_home.return_value = _manager(self.config)
        manager.update.side_effect = [False, True]

        result = self.runner.invoke(update, ["work", "home"])

        self.assertEqual(result.exit_code, 1)
        self.assertEqual(manager.update.call_count, 2)


if __name__ == "__main__":
    unittest.main()
