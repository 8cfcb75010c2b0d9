#!/usr/bin/env python3

import logging
import os
import tempfile
import unittest
from unittest import mock

from lib.logging_config import TRACE, TTYAwareFormatter, resolve_level, setup_logging


class TestLoggingConfig(unittest.TestCase):
    """Tests for logging setup"""

    def tearDown(self):
        logging.root.handlers = []

    def test_resolve_level(self):
        self.assertEqual(resolve_level("debug"), logging.DEBUG)
        self.assertEqual(resolve_level("TRACE"), TRACE)
        self.assertEqual(resolve_level("nonsense"), logging.INFO)

    @mock.patch.dict("os.environ", {"LOG_LEVEL": "WARNING"})
    def test_resolve_level_from_env(self):
        self.assertEqual(resolve_level(), logging.WARNING)

    @mock.patch("sys.stdout.isatty", return_value=False)
    def test_setup_logging_quiets_third_party(self, _):
        setup_logging("DEBUG")

        self.assertEqual(logging.root.level, logging.DEBUG)
        self.assertEqual(logging.getLogger("urllib3").level, logging.WARNING)
        self.assertEqual(logging.getLogger("apscheduler").level, logging.WARNING)

    def test_non_tty_format_names_module(self):
        record = logging.LogRecord(
            "subscriptions.manager", logging.INFO, "manager.py", 88, "[work] Update complete", None, None
        )
        line = TTYAwareFormatter(is_tty=False).format(record)

        self.assertIn("INFO > subscriptions/manager.py:88: [work] Update complete", line)

    def test_tty_format_uses_symbol(self):
        record = logging.LogRecord("x", logging.ERROR, "x.py", 1, "[work] Check failed", None, None)
        line = TTYAwareFormatter(is_tty=True).format(record)

        self.assertIn("✗", line)
        self.assertIn(f"{TTYAwareFormatter.CYAN}[work]{TTYAwareFormatter.RESET} Check failed", line)

    def test_untagged_tty_line_is_left_alone(self):
        record = logging.LogRecord("x", logging.INFO, "x.py", 1, "Scheduler started", None, None)
        line = TTYAwareFormatter(is_tty=True).format(record)

        self.assertTrue(line.endswith(" Scheduler started"))

    @mock.patch("sys.stdout.isatty", return_value=True)
    def test_log_file_gets_structured_lines(self, _):
        with tempfile.TemporaryDirectory() as tmp:
            log_file = os.path.join(tmp, "subkeeper.log")
            setup_logging("INFO", log_file)
            logging.getLogger("subscriptions.manager").info("[work] Update complete")
            for handler in logging.root.handlers:
                handler.close()

            with open(log_file, encoding="utf-8") as f:
                content = f.read()

        self.assertIn("INFO > subscriptions/manager.py:", content)
        self.assertIn("[work] Update complete", content)
        self.assertNotIn("\033", content)


if __name__ == "__main__":
    unittest.main()
