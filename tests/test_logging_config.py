"""
Tests for logging setup
"""

import logging
import os
import sys
import tempfile
import unittest
from unittest.mock import patch

# Add the project root to the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from utils.logging_config import (
    ColourFormatter,
    PlainFormatter,
    SystemdFormatter,
    get_logger,
    setup_logging,
)


class TestLoggingSetup(unittest.TestCase):

    def tearDown(self):
        root = logging.getLogger()
        for handler in list(root.handlers):
            handler.close()
            root.removeHandler(handler)

    def test_console_formatter_by_environment(self):
        with patch.dict(os.environ, {}, clear=True):
            root = setup_logging("INFO")
            self.assertIsInstance(root.handlers[0].formatter, ColourFormatter)

        with patch.dict(os.environ, {"PM2_HOME": "/pm2"}, clear=True):
            root = setup_logging("INFO")
            self.assertIsInstance(root.handlers[0].formatter, PlainFormatter)

        with patch.dict(os.environ, {"INVOCATION_ID": "abc"}, clear=True):
            root = setup_logging("INFO")
            self.assertIsInstance(root.handlers[0].formatter, SystemdFormatter)

    def test_level_and_noisy_loggers(self):
        root = setup_logging("warning")
        self.assertEqual(root.level, logging.WARNING)
        self.assertEqual(logging.getLogger("httpx").level, logging.WARNING)

    def test_unknown_level_defaults_to_info(self):
        root = setup_logging("chatty")
        self.assertEqual(root.level, logging.INFO)

    def test_file_logging(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "nested", "proxy.log")
            root = setup_logging("INFO", log_to_file=True, log_file_path=path)
            get_logger("tests.logging").info("hello file")
            for handler in root.handlers:
                handler.flush()

            self.assertEqual(len(root.handlers), 2)
            with open(path) as f:
                self.assertIn("hello file", f.read())
            self.tearDown()

    def test_get_logger_uses_name(self):
        self.assertEqual(get_logger("imagegen.test").name, "imagegen.test")


if __name__ == '__main__':
    unittest.main()
