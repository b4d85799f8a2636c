"""
Unit tests for logging utilities.
"""

import logging
import os
import tempfile
import unittest
from unittest.mock import patch

from log_utils import setup_logging


class TestLogUtils(unittest.TestCase):
    """Test logging utilities."""

    @patch("log_utils.logging.basicConfig")
    def test_setup_logging_default(self, mock_basic_config):
        """Default setup logs INFO to stdout and the log file."""
        with tempfile.TemporaryDirectory() as tmp:
            log_file = os.path.join(tmp, "deploy.log")
            logger = setup_logging(log_file=log_file)

            self.assertIsInstance(logger, logging.Logger)
            kwargs = mock_basic_config.call_args.kwargs
            self.assertEqual(kwargs["level"], logging.INFO)
            self.assertEqual(len(kwargs["handlers"]), 2)
            for handler in kwargs["handlers"]:
                handler.close()

    @patch("log_utils.logging.basicConfig")
    def test_setup_logging_verbose(self, mock_basic_config):
        """Verbose setup logs at DEBUG."""
        setup_logging(verbose=True, log_file=None)

        kwargs = mock_basic_config.call_args.kwargs
        self.assertEqual(kwargs["level"], logging.DEBUG)
        self.assertEqual(len(kwargs["handlers"]), 1)

    @patch("log_utils.logging.basicConfig")
    def test_setup_logging_quiets_botocore(self, mock_basic_config):
        """botocore retry chatter stays out of the run log."""
        setup_logging(verbose=True, log_file=None)

        self.assertEqual(logging.getLogger("botocore").level, logging.WARNING)


if __name__ == "__main__":
    unittest.main()
