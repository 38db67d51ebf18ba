"""Tests for the package logging bootstrap."""

from __future__ import annotations

import io
import logging
import sys
import unittest

from trambar_deco.logging_setup import PACKAGE_LOGGER, configure_logging


class ConfigureLoggingTests(unittest.TestCase):
    def tearDown(self) -> None:
        configure_logging("WARNING", stream=sys.stderr)

    def test_repeated_calls_keep_a_single_handler(self) -> None:
        first = io.StringIO()
        second = io.StringIO()

        configure_logging("DEBUG", stream=first)
        logger = configure_logging("INFO", stream=second)
        logging.getLogger(f"{PACKAGE_LOGGER}.workspace").info("described %s", "repo")

        marked = [h for h in logger.handlers if getattr(h, "_trambar_deco_handler", False)]
        self.assertEqual(len(marked), 1)
        self.assertEqual(logger.level, logging.INFO)
        self.assertEqual(first.getvalue(), "")
        self.assertIn("INFO trambar_deco.workspace: described repo", second.getvalue())

    def test_unknown_level_falls_back_to_warning(self) -> None:
        logger = configure_logging("LOUD", stream=io.StringIO())

        self.assertEqual(logger.level, logging.WARNING)


if __name__ == "__main__":
    unittest.main()
