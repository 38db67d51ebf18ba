"""Tests for persisted preferences and language/log-level resolution."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from trambar_deco import config


class DecoConfigTests(unittest.TestCase):
    def test_persisted_language_is_normalized(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "nested" / "config.json"
            with mock.patch("trambar_deco.config.CONFIG_PATH", config_path):
                config.save_config({"language": "FR_ca"})

                self.assertTrue(config_path.exists())
                self.assertEqual(config.load_language(), "fr")

    def test_unusable_persisted_language_is_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            with mock.patch("trambar_deco.config.CONFIG_PATH", config_path):
                config.save_config({"language": "1x"})
                self.assertIsNone(config.load_language())
                config.save_config({"language": 7})
                self.assertIsNone(config.load_language())

    def test_malformed_config_falls_back_to_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            config_path.write_text("[1, 2", encoding="utf-8")
            with mock.patch("trambar_deco.config.CONFIG_PATH", config_path):
                self.assertEqual(config.load_config(), {})
                self.assertTrue(config.load_watch_enabled())
                self.assertIsNone(config.load_log_level())

            config_path.write_text('["not", "an", "object"]', encoding="utf-8")
            with mock.patch("trambar_deco.config.CONFIG_PATH", config_path):
                self.assertEqual(config.load_config(), {})

    def test_watch_preference_requires_boolean(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            with mock.patch("trambar_deco.config.CONFIG_PATH", config_path):
                config.save_config({"watch": "no"})
                self.assertTrue(config.load_watch_enabled())
                config.save_config({"watch": False})
                self.assertFalse(config.load_watch_enabled())

    def test_resolve_language_precedence(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            with mock.patch("trambar_deco.config.CONFIG_PATH", config_path):
                env = {"LANG": "de_DE.UTF-8"}
                self.assertEqual(config.resolve_language(None, env), "de")
                self.assertEqual(config.resolve_language("pl", env), "pl")
                self.assertEqual(config.resolve_language(None, {"LANG": "C"}), "en")

                config.save_config({"language": "ja"})
                self.assertEqual(config.resolve_language(None, env), "ja")
                self.assertEqual(config.resolve_language("!!", env), "ja")

    def test_resolve_log_level_precedence(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            with mock.patch("trambar_deco.config.CONFIG_PATH", config_path):
                env = {config.LOG_LEVEL_ENV: "info"}
                self.assertEqual(config.resolve_log_level(None, {}), "WARNING")
                self.assertEqual(config.resolve_log_level(None, env), "INFO")
                self.assertEqual(config.resolve_log_level("debug", env), "DEBUG")

                config.save_config({"log_level": "error"})
                self.assertEqual(config.resolve_log_level(None, env), "ERROR")


if __name__ == "__main__":
    unittest.main()
