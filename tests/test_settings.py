# tests/test_settings.py

"""Tests for Settings constants and the integration config loader."""

import os
import unittest
from pathlib import Path
from unittest.mock import patch

from price_compare.config.settings import (
    IntegrationConfig,
    Settings,
    load_integration_config,
)

_ENV_KEYS = (
    "OPENROUTER_API_KEY",
    "OPENAI_API_KEY",
    "AI_MODEL",
    "PRICE_COMPARE_DB",
    "PRICE_COMPARE_USER",
    "PRICE_COMPARE_LIVE",
)


class TestSettings(unittest.TestCase):
    """Verify Settings constants and platform registry."""

    def test_request_timeout_is_positive_int(self) -> None:
        self.assertIsInstance(Settings.REQUEST_TIMEOUT, int)
        self.assertGreater(Settings.REQUEST_TIMEOUT, 0)

    def test_max_retries_is_positive(self) -> None:
        self.assertGreaterEqual(Settings.MAX_RETRIES, 1)

    def test_batch_limits(self) -> None:
        self.assertEqual(Settings.BATCH_MAX_ITEMS, 100)
        self.assertAlmostEqual(Settings.BATCH_ITEM_DELAY, 0.3)

    def test_available_sources_has_four(self) -> None:
        ids = [s["id"] for s in Settings.AVAILABLE_SOURCES]
        self.assertEqual(ids, ["shopee", "pchome", "momo", "1688"])

    def test_each_source_has_required_keys(self) -> None:
        for src in Settings.AVAILABLE_SOURCES:
            with self.subTest(src=src.get("id", "?")):
                for key in ("id", "label", "crawler", "domain", "base_url"):
                    self.assertIn(key, src)

    def test_source_ids_are_unique(self) -> None:
        ids = [s["id"] for s in Settings.AVAILABLE_SOURCES]
        self.assertEqual(len(ids), len(set(ids)))

    def test_db_path_inside_data_dir(self) -> None:
        self.assertEqual(Settings.DB_PATH.parent, Settings.DATA_DIR)


class TestIntegrationConfig(unittest.TestCase):
    """Config is built from the environment only by the loader."""

    def _load(self, env: dict[str, str]) -> IntegrationConfig:
        clean = {k: v for k, v in os.environ.items() if k not in _ENV_KEYS}
        clean.update(env)
        with patch.dict(os.environ, clean, clear=True), patch(
            "price_compare.config.settings.load_dotenv"
        ):
            return load_integration_config()

    def test_defaults_without_environment(self) -> None:
        config = self._load({})
        self.assertIsNone(config.openrouter_api_key)
        self.assertIsNone(config.openai_api_key)
        self.assertEqual(config.ai_model, "google/gemini-flash-1.5")
        self.assertIsNone(config.database_path)
        self.assertEqual(config.user_id, "local")
        self.assertTrue(config.mock_mode)
        self.assertFalse(config.has_vision_backend)

    def test_reads_environment(self) -> None:
        config = self._load({
            "OPENAI_API_KEY": "sk-test",
            "AI_MODEL": "openai/gpt-4o",
            "PRICE_COMPARE_DB": "/tmp/pc.db",
            "PRICE_COMPARE_USER": "alice",
            "PRICE_COMPARE_LIVE": "1",
        })
        self.assertEqual(config.openai_api_key, "sk-test")
        self.assertEqual(config.ai_model, "openai/gpt-4o")
        self.assertEqual(config.database_path, Path("/tmp/pc.db"))
        self.assertEqual(config.user_id, "alice")
        self.assertFalse(config.mock_mode)
        self.assertTrue(config.has_vision_backend)

    def test_empty_key_treated_as_missing(self) -> None:
        config = self._load({"OPENROUTER_API_KEY": ""})
        self.assertIsNone(config.openrouter_api_key)

    def test_config_is_frozen(self) -> None:
        config = IntegrationConfig()
        with self.assertRaises(AttributeError):
            config.mock_mode = False  # type: ignore[misc]


if __name__ == "__main__":
    unittest.main()
