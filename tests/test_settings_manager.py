import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from swarmsearch.core.settings_manager import SearchConfig, SettingsManager


class TestSettingsManager(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.data_dir = Path(self._tmp.name)
        self._env = mock.patch.dict("os.environ", {"SWARMSEARCH_DATA_DIR": str(self.data_dir)})
        self._env.start()

    def tearDown(self):
        self._env.stop()
        self._tmp.cleanup()

    def test_defaults_without_file(self):
        settings = SettingsManager()
        self.assertEqual(settings.settings_file, self.data_dir / "settings.json")
        self.assertEqual(settings.get("content_filter_mode"), "soft")
        self.assertEqual(settings.get("min_score"), 40)
        self.assertFalse(settings.get("enabled_sources")["rutracker"])

    def test_changes_persist(self):
        settings = SettingsManager()
        settings.set("min_score", 55)
        settings.set_source_enabled("tpb", False)

        reloaded = SettingsManager()
        self.assertEqual(reloaded.get("min_score"), 55)
        self.assertFalse(reloaded.get("enabled_sources")["tpb"])
        self.assertTrue(reloaded.get("enabled_sources")["kickass"])

    def test_saved_source_flags_are_merged_with_defaults(self):
        (self.data_dir / "settings.json").write_text(
            json.dumps({"enabled_sources": {"1337x": True}, "custom": 1}), encoding="utf-8"
        )
        settings = SettingsManager()
        flags = settings.get("enabled_sources")
        self.assertTrue(flags["1337x"])
        self.assertTrue(flags["tpb"])
        self.assertEqual(settings.get("custom"), 1)
        self.assertEqual(settings.get("fallback_cap"), 15)

    def test_corrupt_file_falls_back_to_defaults(self):
        (self.data_dir / "settings.json").write_text("{not json", encoding="utf-8")
        with self.assertLogs("swarmsearch.core.settings_manager", level="ERROR"):
            settings = SettingsManager()
        self.assertEqual(settings.get_all(), SettingsManager.DEFAULT_SETTINGS)

    def test_get_all_is_a_copy(self):
        settings = SettingsManager()
        snapshot = settings.get_all()
        snapshot["enabled_sources"]["tpb"] = False
        self.assertTrue(settings.get("enabled_sources")["tpb"])

    def test_reset(self):
        settings = SettingsManager()
        settings.update({"min_score": 1, "topk_max": 3})
        settings.reset()
        self.assertEqual(settings.get("min_score"), 40)
        self.assertEqual(settings.get("topk_max"), 15)


class TestSearchConfig(unittest.TestCase):
    def test_defaults(self):
        config = SearchConfig.from_settings(None)
        self.assertEqual(config.search_timeout_seconds, 3.0)
        self.assertEqual(config.detail_timeout_seconds, 6.0)
        self.assertEqual(config.min_score, 40)
        self.assertEqual(config.content_filter_mode, "soft")

    def test_values_are_cast_and_bad_ones_replaced(self):
        config = SearchConfig.from_settings({
            "search_timeout_seconds": "1.5",
            "min_score": "not a number",
            "topk_max": "4",
            "content_filter_mode": " HARD ",
        })
        self.assertEqual(config.search_timeout_seconds, 1.5)
        self.assertEqual(config.min_score, 40)
        self.assertEqual(config.topk_max, 4)
        self.assertEqual(config.content_filter_mode, "hard")

    def test_unknown_filter_mode_falls_back_to_soft(self):
        config = SearchConfig.from_settings({"content_filter_mode": "strict"})
        self.assertEqual(config.content_filter_mode, "soft")

    def test_timeouts_are_clamped(self):
        config = SearchConfig.from_settings({"search_timeout_seconds": 0, "max_workers": 0})
        self.assertEqual(config.search_timeout_seconds, 0.1)
        self.assertEqual(config.max_workers, 1)


if __name__ == "__main__":
    unittest.main()
