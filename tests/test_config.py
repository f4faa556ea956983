import json
import shutil
import tempfile
import unittest
from pathlib import Path

from chromatic_tuner.core.config import DEFAULT_CONFIGS, ConfigManager


class TestConfigManager(unittest.TestCase):
    def setUp(self):
        self.config_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.config_dir)

    def test_writes_defaults_on_first_run(self):
        manager = ConfigManager(self.config_dir)
        for name in DEFAULT_CONFIGS:
            self.assertTrue((Path(self.config_dir) / f"{name}.json").exists())
        self.assertEqual(manager.get_config("tuner")["confidence_threshold"], 0.92)
        self.assertTrue(manager.get_config("tuner")["require_positive_frequency"])

    def test_partial_file_is_filled_with_defaults(self):
        with open(Path(self.config_dir) / "tuner.json", "w") as f:
            json.dump({"confidence_threshold": 0.8}, f)

        tuner = ConfigManager(self.config_dir).get_config("tuner")
        self.assertEqual(tuner["confidence_threshold"], 0.8)
        self.assertEqual(tuner["frame_rate"], 60.0)

    def test_corrupted_file_falls_back_to_defaults(self):
        with open(Path(self.config_dir) / "audio_input.json", "w") as f:
            f.write("{not json")
        with open(Path(self.config_dir) / "tuner.json", "w") as f:
            json.dump([1, 2, 3], f)

        with self.assertLogs("chromatic_tuner.core.config", level="ERROR"):
            manager = ConfigManager(self.config_dir)
        self.assertEqual(manager.get_config("audio_input"), DEFAULT_CONFIGS["audio_input"])
        self.assertEqual(manager.get_config("tuner"), DEFAULT_CONFIGS["tuner"])

    def test_get_config_returns_copy(self):
        manager = ConfigManager(self.config_dir)
        manager.get_config("tuner")["confidence_threshold"] = 0.1
        self.assertEqual(manager.get_config("tuner")["confidence_threshold"], 0.92)

    def test_update_persists(self):
        manager = ConfigManager(self.config_dir)
        self.assertTrue(manager.update_config("tuner", {"reference_a4": 442.0}))

        reloaded = ConfigManager(self.config_dir)
        self.assertEqual(reloaded.get_config("tuner")["reference_a4"], 442.0)

    def test_reset_restores_defaults(self):
        manager = ConfigManager(self.config_dir)
        manager.update_config("pitch_detector", {"method": "mcleod"})
        self.assertTrue(manager.reset_config("pitch_detector"))
        self.assertEqual(manager.get_config("pitch_detector")["method"], "yin")

    def test_invalid_stored_values_fall_back(self):
        with open(Path(self.config_dir) / "tuner.json", "w") as f:
            json.dump({"confidence_threshold": 1.5, "frame_rate": "fast", "use_flats": True}, f)

        with self.assertLogs("chromatic_tuner.core.config", level="WARNING") as logs:
            tuner = ConfigManager(self.config_dir).get_config("tuner")
        self.assertEqual(tuner["confidence_threshold"], 0.92)
        self.assertEqual(tuner["frame_rate"], 60.0)
        self.assertTrue(tuner["use_flats"])
        self.assertEqual(sum("Ignoring invalid" in line for line in logs.output), 2)

    def test_invalid_update_is_rejected_whole(self):
        manager = ConfigManager(self.config_dir)
        with self.assertLogs("chromatic_tuner.core.config", level="ERROR"):
            ok = manager.update_config("tuner", {"reference_a4": 442.0, "frame_rate": 0})
        self.assertFalse(ok)
        self.assertEqual(manager.get_config("tuner")["reference_a4"], 440.0)

    def test_booleans_are_not_numbers(self):
        manager = ConfigManager(self.config_dir)
        with self.assertLogs("chromatic_tuner.core.config", level="ERROR"):
            self.assertFalse(manager.update_config("audio_input", {"buffer_size": True}))

    def test_unknown_name(self):
        manager = ConfigManager(self.config_dir)
        self.assertEqual(manager.get_config("display"), {})
        with self.assertLogs("chromatic_tuner.core.config", level="ERROR"):
            self.assertFalse(manager.update_config("display", {"fps": 30}))
        with self.assertLogs("chromatic_tuner.core.config", level="ERROR"):
            self.assertFalse(manager.reset_config("display"))


if __name__ == "__main__":
    unittest.main()
