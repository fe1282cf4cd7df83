import unittest

from bams.config import AnchorMode, BamsConfig, load_config


class ConfigTest(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = load_config({})
        self.assertEqual(cfg.difficulty, 4)
        self.assertEqual(cfg.anchor_mode, AnchorMode.SNAPSHOT)
        self.assertEqual(cfg.data_dir, ".bams/data")
        self.assertIsNone(cfg.seal_budget)
        self.assertFalse(cfg.log_enabled)

    def test_env_overrides(self) -> None:
        cfg = load_config(
            {
                "BAMS_DIFFICULTY": "2",
                "BAMS_ALLOW_WEAK_DIFFICULTY": "1",
                "BAMS_ANCHOR_MODE": "LIVE",
                "BAMS_DATA_DIR": "/tmp/bams",
                "BAMS_MAX_SEAL_ATTEMPTS": "1000",
                "BAMS_LOG_ENABLED": "yes",
                "BAMS_LOG_FILENAME": "audit.jsonl",
            }
        )
        self.assertEqual(cfg.difficulty, 2)
        self.assertTrue(cfg.allow_weak_difficulty)
        self.assertEqual(cfg.anchor_mode, AnchorMode.LIVE)
        self.assertEqual(cfg.data_dir, "/tmp/bams")
        self.assertEqual(cfg.seal_budget, 1000)
        self.assertTrue(cfg.log_enabled)
        self.assertEqual(cfg.log_filename, "audit.jsonl")

    def test_invalid_env_values_raise(self) -> None:
        with self.assertRaises(ValueError):
            load_config({"BAMS_DIFFICULTY": "four"})
        with self.assertRaises(ValueError):
            load_config({"BAMS_ANCHOR_MODE": "sometimes"})
        with self.assertRaises(ValueError):
            load_config({"BAMS_LOG_ENABLED": "maybe"})
        with self.assertRaises(ValueError):
            load_config({"BAMS_DIFFICULTY": "65"})

    def test_weak_difficulty_needs_explicit_opt_in(self) -> None:
        with self.assertRaises(ValueError):
            load_config({"BAMS_DIFFICULTY": "0"})
        with self.assertRaises(ValueError):
            BamsConfig(difficulty=3).validate()
        cfg = load_config({"BAMS_DIFFICULTY": "0", "BAMS_ALLOW_WEAK_DIFFICULTY": "true"})
        self.assertEqual(cfg.difficulty, 0)
        BamsConfig(difficulty=4).validate()

    def test_anchor_mode_string_is_coerced(self) -> None:
        self.assertIs(BamsConfig(anchor_mode="live").anchor_mode, AnchorMode.LIVE)

    def test_validation_rejects_bad_values(self) -> None:
        with self.assertRaises(ValueError):
            BamsConfig(difficulty=-1).validate()
        with self.assertRaises(ValueError):
            BamsConfig(max_seal_attempts=-5).validate()
        with self.assertRaises(ValueError):
            BamsConfig(data_dir="  ").validate()

    def test_log_validation_rejects_blank_paths_and_traversal(self) -> None:
        with self.assertRaises(ValueError):
            BamsConfig(log_enabled=True, log_dir="   ").validate()
        with self.assertRaises(ValueError):
            BamsConfig(log_enabled=True, log_filename="   ").validate()
        with self.assertRaises(ValueError):
            BamsConfig(log_enabled=True, log_filename="../cli.jsonl").validate()
        with self.assertRaises(ValueError):
            BamsConfig(log_enabled=True, log_filename="/cli.jsonl").validate()
        with self.assertRaises(ValueError):
            BamsConfig(log_enabled=True, log_filename="C:\\cli.jsonl").validate()
        with self.assertRaises(ValueError):
            BamsConfig(log_enabled=True, log_filename="~/cli.jsonl").validate()
        with self.assertRaises(ValueError):
            BamsConfig(log_enabled=True, log_schema_version="").validate()


if __name__ == "__main__":
    unittest.main()
