import tempfile
import unittest
from pathlib import Path

from bams.config import BamsConfig
from bams.runtime.health import check_storage


class RuntimeHealthTest(unittest.TestCase):
    def test_missing_but_creatable_dirs(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            data_dir = Path(tmpdir) / "data"
            cfg = BamsConfig(data_dir=str(data_dir), log_enabled=True, log_dir=str(Path(tmpdir) / "logs"))

            result = check_storage(cfg)

            self.assertTrue(result["ok"])
            self.assertIsNone(result["data_dir_error"])
            self.assertFalse(data_dir.exists())

    def test_data_dir_that_is_a_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            data_dir = Path(tmpdir) / "data"
            data_dir.write_text("not a directory", encoding="utf-8")

            result = check_storage(BamsConfig(data_dir=str(data_dir)))

            self.assertFalse(result["ok"])
            self.assertFalse(result["data_dir"])
            self.assertIsNotNone(result["data_dir_error"])

    def test_log_dir_ignored_when_logging_disabled(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            blocker = Path(tmpdir) / "logs"
            blocker.write_text("", encoding="utf-8")
            cfg = BamsConfig(data_dir=tmpdir, log_enabled=False, log_dir=str(blocker))

            self.assertTrue(check_storage(cfg)["log_dir"])


if __name__ == "__main__":
    unittest.main()
