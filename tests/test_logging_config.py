# tests/test_logging_config.py

"""Tests for the per-run logging configuration."""

import logging
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from price_compare.config.logging_config import (
    ROOT_LOGGER_NAME,
    run_log_path,
    setup_logging,
)


def _handlers_of(kind: type[logging.Handler]) -> list[logging.Handler]:
    handlers = logging.getLogger(ROOT_LOGGER_NAME).handlers
    if kind is logging.StreamHandler:
        return [
            h for h in handlers
            if type(h) is logging.StreamHandler
        ]
    return [h for h in handlers if isinstance(h, kind)]


class TestRunLogPath(unittest.TestCase):

    def test_named_after_start_time(self) -> None:
        path = run_log_path(Path("/tmp/logs"), datetime(2026, 2, 14, 15, 30, 45))
        self.assertEqual(path, Path("/tmp/logs/run_20260214_153045.log"))


class TestSetupLogging(unittest.TestCase):
    """Handlers attached to the price_compare logger."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.logs_dir = Path(self._tmp.name) / "logs"
        self._detach()

    def tearDown(self) -> None:
        self._detach()
        self._tmp.cleanup()

    def _detach(self) -> None:
        project_logger = logging.getLogger(ROOT_LOGGER_NAME)
        for handler in list(project_logger.handlers):
            handler.close()
            project_logger.removeHandler(handler)

    def test_creates_directory_and_file(self) -> None:
        log_path = setup_logging(self.logs_dir)
        self.assertTrue(log_path.exists())
        self.assertEqual(log_path.parent, self.logs_dir)
        self.assertRegex(log_path.name, r"^run_\d{8}_\d{6}\.log$")

    def test_handler_levels(self) -> None:
        setup_logging(self.logs_dir)
        files = _handlers_of(logging.FileHandler)
        streams = _handlers_of(logging.StreamHandler)
        self.assertEqual([h.level for h in files], [logging.DEBUG])
        self.assertEqual([h.level for h in streams], [logging.WARNING])

    def test_console_level_override(self) -> None:
        setup_logging(self.logs_dir, console_level=logging.INFO)
        streams = _handlers_of(logging.StreamHandler)
        self.assertEqual([h.level for h in streams], [logging.INFO])

    def test_second_call_adds_nothing(self) -> None:
        setup_logging(self.logs_dir)
        before = list(logging.getLogger(ROOT_LOGGER_NAME).handlers)
        setup_logging(self.logs_dir)
        self.assertEqual(logging.getLogger(ROOT_LOGGER_NAME).handlers, before)

    def test_module_records_reach_file(self) -> None:
        log_path = setup_logging(self.logs_dir)
        logging.getLogger("price_compare.batch").debug("item 3 settled")
        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.flush()
        text = log_path.read_text(encoding="utf-8")
        self.assertIn("price_compare.batch", text)
        self.assertIn("item 3 settled", text)


if __name__ == "__main__":
    unittest.main()
