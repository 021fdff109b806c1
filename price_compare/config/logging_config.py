# price_compare/config/logging_config.py

"""Logging for one price_compare run.

A run gets its own file under ``logs/`` named after its start time
(``run_20260214_153045.log``) that receives every ``price_compare.*``
record at DEBUG.  Stderr only shows warnings unless the caller asks
for more, so stdout stays reserved for JSON results.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from price_compare.config.settings import Settings

ROOT_LOGGER_NAME = "price_compare"

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)
_STDERR_FORMAT = "%(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _configured(
    handler: logging.Handler, level: int, fmt: str,
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=_DATE_FORMAT))
    return handler


def run_log_path(logs_dir: Path, started: datetime | None = None) -> Path:
    """Where the log for a run started at ``started`` is written."""
    stamp = (started or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return logs_dir / f"run_{stamp}.log"


def setup_logging(
    logs_dir: Path | None = None,
    console_level: int = logging.WARNING,
) -> Path:
    """Attach the run's file and stderr handlers to ``price_compare``.

    Calling it again in the same process keeps the existing handlers.

    Returns:
        The log file path for this run.
    """
    directory = logs_dir or Settings.LOGS_DIR
    directory.mkdir(parents=True, exist_ok=True)
    log_file = run_log_path(directory)

    project_logger = logging.getLogger(ROOT_LOGGER_NAME)
    project_logger.setLevel(logging.DEBUG)
    if project_logger.handlers:
        return log_file

    project_logger.addHandler(
        _configured(
            logging.FileHandler(log_file, encoding="utf-8"),
            logging.DEBUG,
            _FILE_FORMAT,
        )
    )
    project_logger.addHandler(
        _configured(
            logging.StreamHandler(sys.stderr), console_level, _STDERR_FORMAT
        )
    )
    project_logger.info("Run log opened at %s", log_file)
    return log_file
