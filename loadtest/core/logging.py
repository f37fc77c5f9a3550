#loadtest/core/logging.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

from loadtest.core.config import Settings

LOGGER_NAME = "books_load"


def setup_logging(settings: Settings) -> logging.Logger:
    settings.logs_path().mkdir(parents=True, exist_ok=True)
    Path(settings.abs_log_path()).parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(settings.log_level.upper())

    # avoid duplicate handlers when locust re-runs test_start
    if not logger.handlers:
        fh = logging.FileHandler(settings.abs_log_path(), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        logger.addHandler(fh)

        sh = logging.StreamHandler()
        sh.setLevel(logging.WARNING)
        sh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logger.addHandler(sh)

    return logger


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def json_log(logger: logging.Logger, record: Dict[str, Any], level: int = logging.INFO) -> None:
    logger.log(level, json.dumps(record, ensure_ascii=False, default=str))
