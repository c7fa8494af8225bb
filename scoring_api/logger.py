# scoring_api/logger.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

from scoring_api.config import LOG_FILE, LOG_LEVEL

_LOGGERS: Dict[str, logging.Logger] = {}


def get_logger(name: str) -> logging.Logger:
    """
    Create or retrieve a named logger under the "scoring" namespace.

    Console output always; a file handler is added when LOG_FILE is set.
    """
    cache_key = f"scoring.{name}"
    if cache_key in _LOGGERS:
        return _LOGGERS[cache_key]

    logger = logging.getLogger(cache_key)
    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    if LOG_FILE:
        path = Path(LOG_FILE)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    _LOGGERS[cache_key] = logger

    return logger
