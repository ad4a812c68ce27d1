"""
Logging setup for the ingestion and calibration packages.

Library modules log through `logging.getLogger(__name__)`, so every record
lands under one of PACKAGE_LOGGERS. setup_logging() attaches a file and a
console handler to those loggers and sets their level; calling it again
replaces the handlers it installed before.
"""

from __future__ import annotations

import logging
import os
from typing import List, Sequence


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
PACKAGE_LOGGERS = ("ingestion", "calibration")

_installed: List[logging.Handler] = []
_installed_on: List[str] = []


def setup_logging(
    log_path: str,
    log_level: str,
    loggers: Sequence[str] = PACKAGE_LOGGERS,
) -> List[logging.Handler]:
    """
    Route the package loggers to `log_path` and the console at `log_level`.

    Returns:
        The handlers now attached to each package logger.
    """
    level = getattr(logging, log_level)

    log_dir = os.path.dirname(log_path)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    formatter = logging.Formatter(LOG_FORMAT)
    handlers: List[logging.Handler] = [
        logging.FileHandler(log_path),
        logging.StreamHandler(),
    ]
    for handler in handlers:
        handler.setFormatter(formatter)

    for name in _installed_on:
        for old in _installed:
            logging.getLogger(name).removeHandler(old)
    for old in _installed:
        old.close()

    for name in loggers:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        for handler in handlers:
            logger.addHandler(handler)

    _installed[:] = handlers
    _installed_on[:] = list(loggers)
    return handlers
