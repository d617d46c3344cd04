"""
Logging helpers.

The library only creates module loggers under the ``c45py`` namespace and is
silent until an application calls :func:`configure_logging`.

Usage:
    from c45py.logger import configure_logging
    configure_logging(logging.DEBUG)
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "c45py"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str) -> logging.Logger:
    """Return a logger placed under the package namespace."""
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def configure_logging(level: int = logging.INFO,
                      log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach console (and optional file) handlers to the package logger.

    Parameters
    ----------
    level : int
        Logging level (default: INFO).
    log_file : str, optional
        Path to a log file. If None, logs only to the console.

    Returns
    -------
    logging.Logger
        The configured package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    # drop handlers from an earlier call, keep the NullHandler
    for handler in list(logger.handlers):
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
