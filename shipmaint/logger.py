"""Logging setup for the ship maintenance service."""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = "shipmaint"


def setup_logger(
    name: str = LOGGER_NAME,
    level: Optional[int] = None,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure and return a logger.

    Args:
        name: Logger name.
        level: Logging level. Defaults to LOG_LEVEL from the environment (INFO).
        log_file: Optional path to log file. Defaults to LOG_FILE; stderr only when unset.

    Returns:
        Configured logger.
    """
    log = logging.getLogger(name)
    if log.handlers:
        return log

    if level is None:
        level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    if log_file is None and os.getenv("LOG_FILE"):
        log_file = Path(os.getenv("LOG_FILE"))

    log.setLevel(level)
    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    h = logging.StreamHandler(sys.stderr)
    h.setFormatter(fmt)
    log.addHandler(h)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(fmt)
        log.addHandler(fh)

    return log


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Return the application logger. Use after setup_logger has been called."""
    return logging.getLogger(name)
