"""Logging setup for Rail Radar."""

import logging
import sys

from railradar.config import settings

LOGGER_NAME = "railradar"


def setup_logger(
    name: str = LOGGER_NAME,
    level: int | None = None,
    log_file: str | None = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        name: Logger name
        level: Log level (None uses settings.log_level)
        log_file: Optional file output (None uses settings.log_file)

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)

    # Already configured
    if logger.handlers:
        return logger

    if level is None:
        level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logger.setLevel(level)

    if log_file is None:
        log_file = settings.log_file

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger
