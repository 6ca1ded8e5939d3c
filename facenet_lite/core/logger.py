"""Logging for facenet-lite.

Library code only fetches loggers under the ``facenet_lite`` namespace;
handlers are installed by whoever runs the library, typically the CLI
through ``setup_logging``.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from facenet_lite.core.exceptions import ValidationError

LOGGER_NAME = "facenet_lite"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Silent until the application configures handlers
logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())


def parse_log_level(log_level: str | int) -> int:
    """Convert a level name such as ``"debug"`` to its numeric value.

    Raises:
        ValidationError: If the name is not a standard logging level.
    """
    if isinstance(log_level, int):
        return log_level
    level = logging.getLevelName(log_level.strip().upper())
    if not isinstance(level, int):
        raise ValidationError(f"Unknown log level: {log_level}")
    return level


def setup_logging(
    log_level: str | int = logging.INFO,
    log_file: Path | str | None = None,
    log_to_console: bool = True,
) -> logging.Logger:
    """Install handlers on the ``facenet_lite`` logger.

    Replaces handlers from a previous call, so repeated CLI invocations in
    one process do not duplicate output.

    Args:
        log_level: Level name or number.
        log_file: Optional path of a rotating log file (10MB x 5).
        log_to_console: Whether to log to stderr.

    Returns:
        The configured ``facenet_lite`` logger.
    """
    level = parse_log_level(log_level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    if log_to_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``facenet_lite.<name>``, or the package logger when name is empty."""
    if name:
        return logging.getLogger(f"{LOGGER_NAME}.{name}")
    return logging.getLogger(LOGGER_NAME)
