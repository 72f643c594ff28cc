"""
Logging infrastructure for xamlshield.

This module provides configurable logging with console and file output,
log rotation, and hierarchical logger management. Every module logs through
a child of the ``xamlshield`` logger, so configuring the root once in the
command-line entry point is enough.

Examples:
    >>> from xamlshield.utils.logger import setup_logger
    >>> logger = setup_logger("xamlshield", level="DEBUG", log_file=Path("xamlshield.log"))
    >>> logger.info("Manifest generation started")
"""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from .path_utils import ensure_directory

# Valid log levels
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Default log format strings
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
SIMPLE_FORMAT = "%(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Rotation settings for file handlers
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3


def _level_value(level: str) -> int:
    """Translate a level name to its ``logging`` constant.

    Raises:
        ValueError: If level is not a valid log level.
    """
    if level.upper() not in VALID_LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of {VALID_LOG_LEVELS}")
    return getattr(logging, level.upper())


def setup_logger(
    name: str,
    level: str = "INFO",
    log_file: Path | None = None
) -> logging.Logger:
    """
    Configure and return a logger instance.

    Creates a logger with console output and optional file output.
    Calling it again for the same name does not add duplicate handlers.

    Args:
        name: Logger name (typically "xamlshield").
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file. If provided, enables file logging.

    Returns:
        Configured logger instance.

    Raises:
        ValueError: If level is not a valid log level.

    Examples:
        >>> logger = setup_logger("xamlshield", level="DEBUG")
        >>> logger = setup_logger("xamlshield", log_file=Path("logs/run.log"))
    """
    level_value = _level_value(level)

    logger = logging.getLogger(name)
    logger.setLevel(level_value)

    has_console_handler = any(
        isinstance(h, logging.StreamHandler)
        and not isinstance(h, logging.handlers.RotatingFileHandler)
        for h in logger.handlers
    )
    has_file_handler = any(
        isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers
    )

    if has_console_handler:
        set_log_level(logger, level)
    else:
        add_console_handler(logger, level)

    if log_file is not None and not has_file_handler:
        add_file_handler(logger, log_file, level="DEBUG")

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Retrieve an existing logger or create a default one.

    If neither the logger nor any of its parents has handlers, a console
    logger at INFO level is configured on the top-level package logger,
    so that later configuration of that logger applies to every child.
    Child loggers rely on propagation for their output.

    Args:
        name: Logger name.

    Returns:
        Logger instance.

    Examples:
        >>> logger = get_logger("xamlshield.core.project_graph")
        >>> logger.info("Added project App")
    """
    logger = logging.getLogger(name)

    if logger.hasHandlers():
        return logger

    # Nothing configured up the hierarchy, fall back to a console logger
    setup_logger(name.split(".", 1)[0])
    return logger


def set_log_level(logger: logging.Logger, level: str) -> None:
    """
    Change the level of a logger and of all of its handlers.

    Args:
        logger: Logger instance to modify.
        level: New logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).

    Raises:
        ValueError: If level is not valid.
    """
    level_value = _level_value(level)
    logger.setLevel(level_value)
    for handler in logger.handlers:
        if not isinstance(handler, logging.handlers.RotatingFileHandler):
            handler.setLevel(level_value)


def add_file_handler(
    logger: logging.Logger,
    log_file: Path,
    level: str = "DEBUG"
) -> None:
    """
    Add a rotating file handler to the logger.

    Creates the log directory if it doesn't exist.

    Args:
        logger: Logger instance to modify.
        log_file: Path to log file.
        level: Logging level for the file handler.

    Raises:
        ValueError: If level is not valid.
        OSError: If the log directory cannot be created.
    """
    level_value = _level_value(level)

    ensure_directory(log_file.parent)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8"
    )
    file_handler.setLevel(level_value)
    file_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT))

    logger.addHandler(file_handler)


def add_console_handler(logger: logging.Logger, level: str = "INFO") -> None:
    """
    Add a console (stderr) handler to the logger using the simple format.

    Args:
        logger: Logger instance to modify.
        level: Logging level for the console handler.

    Raises:
        ValueError: If level is not valid.
    """
    level_value = _level_value(level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level_value)
    console_handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))

    logger.addHandler(console_handler)
