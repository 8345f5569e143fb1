#!/usr/bin/env python3
"""
configsync Logging Module

Sets up the "configsync" logger with an optional rotating log file and
optional console output.
"""
import os
import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

from .core.constants import (
    LOG_BACKUP_COUNT,
    LOG_DATE_FORMAT,
    LOG_FORMAT,
    LOG_MAX_SIZE,
    LOGGER_NAME,
)

logger = logging.getLogger(LOGGER_NAME)
formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)

LOG_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL
}


def setup_logging(console: bool = True, log_file: Optional[str] = None,
                  log_level: str = "INFO", max_size: int = LOG_MAX_SIZE,
                  backup_count: int = LOG_BACKUP_COUNT) -> logging.Logger:
    """
    Set up logging with optional console output and file rotation

    Args:
        console (bool): Whether to output logs to the console
        log_file (str): Path to log file, or None for no file logging
        log_level (str): Level name; unknown names fall back to INFO
        max_size (int): Maximum size of log file in bytes before rotation
        backup_count (int): Number of backup files to keep

    Returns:
        The configured logger
    """
    numeric_level = LOG_LEVELS.get(str(log_level).upper(), logging.INFO)
    logger.setLevel(numeric_level)
    logger.propagate = False

    # Clear any existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # File handler with rotation
    if log_file:
        try:
            log_dir = os.path.dirname(os.path.abspath(log_file))
            os.makedirs(log_dir, exist_ok=True)

            file_handler = RotatingFileHandler(
                log_file, maxBytes=max_size, backupCount=backup_count, encoding='utf-8')
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            print(f"Error setting up file logging: {e}")

    # Console handler (optional)
    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger
