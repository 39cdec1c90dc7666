"""
Logging configuration for the pipeline.

Provides a package-level logger with console output and an optional file
handler. Modules ask for a child logger through :func:`get_logger`.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ROOT_NAME = "teamtrack"


def setup_logger(
    name: str = ROOT_NAME,
    level: str = "INFO",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Set up and return a configured logger instance.

    Calling it again for the same name only adjusts the level, so handlers
    are never duplicated.

    Args:
        name: Logger name (default: "teamtrack").
        level: Level name, e.g. "DEBUG" or "INFO".
        log_file: Optional file that receives the same records as the console.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name)
    resolved = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(resolved)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(resolved)
        return logger

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(resolved)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(resolved)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(module_name: str) -> logging.Logger:
    """
    Get a logger for a specific module (e.g. "segmentation" -> "teamtrack.segmentation").

    Child loggers carry no handlers of their own; records propagate to the
    package logger configured by :func:`setup_logger`.
    """
    return logging.getLogger(f"{ROOT_NAME}.{module_name}")
