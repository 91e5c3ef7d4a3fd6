"""
Logging configuration for fieldbook.

Every module logs through ``logging.getLogger(__name__)``; this module only
attaches handlers and a level to the package logger.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List

from .configuration import LoggingConfig

PACKAGE_LOGGER = "fieldbook"

_installed: List[logging.Handler] = []


def configure_logging(config: LoggingConfig, logger_name: str = PACKAGE_LOGGER) -> logging.Logger:
    """
    Configure logging for the package.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        config: Level, format and optional rotating file settings
        logger_name: Logger to configure (the package logger by default)

    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)
    for handler in _installed:
        logger.removeHandler(handler)
        handler.close()
    _installed.clear()

    formatter = logging.Formatter(config.format, datefmt="%Y-%m-%d %H:%M:%S")

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    _installed.append(stream_handler)

    if config.file_path:
        Path(config.file_path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            config.file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
        )
        file_handler.setFormatter(formatter)
        _installed.append(file_handler)

    for handler in _installed:
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, config.level.upper()))
    return logger


__all__ = ["configure_logging", "PACKAGE_LOGGER"]
