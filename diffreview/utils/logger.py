"""Logging utility.

One application logger named ``diffreview`` owns the handlers. Components log
through child loggers (``diffreview.store``, ``diffreview.api``, ...) that
propagate to it, so the source of every record shows up in ``%(name)s``.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional


APP_LOGGER_NAME = "diffreview"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logger(
    name: str,
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5
) -> logging.Logger:
    """
    Set up a logger with console and optional rotating file output.

    Args:
        name: Logger name
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        max_bytes: Size at which the log file is rotated (0 disables rotation)
        backup_count: Number of rotated files kept

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    level = getattr(logging, log_level.upper(), logging.INFO)
    logger.setLevel(level)

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


# Application logger instance
app_logger: Optional[logging.Logger] = None


def init_app_logger(settings) -> logging.Logger:
    """
    Initialize the application logger with settings.

    Args:
        settings: Application settings instance

    Returns:
        Configured application logger
    """
    global app_logger

    app_logger = setup_logger(
        name=APP_LOGGER_NAME,
        log_level=settings.log_level,
        log_file=settings.log_file,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count
    )

    return app_logger


def get_app_logger(component: Optional[str] = None) -> logging.Logger:
    """
    Get the application logger, or a child of it for one component.

    Args:
        component: Optional component name, e.g. "store" or "api"

    Returns:
        Application logger instance
    """
    logger = app_logger if app_logger is not None else setup_logger(APP_LOGGER_NAME)
    return logger.getChild(component) if component else logger
