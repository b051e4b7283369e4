"""Utilities package."""

from .logger import get_app_logger, setup_logger, init_app_logger
from .timeutil import utc_now

__all__ = [
    "get_app_logger",
    "setup_logger",
    "init_app_logger",
    "utc_now",
]
