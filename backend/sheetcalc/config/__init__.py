"""
Configuration modules for the sheetcalc backend.
"""

from .settings import Settings, get_settings
from .logging_config import setup_logging, get_logger, LoggerMixin

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "get_logger",
    "LoggerMixin",
]
