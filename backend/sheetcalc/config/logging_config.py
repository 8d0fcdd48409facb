"""
Logging configuration for the sheetcalc backend.

Engine and history events go through structlog as key-value pairs
(cell, outcome, refreshed, cursor) and the stdlib handlers configured
here decide where they end up.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Dict

import structlog
from structlog.stdlib import LoggerFactory

from .settings import Settings, get_settings

# One bound logger per module or class name
_loggers: Dict[str, structlog.stdlib.BoundLogger] = {}


def setup_logging(settings: Settings = None) -> None:
    """Setup application logging configuration."""
    settings = settings or get_settings()
    level = getattr(logging, settings.LOG_LEVEL)

    # JSON lines in production, coloured console output while developing
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer(colors=True)
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # create_app can run several times in one process (the test suite does)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    if settings.is_development:
        console_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
    else:
        console_formatter = logging.Formatter(settings.LOG_FORMAT)

    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    # Optional file sink, size-rotated unless LOG_ROTATION is off
    if settings.LOG_FILE:
        log_file_path = Path(settings.LOG_FILE)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        if settings.LOG_ROTATION:
            file_handler = logging.handlers.RotatingFileHandler(
                settings.LOG_FILE,
                maxBytes=_parse_size(settings.LOG_MAX_SIZE),
                backupCount=settings.LOG_BACKUP_COUNT,
                encoding='utf-8'
            )
        else:
            file_handler = logging.FileHandler(
                settings.LOG_FILE,
                encoding='utf-8'
            )

        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(settings.LOG_FORMAT))
        root_logger.addHandler(file_handler)

    _configure_specific_loggers(settings)

    logger = get_logger(__name__)
    logger.info(
        "Logging configured",
        level=settings.LOG_LEVEL,
        debug_mode=settings.is_development,
        log_file=settings.LOG_FILE
    )


def _configure_specific_loggers(settings: Settings) -> None:
    """Quiet the web stack; engine and model loggers follow LOG_LEVEL."""
    logging.getLogger("fastapi").setLevel(logging.INFO)

    # Per-request access lines only while developing
    uvicorn_access_logger = logging.getLogger("uvicorn.access")
    uvicorn_access_logger.setLevel(
        logging.INFO if settings.is_development else logging.WARNING)

    logging.getLogger("uvicorn.error").setLevel(logging.INFO)

    for logger_name in ("sheetcalc.engine", "sheetcalc.models"):
        logging.getLogger(logger_name).setLevel(
            getattr(logging, settings.LOG_LEVEL))


def _parse_size(size_str: str) -> int:
    """Parse LOG_MAX_SIZE (e.g. '10MB') to bytes; falls back to 10MB."""
    size_str = size_str.upper().strip()

    # 'MB' must be tried before 'B'
    multipliers = {
        'GB': 1024**3,
        'MB': 1024**2,
        'KB': 1024,
        'B': 1,
    }

    for suffix, multiplier in multipliers.items():
        if size_str.endswith(suffix):
            number = size_str[:-len(suffix)]
            try:
                return int(float(number) * multiplier)
            except ValueError:
                break

    try:
        return int(size_str)
    except ValueError:
        return 10 * 1024 * 1024


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance."""
    if name not in _loggers:
        _loggers[name] = structlog.get_logger(name)
    return _loggers[name]


class LoggerMixin:
    """Gives models such as CommandHistory a ``self.logger`` named after the class."""

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        return get_logger(self.__class__.__module__ + "." + self.__class__.__name__)
