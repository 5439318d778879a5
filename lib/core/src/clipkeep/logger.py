"""
clipkeep.logger
Logging configuration for the clipkeep logger tree.

Components receive `logger` (or a child of it) and log through
`logger.getChild("<Component>")`. `setup_logging` is called once by entry points; the
library itself never configures handlers on import.
"""

import logging
from logging import Logger as T_Logger
from logging.config import dictConfig
from typing import Optional

from pythonjsonlogger.json import JsonFormatter  # type: ignore # noqa F401

from clipkeep.config import LoggingSettings, get_settings

LOGGER_NAME = "clipkeep"

logger: T_Logger = logging.getLogger(LOGGER_NAME)


def build_config(settings: LoggingSettings) -> dict:
    """dictConfig mapping for the given settings."""
    level = settings.log_level.upper()
    handlers = ["file", "console"] if settings.console else ["file"]
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
            },
            "standard": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
        },
        "handlers": {
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": str(settings.log_file),
                "maxBytes": settings.max_bytes,
                "backupCount": settings.backup_count,
                "encoding": "utf-8",
                "formatter": "json",
                "level": level,
            },
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": level,
            },
        },
        "loggers": {
            LOGGER_NAME: {
                "handlers": handlers,
                "level": level,
                "propagate": False,
            },
        },
    }


def setup_logging(settings: Optional[LoggingSettings] = None) -> T_Logger:
    """
    Configure the clipkeep logger tree: JSON lines to a rotating file, optionally a
    plain console handler.

    Args:
        settings (Optional[LoggingSettings]): DEFAULT: get_settings(LoggingSettings)

    Returns:
        Logger: The configured `clipkeep` logger.
    """
    settings = settings or get_settings(LoggingSettings)
    settings.log_file.parent.mkdir(parents=True, exist_ok=True)
    dictConfig(build_config(settings))
    system_logger = logger.getChild("SYSTEM")
    system_logger.debug(f"Logger for {LOGGER_NAME} initialized.")
    return logger


__all__ = ["LOGGER_NAME", "build_config", "logger", "setup_logging"]
