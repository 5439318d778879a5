"""
Configuration for the clipkeep command-line front end.

Settings are read lazily through the cached factory so that CLIPKEEP_* variables set
before a command runs are honoured.

Attributes:
    console: Shared Rich console for all command output.
    LIST_LIMIT: Rows shown by `list` and `search` unless --all is given.
"""

from rich.console import Console

from clipkeep.config import (
    DatabaseSettings,
    HistorySettings,
    LoggingSettings,
    get_settings,
)

console = Console(width=120, color_system="auto")
"""Shared console instance."""

LIST_LIMIT: int = 20


def history_settings() -> HistorySettings:
    return get_settings(HistorySettings)


def database_settings() -> DatabaseSettings:
    return get_settings(DatabaseSettings)


def logging_settings() -> LoggingSettings:
    return get_settings(LoggingSettings)
