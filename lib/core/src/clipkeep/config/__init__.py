"""
clipkeep.config
Configuration and settings management for the clipboard history store.
Overview:
- Provides Pydantic-based settings classes for the history policy, the SQLite database,
    and logging.
- Each settings class inherits from FactoryBaseSettings and supports environment variable
    overrides via Field aliases, .env files, and YAML settings files.
Contents:
- Settings Classes:
    - HistorySettings:
        Retention window in days (1-365) and maximum regular-item capacity (10-100).
        The .policy property converts them into the RetentionPolicy value threaded
        into the history store.
    - DatabaseSettings:
        SQLite database path, busy timeout, and bounded lock-retry budget. Exposes a
        .database_url property for SQLAlchemy.
    - LoggingSettings:
        Log level, JSON log file path, and rotation thresholds.
- Functions:
    - get_settings: Cached settings factory (re-exported from factory).
    - save_history_settings: Persist a RetentionPolicy into the YAML settings file.
Design Notes:
- Defaults are provided for all fields enabling zero-configuration startup.
- The YAML settings file is flat and shared by every settings class; unknown keys are
    ignored by each class.
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field

from clipkeep.config.base import APP_HOME, AppEnv
from clipkeep.config.factory import FactoryBaseSettings
from clipkeep.config.factory import get_settings  # noqa: F401  This is used externally
from clipkeep.config.policy import RetentionPolicy
from clipkeep.constants import (
    DEFAULT_MAX_ITEMS,
    DEFAULT_RETENTION_DAYS,
    MAX_ITEMS_RANGE,
    RETENTION_DAYS_RANGE,
)


class HistorySettings(FactoryBaseSettings):
    """
    Retention and capacity settings for the clipboard history.
    """

    retention_days: int = Field(
        default=DEFAULT_RETENTION_DAYS,
        ge=RETENTION_DAYS_RANGE[0],
        le=RETENTION_DAYS_RANGE[1],
        alias="CLIPKEEP_RETENTION_DAYS",
        description="Days a non-sticky item is kept. [Default: 30]",
    )
    max_items: int = Field(
        default=DEFAULT_MAX_ITEMS,
        ge=MAX_ITEMS_RANGE[0],
        le=MAX_ITEMS_RANGE[1],
        alias="CLIPKEEP_MAX_ITEMS",
        description="Maximum number of regular (not pinned, not sticky) items. [Default: 30]",
    )

    @property
    def policy(self) -> RetentionPolicy:
        """RetentionPolicy built from these settings."""
        return RetentionPolicy(
            retention_days=self.retention_days, max_items=self.max_items
        )


class DatabaseSettings(FactoryBaseSettings):
    """
    SQLite database configuration settings.
    """

    db_path: Path = Field(
        default=APP_HOME / "clipboard.db",
        alias="CLIPKEEP_DB_PATH",
        description="Path to the SQLite database file.",
    )
    busy_timeout: float = Field(
        default=5.0,
        alias="CLIPKEEP_DB_BUSY_TIMEOUT",
        description="Seconds SQLite waits on a locked database before giving up.",
    )
    lock_retry_attempts: int = Field(
        default=3,
        ge=0,
        alias="CLIPKEEP_DB_LOCK_RETRIES",
        description="Extra attempts for a statement that hit a locked database.",
    )
    lock_retry_delay: float = Field(
        default=0.1,
        ge=0,
        alias="CLIPKEEP_DB_LOCK_RETRY_DELAY",
        description="Seconds between lock retries.",
    )
    echo: bool = Field(
        default=False,
        alias="CLIPKEEP_DB_ECHO",
        description="Echo SQL statements through the sqlalchemy logger.",
    )

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL for the configured database file."""
        return f"sqlite:///{Path(self.db_path).expanduser().as_posix()}"


class LoggingSettings(FactoryBaseSettings):
    """
    Logging configuration settings.
    """

    log_level: str = Field(
        default="info",
        alias="CLIPKEEP_LOG_LEVEL",
        description="Log level for the clipkeep logger tree.",
    )
    log_file: Path = Field(
        default=APP_HOME / "logs" / "clipkeep.jsonl",
        alias="CLIPKEEP_LOG_FILE",
        description="JSON lines log file.",
    )
    max_bytes: int = Field(
        default=10_000_000,
        alias="CLIPKEEP_LOG_MAX_BYTES",
        description="Size at which the log file is rotated. [Default: 10 MB]",
    )
    backup_count: int = Field(
        default=1,
        alias="CLIPKEEP_LOG_BACKUPS",
        description="Number of rotated log files kept.",
    )
    console: bool = Field(
        default=False,
        alias="CLIPKEEP_LOG_CONSOLE",
        description="Also log to stderr.",
    )


def save_history_settings(
    policy: RetentionPolicy, path: Optional[Path] = None
) -> Path:
    """
    Persist a retention policy into the YAML settings file.

    Existing keys in the file are kept; retention_days and max_items are replaced.
    The cached HistorySettings instance is dropped so the next get_settings call
    reads the new values.

    Args:
        policy (RetentionPolicy): The policy to persist.
        path (Optional[Path]): Target file. DEFAULT: <home>/config.yaml

    Returns:
        Path: The file written.
    """
    path = path or AppEnv.settings_files()[0]
    data: dict = {}
    if path.exists():
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    data.update(policy.model_dump())
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, sort_keys=True), encoding="utf-8")
    get_settings.cache_clear()
    return path


__all__ = [
    "DatabaseSettings",
    "HistorySettings",
    "LoggingSettings",
    "RetentionPolicy",
    "get_settings",
    "save_history_settings",
]
