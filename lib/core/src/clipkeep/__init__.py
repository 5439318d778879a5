"""
clipkeep core package.

This package contains the item model, configuration, errors, logging, and the SQLite
persistence layer of the clipboard history store.

It leverages Pydantic for models and settings management (environment variables and
YAML files) and SQLAlchemy for persistence.
"""

from . import constants  # noqa: F401
from .config import (  # noqa: F401
    DatabaseSettings,
    HistorySettings,
    LoggingSettings,
    RetentionPolicy,
    get_settings,
)
from .constants import ItemKind  # noqa: F401
from .errors import (  # noqa: F401
    ClipboardStoreError,
    ItemNotFound,
    LockContention,
    QueryFailure,
    StorageUnavailable,
    StoreNotReady,
)
