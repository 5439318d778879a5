# region Docstring
"""
clipkeep.constants
Shared constants and enumerations for the clipboard history store.
Overview:
- Defines the item kind enumeration persisted in the `type` column.
- Provides the default and allowed ranges for the retention and capacity settings.
- Names the persisted table, its indexes, and the additive column migrations applied
    at startup.
Contents:
- Enumerations:
    - ItemKind: Kinds of captured clipboard payloads (text, image).
- Policy Defaults:
    - DEFAULT_RETENTION_DAYS, DEFAULT_MAX_ITEMS, RETENTION_DAYS_RANGE, MAX_ITEMS_RANGE.
- Persistence:
    - TABLE_NAME: Name of the history table.
    - KEYWORD_SEPARATOR: Separator of the comma-joined keyword column.
    - ADDITIVE_COLUMNS: Ordered (column, DDL) pairs added to pre-existing tables.
- Display:
    - PREVIEW_LENGTH: Characters of text shown before truncation.
    - IMAGE_DESCRIPTION_FMT: Description template for image items.
Design Notes:
- ItemKind inherits from both str and enum.Enum, allowing direct string comparison
    against raw column values.
"""
# endregion
# region Imports
import enum
from typing import List, Tuple

# endregion
# region Enumerations


class ItemKind(str, enum.Enum):
    TEXT = "text"
    IMAGE = "image"


# endregion
# region Policy Defaults
DEFAULT_RETENTION_DAYS: int = 30
DEFAULT_MAX_ITEMS: int = 30
RETENTION_DAYS_RANGE: Tuple[int, int] = (1, 365)
MAX_ITEMS_RANGE: Tuple[int, int] = (10, 100)

# endregion
# region Persistence
TABLE_NAME: str = "clipboard_items"
KEYWORD_SEPARATOR: str = ","

# Columns introduced after the first schema; absence means the documented default.
ADDITIVE_COLUMNS: List[Tuple[str, str]] = [
    ("is_pinned", "INTEGER DEFAULT 0"),
    ("is_sticky", "INTEGER DEFAULT 0"),
    ("keywords", "TEXT DEFAULT ''"),
    ("type", "TEXT DEFAULT 'text'"),
    ("image_data", "BLOB"),
]

# endregion
# region Display
PREVIEW_LENGTH: int = 100
IMAGE_DESCRIPTION_FMT: str = "Image {width}×{height}"
IMAGE_DESCRIPTION_UNKNOWN: str = "Image"
# endregion

__all__ = [
    "ADDITIVE_COLUMNS",
    "DEFAULT_MAX_ITEMS",
    "DEFAULT_RETENTION_DAYS",
    "IMAGE_DESCRIPTION_FMT",
    "IMAGE_DESCRIPTION_UNKNOWN",
    "ItemKind",
    "KEYWORD_SEPARATOR",
    "MAX_ITEMS_RANGE",
    "PREVIEW_LENGTH",
    "RETENTION_DAYS_RANGE",
    "TABLE_NAME",
]
