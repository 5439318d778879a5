# region Docstring
"""
clipkeep.models
Centralized imports for the Pydantic models and SQLAlchemy entities of the history store.

Contents:
- ClipboardItemEntity: SQLAlchemy entity for the `clipboard_items` table.
- ClipboardItem: Pydantic domain model for one clipboard entry.
- Keyword helpers: normalize_keywords, parse_keywords, join_keywords.

Exports:
- entities: SQLAlchemy entity class names for database operations
- models: Pydantic model class names for application logic
- __all__: Combined export list
"""
# endregion
# region Imports
from .clipboard_item import (  # noqa: F401
    ClipboardItem,
    ClipboardItemEntity,
    join_keywords,
    normalize_keywords,
    parse_keywords,
)

# endregion

entities = ["ClipboardItemEntity"]
"""
Entity classes for database persistence.
"""

models = ["ClipboardItem"]
"""
Pydantic model classes for application logic and I/O.
"""

__all__ = entities + models + ["join_keywords", "normalize_keywords", "parse_keywords"]
