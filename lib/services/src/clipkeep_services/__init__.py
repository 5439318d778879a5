"""
clipkeep_services
Services built on the clipkeep core: retention, deduplication, capture, search, and the
single-writer history store that ties them together.
"""

from .capture import CaptureAdapter, CaptureEvent  # noqa: F401
from .dedup import DedupOutcome, DeduplicationResolver  # noqa: F401
from .history import ClipboardStore, StoreState  # noqa: F401
from .retention import RetentionEngine, SweepResult  # noqa: F401
from .search import search_items  # noqa: F401

__all__ = [
    "CaptureAdapter",
    "CaptureEvent",
    "ClipboardStore",
    "DedupOutcome",
    "DeduplicationResolver",
    "RetentionEngine",
    "StoreState",
    "SweepResult",
    "search_items",
]
