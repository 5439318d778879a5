# region Docstring
"""
clipkeep.errors
Exception hierarchy raised by the clipboard history store.
Overview:
- Every error raised by the persistence layer and the history store derives from
    ClipboardStoreError so callers can catch the whole family at once.
Contents:
- ClipboardStoreError: Root of the hierarchy.
- StorageUnavailable: The database file (or its directory) cannot be opened or created.
- QueryFailure: A single statement failed; the store stays usable.
- LockContention: Bounded lock retry exhausted while the database was busy.
- MigrationNoop: An additive column or index already exists.
- ItemNotFound: A touch or update referenced an unknown item id.
- StoreNotReady: The store was used before open() or after close().
Design notes:
- MigrationNoop is expected steady-state behaviour and is never surfaced to callers;
    the repository raises and catches it internally.
"""
# endregion


class ClipboardStoreError(Exception):
    """Base exception for clipboard history store errors."""

    pass


class StorageUnavailable(ClipboardStoreError):
    """Raised when the persistent store cannot be opened or created."""

    pass


class QueryFailure(ClipboardStoreError):
    """Raised when a single statement fails."""

    pass


class LockContention(QueryFailure):
    """Raised when the database stays locked past the retry budget."""

    pass


class MigrationNoop(ClipboardStoreError):
    """Raised when an additive column or index already exists."""

    pass


class ItemNotFound(ClipboardStoreError):
    """Raised when an operation references an unknown item id."""

    def __init__(self, item_id: str):
        super().__init__(f"Clipboard item not found: {item_id}")
        self.item_id = item_id


class StoreNotReady(ClipboardStoreError):
    """Raised when the store is used outside of its READY state."""

    pass


__all__ = [
    "ClipboardStoreError",
    "ItemNotFound",
    "LockContention",
    "MigrationNoop",
    "QueryFailure",
    "StorageUnavailable",
    "StoreNotReady",
]
