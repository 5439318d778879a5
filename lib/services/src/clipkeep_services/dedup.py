# region Docstring
"""
clipkeep_services.dedup
Deduplication of captured payloads against the persisted history.
Overview:
- A capture whose kind and payload bytes equal an existing item refreshes that item's
    capture time instead of adding a row, so the item moves back to the top of the
    history and keeps its flags and keywords.
- Any other capture is inserted as a new, unflagged item.
Contents:
- Result Models:
    - DedupOutcome: Id of the affected item and whether it was touched or inserted.
- Service Classes:
    - DeduplicationResolver:
        resolve(item) -> DedupOutcome
Design Notes:
- Lookup and write are not atomic on their own; the history store calls resolve()
    only from its single writer thread.
"""
# endregion
# region Imports
from logging import Logger

from pydantic import BaseModel

from clipkeep.models import ClipboardItem
from clipkeep.repository import ClipboardRepository

# endregion
# region Result Models


class DedupOutcome(BaseModel):
    item_id: str
    touched: bool


# endregion
# region Service Classes


class DeduplicationResolver:
    """
    Decides between refreshing an existing item and inserting a new one.
    """

    def __init__(self, repository: ClipboardRepository, logger: Logger):
        self.repository = repository
        self.logger = logger.getChild("DeduplicationResolver")

    def resolve(self, item: ClipboardItem) -> DedupOutcome:
        """
        Persist a freshly captured item, collapsing it into an equivalent one.

        Args:
            item (ClipboardItem): The captured item. Its flags and keywords are ignored;
                new items always start unpinned, not sticky, and without keywords.

        Returns:
            DedupOutcome: The id now holding the payload, and whether an existing item
                was touched.
        """
        existing = self.repository.find_by_payload(item.kind, item.payload)
        if existing is not None:
            self.repository.touch(existing, item.captured_at)
            self.logger.debug(f"Capture matched item {existing}, refreshed timestamp")
            return DedupOutcome(item_id=existing, touched=True)

        fresh = item
        if not item.is_regular or item.keywords:
            fresh = item.model_copy(
                update={"pinned": False, "sticky": False, "keywords": []}
            )
        self.repository.insert(fresh)
        return DedupOutcome(item_id=fresh.id, touched=False)


# endregion
__all__ = ["DedupOutcome", "DeduplicationResolver"]
