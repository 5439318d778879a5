# region Docstring
"""
clipkeep_services.retention
Retention and eviction engine for the clipboard history.
Overview:
- Applies the age policy (regular items older than retention_days are deleted) and the
    capacity policy (only the max_items most recent regular items are kept).
- Loads the surviving items in presentation order.
Contents:
- Result Models:
    - SweepResult: Number of rows removed by each policy during one sweep.
- Service Classes:
    - RetentionEngine:
        cutoff(now), sweep(now), load(now), with_policy(policy).
Design Notes:
- Pinned and sticky items are never deleted by either policy and do not count against
    max_items.
- The engine holds no mutable state besides its policy reference; the history store
    replaces it through with_policy() on its writer thread.
"""
# endregion
# region Imports
import copy
from datetime import datetime
from logging import Logger

from pydantic import BaseModel

from clipkeep.config import RetentionPolicy
from clipkeep.models import ClipboardItem
from clipkeep.repository import ClipboardRepository

# endregion
# region Result Models


class SweepResult(BaseModel):
    expired: int = 0
    evicted: int = 0

    @property
    def total(self) -> int:
        return self.expired + self.evicted


# endregion
# region Service Classes


class RetentionEngine:
    """
    Decides which items survive a write or a settings change.
    """

    def __init__(
        self, repository: ClipboardRepository, policy: RetentionPolicy, logger: Logger
    ):
        self.repository = repository
        self.policy = policy
        self.logger = logger.getChild("RetentionEngine")

    def cutoff(self, now: datetime) -> datetime:
        return self.policy.cutoff(now)

    def sweep(self, now: datetime) -> SweepResult:
        """
        Delete expired regular items, then regular items beyond capacity.

        Args:
            now (datetime): Reference time for the age policy.

        Returns:
            SweepResult: Rows removed by the age and capacity policies.
        """
        result = SweepResult(
            expired=self.repository.delete_expired(self.cutoff(now)),
            evicted=self.repository.delete_beyond_capacity(self.policy.max_items),
        )
        if result.total:
            self.logger.info(
                f"Sweep removed {result.expired} expired and {result.evicted} "
                f"over-capacity items"
            )
        return result

    def load(self, now: datetime) -> list[ClipboardItem]:
        """Surviving items at `now`, pinned first, then by descending capture time."""
        return self.repository.load_ordered(self.cutoff(now), self.policy.max_items)

    def with_policy(self, policy: RetentionPolicy) -> "RetentionEngine":
        """Engine sharing this repository and logger, applying `policy`."""
        engine = copy.copy(self)
        engine.policy = policy
        return engine


# endregion
__all__ = ["RetentionEngine", "SweepResult"]
