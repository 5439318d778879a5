"""
clipkeep.config.policy
The retention policy value threaded into the history store.

The settings surface (HistorySettings) restricts values to the user-facing ranges
(1-365 days, 10-100 items); the policy itself only requires positive values.
"""

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field

from clipkeep.constants import DEFAULT_MAX_ITEMS, DEFAULT_RETENTION_DAYS


class RetentionPolicy(BaseModel):
    """
    Immutable retention and capacity limits.

    Attributes:
        retention_days (int): Age in days after which a regular item expires.
        max_items (int): Number of regular items kept by the capacity policy.
    """

    retention_days: int = Field(
        DEFAULT_RETENTION_DAYS,
        ge=1,
        description="Days a non-sticky, non-pinned item is kept",
    )
    max_items: int = Field(
        DEFAULT_MAX_ITEMS,
        ge=1,
        description="Maximum number of regular (not pinned, not sticky) items",
    )

    model_config = ConfigDict(frozen=True)

    def cutoff(self, now: datetime) -> datetime:
        """Oldest capture time that still survives the age policy at `now`."""
        return now - timedelta(days=self.retention_days)


__all__ = ["RetentionPolicy"]
