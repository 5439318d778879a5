# region Docstring
"""
clipkeep.models.clipboard_item
Persistence and domain models for captured clipboard entries.
Overview:
- Provides the SQLAlchemy entity persisting one clipboard entry per row of the
    `clipboard_items` table, together with its policy flags and keywords.
- Provides the Pydantic model mirroring the persisted entity for validation, display
    helpers, and search matching.
Contents:
- SQLAlchemy entities:
    - ClipboardItemEntity:
        Stores the item id (UUID string), kind, text content (or image description),
        optional image blob, capture timestamp (epoch seconds), pinned/sticky flags, and
        the comma-joined keyword list. Converts to a ClipboardItem through the .model
        property. Nullable policy columns exist because they are added to older
        databases with ALTER TABLE; NULL reads as the documented default.
- Pydantic models:
    - ClipboardItem:
        Frozen domain model for one clipboard entry. Validates the kind/payload pairing
        and normalises keywords. Provides preview, payload, search matching, and
        relative-age helpers, plus from_text/from_image constructors used at capture.
- Functions:
    - normalize_keywords: Strip, drop empties, and drop duplicates (first wins).
    - parse_keywords / join_keywords: Convert to and from the persisted column.
Design notes:
- Two items are equivalent for deduplication when their kinds match and their payload
    bytes (UTF-8 text or image blob) are equal; see ClipboardItem.payload.
- Ids are kept exactly as stored; older databases may hold upper-case UUIDs.
"""
# endregion
# region Imports
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from sqlalchemy import Boolean, Float, Index, LargeBinary, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from clipkeep.constants import (
    KEYWORD_SEPARATOR,
    PREVIEW_LENGTH,
    TABLE_NAME,
    ItemKind,
)
from clipkeep.database import Base
from clipkeep.utils import describe_image, from_epoch, get_time, time_ago, to_epoch


# endregion
# region Keyword Helpers


def normalize_keywords(keywords: Iterable[str]) -> list[str]:
    """
    Normalise a keyword list into an ordered set.

    Surrounding whitespace is stripped, empty labels are dropped, and later duplicates
    (compared case-sensitively) are dropped.

    Raises:
        ValueError: If a keyword contains the persisted separator.

    Example:
        >>> normalize_keywords([" work", "Work", "work", ""])
        ['work', 'Work']
    """
    result: list[str] = []
    for keyword in keywords:
        keyword = keyword.strip()
        if not keyword:
            continue
        if KEYWORD_SEPARATOR in keyword:
            raise ValueError(
                f"Keyword {keyword!r} must not contain {KEYWORD_SEPARATOR!r}"
            )
        if keyword not in result:
            result.append(keyword)
    return result


def parse_keywords(value: Optional[str]) -> list[str]:
    """Split the persisted keyword column. NULL and '' mean no keywords."""
    if not value:
        return []
    return [k for k in value.split(KEYWORD_SEPARATOR) if k]


def join_keywords(keywords: Iterable[str]) -> str:
    """Join keywords into the persisted column value."""
    return KEYWORD_SEPARATOR.join(keywords)


# endregion
# region SQLAlchemy Model
class ClipboardItemEntity(Base):
    """
    Model representing a captured clipboard entry.
    Attributes:
        id (str): Primary key, UUID string assigned at capture.
        type (Optional[str]): Kind of the entry ('text' or 'image').
        content (str): Text payload, or the image description for images.
        image_data (Optional[bytes]): Encoded bitmap for image entries.
        timestamp (float): Capture time in epoch seconds.
        is_pinned (Optional[bool]): Whether the entry is pinned.
        is_sticky (Optional[bool]): Whether the entry is exempt from age expiry.
        keywords (Optional[str]): Comma-joined keyword list.
    """

    __tablename__ = TABLE_NAME

    id: Mapped[str] = mapped_column(String, primary_key=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[float] = mapped_column(Float, nullable=False)
    is_pinned: Mapped[Optional[bool]] = mapped_column(
        Boolean(create_constraint=False), default=False, server_default=text("0")
    )
    is_sticky: Mapped[Optional[bool]] = mapped_column(
        Boolean(create_constraint=False), default=False, server_default=text("0")
    )
    keywords: Mapped[Optional[str]] = mapped_column(
        Text, default="", server_default=text("''")
    )
    type: Mapped[Optional[str]] = mapped_column(
        String, default=ItemKind.TEXT.value, server_default=text("'text'")
    )
    image_data: Mapped[Optional[bytes]] = mapped_column(LargeBinary, nullable=True)

    def __repr__(self) -> str:
        return f"<ClipboardItem(id={self.id}, type='{self.type}', timestamp={self.timestamp})>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ClipboardItemEntity):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def model(self) -> "ClipboardItem":
        """
        Convert the row into a ClipboardItem.

        Raises:
            pydantic.ValidationError: If the row holds an unparseable id or kind, or
                a kind/payload mismatch.
        """
        return ClipboardItem(
            id=self.id,
            kind=self.type or ItemKind.TEXT.value,
            content=self.content,
            image_data=self.image_data,
            captured_at=from_epoch(self.timestamp),
            pinned=bool(self.is_pinned),
            sticky=bool(self.is_sticky),
            keywords=parse_keywords(self.keywords),
        )


_columns = ClipboardItemEntity.__table__.c
Index("idx_timestamp", _columns.timestamp.desc())
Index("idx_pinned", _columns.is_pinned.desc(), _columns.timestamp.desc())


# endregion
# region Pydantic Model
class ClipboardItem(BaseModel):
    """
    Domain model for one captured clipboard entry.

    Attributes:
        id (str): Opaque unique identifier, never reused.
        kind (ItemKind): Text or image.
        content (str): Verbatim text, or the description of an image.
        image_data (Optional[bytes]): Encoded bitmap for images, None for text.
        captured_at (datetime): Time of the latest capture of this payload.
        pinned (bool): Always kept, always listed first.
        sticky (bool): Never expired by age.
        keywords (list[str]): Ordered, case-sensitive set of labels.
    """

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Unique identifier of the clipboard entry",
    )
    kind: ItemKind = Field(ItemKind.TEXT, description="Kind of the entry")
    content: str = Field(
        ..., description="Text payload, or the description of an image"
    )
    image_data: Optional[bytes] = Field(
        None, description="Encoded bitmap for image entries"
    )
    captured_at: datetime = Field(
        default_factory=get_time, description="Latest capture time (UTC)"
    )
    pinned: bool = Field(False, description="Pinned entries are never evicted")
    sticky: bool = Field(False, description="Sticky entries never expire by age")
    keywords: list[str] = Field(
        default_factory=list, description="Free-text labels, insertion ordered"
    )

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "examples": [
                {
                    "id": "0b8f3c1e-8d5e-4c52-9f0e-2a4b6f1c9d10",
                    "kind": "text",
                    "content": "Sample clipboard text",
                    "image_data": None,
                    "captured_at": "2024-01-01T12:00:00Z",
                    "pinned": True,
                    "sticky": False,
                    "keywords": ["work", "snippet"],
                }
            ]
        },
    )

    @field_validator("id")
    def validate_id(cls, v: str) -> str:
        uuid.UUID(v)
        return v

    @field_validator("captured_at")
    def validate_captured_at(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @field_validator("keywords", mode="before")
    def validate_keywords(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return parse_keywords(v)
        return normalize_keywords(v)

    @model_validator(mode="after")
    def validate_payload(self) -> "ClipboardItem":
        if self.kind == ItemKind.IMAGE and self.image_data is None:
            raise ValueError("image entries require image_data")
        if self.kind == ItemKind.TEXT and self.image_data is not None:
            raise ValueError("text entries must not carry image_data")
        return self

    # region Constructors
    @classmethod
    def from_text(
        cls, content: str, captured_at: Optional[datetime] = None
    ) -> "ClipboardItem":
        """New, unflagged text entry."""
        return cls(
            kind=ItemKind.TEXT,
            content=content,
            captured_at=captured_at or get_time(),
        )

    @classmethod
    def from_image(
        cls, data: bytes, captured_at: Optional[datetime] = None
    ) -> "ClipboardItem":
        """New, unflagged image entry described by its pixel dimensions."""
        return cls(
            kind=ItemKind.IMAGE,
            content=describe_image(data),
            image_data=bytes(data),
            captured_at=captured_at or get_time(),
        )

    # endregion

    @property
    def payload(self) -> bytes:
        """Bytes compared by deduplication."""
        if self.kind == ItemKind.IMAGE:
            return self.image_data
        return self.content.encode("utf-8")

    @property
    def is_regular(self) -> bool:
        """Neither pinned nor sticky; subject to both retention policies."""
        return not (self.pinned or self.sticky)

    @property
    def preview(self) -> str:
        if self.kind == ItemKind.TEXT and len(self.content) > PREVIEW_LENGTH:
            return self.content[:PREVIEW_LENGTH] + "..."
        return self.content

    def matches(self, query: str) -> bool:
        """
        Case-insensitive containment of `query` in the content or any keyword.

        An empty query matches every item.
        """
        if not query:
            return True
        needle = query.lower()
        if needle in self.content.lower():
            return True
        return any(needle in keyword.lower() for keyword in self.keywords)

    def with_keyword(self, keyword: str) -> list[str]:
        """Keyword list with `keyword` appended unless empty or already present."""
        return normalize_keywords([*self.keywords, keyword])

    def time_ago(self, now: Optional[datetime] = None) -> str:
        return time_ago(self.captured_at, now)

    @property
    def entity(self) -> ClipboardItemEntity:
        return ClipboardItemEntity(
            id=self.id,
            type=self.kind.value,
            content=self.content,
            image_data=self.image_data,
            timestamp=to_epoch(self.captured_at),
            is_pinned=self.pinned,
            is_sticky=self.sticky,
            keywords=join_keywords(self.keywords),
        )


# endregion

__all__ = [
    "ClipboardItem",
    "ClipboardItemEntity",
    "join_keywords",
    "normalize_keywords",
    "parse_keywords",
]
