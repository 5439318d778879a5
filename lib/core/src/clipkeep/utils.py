from datetime import datetime, timezone
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

from clipkeep.constants import IMAGE_DESCRIPTION_FMT, IMAGE_DESCRIPTION_UNKNOWN


# region Time Utilities


def get_time() -> datetime:
    """
    Current wall clock time as a timezone-aware UTC datetime.

    Returns:
        datetime: The current time in UTC.
    """
    return datetime.now(timezone.utc)


def to_epoch(value: datetime) -> float:
    """
    Convert a datetime into epoch seconds as stored in the `timestamp` column.

    Naive datetimes are interpreted as UTC.

    Args:
        value (datetime): The datetime to convert.

    Returns:
        float: Seconds since the Unix epoch.

    Example:
        >>> to_epoch(datetime(1970, 1, 2, tzinfo=timezone.utc))
        86400.0
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def from_epoch(value: float) -> datetime:
    """
    Convert epoch seconds read from the `timestamp` column into a UTC datetime.

    Args:
        value (float): Seconds since the Unix epoch.

    Returns:
        datetime: The matching timezone-aware UTC datetime.
    """
    return datetime.fromtimestamp(float(value), tz=timezone.utc)


def time_ago(value: datetime, now: Optional[datetime] = None) -> str:
    """
    Abbreviated relative age of a timestamp.

    Args:
        value (datetime): The past timestamp.
        now (Optional[datetime]): Reference time. DEFAULT: get_time()

    Returns:
        str: A label such as "just now", "5m ago", "3h ago" or "12d ago".

    Example:
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> time_ago(t, t.replace(hour=3))
        '3h ago'
    """
    now = now or get_time()
    seconds = int((now - value).total_seconds())
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"


# endregion
# region Image Utilities


def describe_image(data: bytes) -> str:
    """
    Human-readable description of an encoded bitmap, used as its text payload.

    Args:
        data (bytes): Raw encoded image bytes (PNG, TIFF, ...).

    Returns:
        str: "Image {width}×{height}", or "Image" when the bytes cannot be decoded.

    Example:
        >>> describe_image(png_bytes_of_a_3x2_image)
        'Image 3×2'
    """
    try:
        with Image.open(BytesIO(data)) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError, ValueError):
        return IMAGE_DESCRIPTION_UNKNOWN
    return IMAGE_DESCRIPTION_FMT.format(width=width, height=height)


# endregion

__all__ = ["describe_image", "from_epoch", "get_time", "time_ago", "to_epoch"]
