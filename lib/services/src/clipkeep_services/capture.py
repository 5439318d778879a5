# region Docstring
"""
clipkeep_services.capture
Entry point for clipboard changes reported by an external watcher.
Overview:
- Converts a capture notification into a ClipboardItem stamped with the injected clock
    and hands it to the write pipeline (deduplication, persistence, retention) before
    returning.
Contents:
- Models:
    - CaptureEvent: Text and/or image bytes read from the system clipboard.
- Service Classes:
    - CaptureAdapter:
        on_capture(event), capture_text(text), capture_image(data)
Design Notes:
- When a change carries both an image and text, the image wins.
- Empty text is ignored and yields no write.
"""
# endregion
# region Imports
from datetime import datetime
from logging import Logger
from typing import Callable, Optional

from pydantic import BaseModel, Field

from clipkeep.models import ClipboardItem
from clipkeep.utils import get_time

from clipkeep_services.dedup import DedupOutcome

# endregion
# region Models


class CaptureEvent(BaseModel):
    text: Optional[str] = Field(None, description="Plain text on the clipboard")
    image: Optional[bytes] = Field(None, description="Encoded bitmap on the clipboard")

    @property
    def is_empty(self) -> bool:
        return not self.image and not self.text


# endregion
# region Service Classes


class CaptureAdapter:
    """
    Builds items from capture notifications and feeds them to the write pipeline.
    """

    def __init__(
        self,
        ingest: Callable[[ClipboardItem], DedupOutcome],
        logger: Logger,
        clock: Callable[[], datetime] = get_time,
    ):
        """
        Args:
            ingest (Callable[[ClipboardItem], DedupOutcome]): Synchronous write
                pipeline, normally ClipboardStore.ingest.
            logger (Logger): Parent logger.
            clock (Callable[[], datetime]): Source of capture timestamps.
        """
        self.ingest = ingest
        self.clock = clock
        self.logger = logger.getChild("CaptureAdapter")

    def on_capture(self, event: CaptureEvent) -> Optional[DedupOutcome]:
        """
        Persist the content of one clipboard change.

        Returns:
            Optional[DedupOutcome]: None when the change carried nothing to keep.
        """
        if event.image:
            item = ClipboardItem.from_image(event.image, self.clock())
        elif event.text:
            item = ClipboardItem.from_text(event.text, self.clock())
        else:
            self.logger.debug("Ignoring empty capture")
            return None
        return self.ingest(item)

    def capture_text(self, text: str) -> Optional[DedupOutcome]:
        return self.on_capture(CaptureEvent(text=text))

    def capture_image(self, data: bytes) -> Optional[DedupOutcome]:
        return self.on_capture(CaptureEvent(image=data))


# endregion
__all__ = ["CaptureAdapter", "CaptureEvent"]
