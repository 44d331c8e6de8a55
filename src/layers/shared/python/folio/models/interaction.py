"""Interaction event model for heatmaps and scroll tracking.

One raw behavioral signal (click, mouse move, scroll, rage click).
Immutable once written.

DynamoDB keys:
    PK: PAGE#{page_path}
    SK: EVENT#{event_type}#{created_at}#{id}
    GSI1PK: EVENTS
    GSI1SK: {created_at}#{id}
"""

from enum import Enum

from pydantic import Field, field_validator

from folio.models.base import BaseModel, to_iso
from folio.models.session import DeviceType, normalize_device_type

MAX_ELEMENT_TEXT_LENGTH = 100


class EventType(str, Enum):
    """Interaction event types."""

    CLICK = "click"
    MOVE = "move"
    SCROLL = "scroll"
    RAGE_CLICK = "rage_click"


class InteractionEvent(BaseModel):
    """Raw interaction signal captured in the browser."""

    session_id: str = Field(..., min_length=1)
    page_path: str = Field(..., min_length=1)
    event_type: EventType

    # Pointer position in document pixels
    x: float | None = None
    y: float | None = None

    viewport_width: int | None = None
    viewport_height: int | None = None
    page_height: int | None = None
    scroll_depth: int | None = Field(None, ge=0, le=100)

    # Target element descriptor
    element_tag: str | None = None
    element_id: str | None = None
    element_class: str | None = None
    element_text: str | None = None

    device_type: DeviceType | None = None

    @field_validator("device_type", mode="before")
    @classmethod
    def coerce_device_type(cls, v: str | None) -> str | None:
        """Map unknown device strings to None."""
        return normalize_device_type(v)

    @field_validator("element_text")
    @classmethod
    def truncate_text(cls, v: str | None) -> str | None:
        """Keep only a short snippet of the element text."""
        if v is None:
            return v
        return v[:MAX_ELEMENT_TEXT_LENGTH]

    def get_pk(self) -> str:
        """Get partition key: PAGE#{page_path}."""
        return f"PAGE#{self.page_path}"

    def get_sk(self) -> str:
        """Get sort key: EVENT#{event_type}#{created_at}#{id}."""
        return f"EVENT#{self.event_type}#{to_iso(self.created_at)}#{self.id}"

    def get_gsi_keys(self) -> dict[str, str]:
        """Get GSI1 keys for the recent-events feed."""
        return {
            "GSI1PK": "EVENTS",
            "GSI1SK": f"{to_iso(self.created_at)}#{self.id}",
        }
