"""Tracked session model.

A session is one continuous visit by a browser instance, bounded by a
30-minute inactivity timeout. Created by the first "session" event of a
visit, mutated by ingestion as page views and interactions arrive.

DynamoDB keys:
    PK: SESSION#{session_id}
    SK: META
    GSI1PK: SESSIONS
    GSI1SK: {started_at}#{session_id}
"""

from datetime import datetime
from enum import Enum

from pydantic import Field, field_validator

from folio.models.base import BaseModel, to_iso, utc_now


class DeviceType(str, Enum):
    """Device classification derived from the user agent."""

    DESKTOP = "desktop"
    TABLET = "tablet"
    MOBILE = "mobile"


def normalize_device_type(value: str | None) -> str | None:
    """Return a known device type value, or None for anything else."""
    if not value:
        return None
    value = str(value).strip().lower()
    if value in {d.value for d in DeviceType}:
        return value
    return None


class TrackedSession(BaseModel):
    """One continuous visit.

    Invariants: page_count >= 1, max_scroll_depth in [0, 100], and
    converted is never unset once true.
    """

    session_id: str = Field(..., min_length=1, max_length=128)
    visitor_id: str | None = Field(None, max_length=128)

    # Device / client
    device_type: DeviceType | None = None
    browser: str | None = None
    browser_version: str | None = None
    os: str | None = None
    os_version: str | None = None
    screen_width: int | None = None
    screen_height: int | None = None

    # Navigation
    entry_page: str | None = None
    exit_page: str | None = None
    page_count: int = Field(default=1, ge=1)
    entry_recorded: bool = Field(
        default=False,
        description="Set once the entry page view has been ingested",
    )

    # Engagement
    event_count: int = Field(default=0, ge=0)
    duration_seconds: int = Field(default=0, ge=0)
    max_scroll_depth: int = Field(default=0, ge=0, le=100)
    click_count: int = Field(default=0, ge=0)
    rage_click_count: int = Field(default=0, ge=0)

    # Attribution (set once, at creation)
    referrer: str | None = None
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    utm_term: str | None = None
    utm_content: str | None = None

    # Conversion
    converted: bool = False
    conversion_type: str | None = None

    started_at: datetime = Field(default_factory=utc_now)
    last_activity_at: datetime = Field(default_factory=utc_now)
    ended_at: datetime | None = None

    @field_validator("device_type", mode="before")
    @classmethod
    def coerce_device_type(cls, v: str | None) -> str | None:
        """Map unknown device strings to None."""
        return normalize_device_type(v)

    def get_pk(self) -> str:
        """Get partition key: SESSION#{session_id}."""
        return f"SESSION#{self.session_id}"

    def get_sk(self) -> str:
        """Get sort key: META."""
        return "META"

    def get_gsi_keys(self) -> dict[str, str]:
        """Get GSI1 keys for time-ordered session listing."""
        return {
            "GSI1PK": "SESSIONS",
            "GSI1SK": f"{to_iso(self.started_at)}#{self.session_id}",
        }
