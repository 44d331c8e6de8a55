"""Tracking event ingestion.

Accepts a batch of heterogeneous events from the capture client,
partitions it by type and persists each partition independently. A
failure in one partition is logged and reported but never blocks or rolls
back the others.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from folio.models.base import utc_now
from folio.models.interaction import EventType, InteractionEvent
from folio.models.page_view import PageView
from folio.models.session import TrackedSession
from folio.repositories.interaction import InteractionRepository
from folio.repositories.page_view import PageViewRepository
from folio.repositories.session import SessionRepository

logger = structlog.get_logger()

SESSIONS = "sessions"
PAGE_VIEWS = "pageviews"
EVENTS = "events"

# Wire field names sent by the capture client
_SESSION_FIELDS = {
    "sessionId": "session_id",
    "visitorId": "visitor_id",
    "deviceType": "device_type",
    "browser": "browser",
    "browserVersion": "browser_version",
    "os": "os",
    "osVersion": "os_version",
    "screenWidth": "screen_width",
    "screenHeight": "screen_height",
    "entryPage": "entry_page",
    "referrer": "referrer",
    "utm_source": "utm_source",
    "utm_medium": "utm_medium",
    "utm_campaign": "utm_campaign",
    "utm_term": "utm_term",
    "utm_content": "utm_content",
}

_PAGE_VIEW_FIELDS = {
    "sessionId": "session_id",
    "pagePath": "page_path",
    "title": "title",
    "referrer": "referrer",
}

_EVENT_FIELDS = {
    "sessionId": "session_id",
    "pagePath": "page_path",
    "eventType": "event_type",
    "x": "x",
    "y": "y",
    "viewportWidth": "viewport_width",
    "viewportHeight": "viewport_height",
    "pageHeight": "page_height",
    "scrollDepth": "scroll_depth",
    "elementTag": "element_tag",
    "elementId": "element_id",
    "elementClass": "element_class",
    "elementText": "element_text",
    "deviceType": "device_type",
}


def _map_fields(data: dict[str, Any], mapping: dict[str, str]) -> dict[str, Any]:
    """Rename wire fields to model fields, dropping empty values."""
    result: dict[str, Any] = {}
    for wire_name, field_name in mapping.items():
        value = data.get(wire_name, data.get(field_name))
        if value is None or value == "":
            continue
        result[field_name] = value
    return result


@dataclass
class PartitionOutcome:
    """Outcome of persisting one partition of a batch."""

    received: int = 0
    written: int = 0
    rejected: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class IngestionResult:
    """Per-partition outcome of one ingested batch."""

    processed: int
    partitions: dict[str, PartitionOutcome] = field(default_factory=dict)
    ignored: int = 0

    @property
    def failed_partitions(self) -> list[str]:
        return [name for name, outcome in self.partitions.items() if not outcome.ok]


@dataclass
class _SessionActivity:
    page_views: int = 0
    exit_page: str | None = None
    clicks: int = 0
    rage_clicks: int = 0
    events: int = 0
    max_scroll_depth: int | None = None


class IngestionService:
    """Persists batches of tracking events."""

    def __init__(
        self,
        sessions: SessionRepository,
        page_views: PageViewRepository,
        interactions: InteractionRepository,
    ):
        self.sessions = sessions
        self.page_views = page_views
        self.interactions = interactions

    def ingest(self, events: list[dict[str, Any]], received_at: datetime | None = None) -> IngestionResult:
        """Ingest one batch.

        Args:
            events: Envelopes of the form {"type": ..., "data": {...}}.
            received_at: Server receive time used for created_at and
                last-activity timestamps. Defaults to now.

        Returns:
            IngestionResult with one outcome per non-empty partition.
        """
        now = received_at or utc_now()
        result = IngestionResult(processed=len(events))

        buckets: dict[str, list[dict[str, Any]]] = {SESSIONS: [], PAGE_VIEWS: [], EVENTS: []}
        for envelope in events:
            if not isinstance(envelope, dict):
                result.ignored += 1
                continue
            data = envelope.get("data")
            if not isinstance(data, dict):
                data = {}
            kind = envelope.get("type")
            if kind == "session":
                buckets[SESSIONS].append(data)
            elif kind == "pageview":
                buckets[PAGE_VIEWS].append(data)
            elif kind == "event":
                buckets[EVENTS].append(data)
            else:
                result.ignored += 1

        if buckets[SESSIONS]:
            result.partitions[SESSIONS] = self._ingest_sessions(buckets[SESSIONS], now)
        if buckets[PAGE_VIEWS]:
            result.partitions[PAGE_VIEWS] = self._ingest_page_views(buckets[PAGE_VIEWS], now)
        if buckets[EVENTS]:
            result.partitions[EVENTS] = self._ingest_interactions(buckets[EVENTS], now)

        logger.info(
            "Tracking batch ingested",
            processed=result.processed,
            ignored=result.ignored,
            failed_partitions=result.failed_partitions,
            **{name: outcome.written for name, outcome in result.partitions.items()},
        )
        return result

    def _ingest_sessions(self, rows: list[dict[str, Any]], now: datetime) -> PartitionOutcome:
        outcome = PartitionOutcome(received=len(rows))
        try:
            for row in rows:
                try:
                    session = TrackedSession(
                        **_map_fields(row, _SESSION_FIELDS),
                        started_at=now,
                        last_activity_at=now,
                        created_at=now,
                    )
                except PydanticValidationError as e:
                    outcome.rejected += 1
                    logger.warning("Invalid session event", errors=e.error_count())
                    continue
                if self.sessions.create_if_absent(session):
                    outcome.written += 1
        except Exception as e:
            outcome.error = str(e)
            logger.exception("Error inserting sessions", count=len(rows))
        return outcome

    def _ingest_page_views(self, rows: list[dict[str, Any]], now: datetime) -> PartitionOutcome:
        outcome = PartitionOutcome(received=len(rows))
        try:
            page_views: list[PageView] = []
            for row in rows:
                try:
                    page_views.append(PageView(**_map_fields(row, _PAGE_VIEW_FIELDS), created_at=now))
                except PydanticValidationError as e:
                    outcome.rejected += 1
                    logger.warning("Invalid page view event", errors=e.error_count())

            self.page_views.add_many(page_views)
            outcome.written = len(page_views)

            activity: dict[str, _SessionActivity] = {}
            for page_view in page_views:
                entry = activity.setdefault(page_view.session_id, _SessionActivity())
                entry.page_views += 1
                entry.exit_page = page_view.page_path

            self._apply_activity(activity, now)
        except Exception as e:
            outcome.error = str(e)
            logger.exception("Error inserting page views", count=len(rows))
        return outcome

    def _ingest_interactions(self, rows: list[dict[str, Any]], now: datetime) -> PartitionOutcome:
        outcome = PartitionOutcome(received=len(rows))
        try:
            events: list[InteractionEvent] = []
            for row in rows:
                try:
                    events.append(InteractionEvent(**_map_fields(row, _EVENT_FIELDS), created_at=now))
                except PydanticValidationError as e:
                    outcome.rejected += 1
                    logger.warning("Invalid interaction event", errors=e.error_count())

            self.interactions.add_many(events)
            outcome.written = len(events)

            activity: dict[str, _SessionActivity] = {}
            for event in events:
                entry = activity.setdefault(event.session_id, _SessionActivity())
                entry.events += 1
                if event.event_type in (EventType.CLICK.value, EventType.RAGE_CLICK.value):
                    entry.clicks += 1
                if event.event_type == EventType.RAGE_CLICK.value:
                    entry.rage_clicks += 1
                if event.event_type == EventType.SCROLL.value and event.scroll_depth is not None:
                    entry.max_scroll_depth = max(entry.max_scroll_depth or 0, event.scroll_depth)

            self._apply_activity(activity, now)
        except Exception as e:
            outcome.error = str(e)
            logger.exception("Error inserting interaction events", count=len(rows))
        return outcome

    def _apply_activity(self, activity: dict[str, _SessionActivity], now: datetime) -> None:
        """Fold aggregated per-session activity into the session rows."""
        for session_id, entry in activity.items():
            self.sessions.record_activity(
                session_id,
                activity_at=now,
                exit_page=entry.exit_page,
                page_views=entry.page_views,
                clicks=entry.clicks,
                rage_clicks=entry.rage_clicks,
                events=entry.events,
                max_scroll_depth=entry.max_scroll_depth,
            )
