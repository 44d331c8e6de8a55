"""Session summary statistics over a time window."""

import math
from collections.abc import Sequence
from datetime import datetime, timedelta

import structlog

from folio.models.base import utc_now
from folio.models.session import TrackedSession
from folio.repositories.session import SessionRepository

logger = structlog.get_logger()

DEFAULT_WINDOW_DAYS = 30
MAX_ROWS = 10000


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like Math.round, with halves always going up."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def percent(part: int, total: int) -> float:
    """Percentage to one decimal place; 0 when total is 0."""
    if total == 0:
        return 0
    return round_half_up(part / total * 100, 1)


def summarize_sessions(sessions: Sequence[TrackedSession]) -> dict:
    """Compute summary KPIs for a set of sessions.

    An empty set yields zeros and an empty device breakdown.
    """
    total = len(sessions)
    if total == 0:
        return {
            "totalSessions": 0,
            "uniqueVisitors": 0,
            "avgDuration": 0,
            "avgPageViews": 0,
            "bounceRate": 0,
            "conversionRate": 0,
            "deviceBreakdown": {},
        }

    visitors = {s.visitor_id for s in sessions if s.visitor_id}
    bounces = sum(1 for s in sessions if s.page_count <= 1)
    conversions = sum(1 for s in sessions if s.converted)
    total_duration = sum(s.duration_seconds or 0 for s in sessions)
    total_pages = sum(s.page_count for s in sessions)

    devices: dict[str, int] = {}
    for s in sessions:
        device = s.device_type or "unknown"
        devices[device] = devices.get(device, 0) + 1

    return {
        "totalSessions": total,
        "uniqueVisitors": len(visitors),
        "avgDuration": int(round_half_up(total_duration / total)),
        "avgPageViews": round_half_up(total_pages / total, 1),
        "bounceRate": percent(bounces, total),
        "conversionRate": percent(conversions, total),
        "deviceBreakdown": devices,
    }


class SessionStatsAggregator:
    """Computes session KPIs for a trailing window or explicit range."""

    def __init__(self, sessions: SessionRepository, max_rows: int = MAX_ROWS):
        self.sessions = sessions
        self.max_rows = max_rows

    def resolve_window(
        self,
        days: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> tuple[datetime, datetime]:
        """Resolve the query window. An explicit start wins over days."""
        end = end or utc_now()
        if start is None:
            start = end - timedelta(days=days if days is not None else DEFAULT_WINDOW_DAYS)
        return start, end

    def load(self, start: datetime, end: datetime) -> list[TrackedSession]:
        """Load sessions started within [start, end], up to the row cap."""
        if start > end:
            return []
        sessions, truncated = self.sessions.list_started_between(start, end, max_items=self.max_rows)
        if truncated:
            logger.debug("Session row cap reached, result truncated", max_rows=self.max_rows)
        return sessions

    def stats(
        self,
        days: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> dict:
        """Summary KPIs for the resolved window."""
        start, end = self.resolve_window(days, start, end)
        return summarize_sessions(self.load(start, end))
