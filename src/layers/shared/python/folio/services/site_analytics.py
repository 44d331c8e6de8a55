"""Site-wide traffic summary for the admin dashboard."""

from collections import Counter
from datetime import date, datetime, timedelta
from urllib.parse import urlparse

import structlog

from folio.models.base import utc_now
from folio.repositories.page_view import PageViewRepository
from folio.repositories.session import SessionRepository
from folio.services.session_stats import percent, round_half_up

logger = structlog.get_logger()

DEFAULT_WINDOW_DAYS = 30
MAX_ROWS = 10000
TOP_N = 5
DEVICE_KEYS = ("desktop", "mobile", "tablet", "unknown")


def extract_source(referrer: str | None) -> str:
    """Reduce a referrer URL to its host, or "Direct" when there is none."""
    if not referrer:
        return "Direct"
    host = urlparse(referrer).hostname
    if not host:
        return "Direct"
    return host.replace("www.", "", 1)


def fill_daily(counts: dict[str, int], start: date, end: date) -> list[dict]:
    """One {date, views} entry per calendar day in [start, end]."""
    days = []
    current = start
    while current <= end:
        key = current.isoformat()
        days.append({"date": key, "views": counts.get(key, 0)})
        current += timedelta(days=1)
    return days


class SiteAnalyticsService:
    """Builds the traffic summary from page views and sessions."""

    def __init__(
        self,
        page_views: PageViewRepository,
        sessions: SessionRepository,
        max_rows: int = MAX_ROWS,
    ):
        self.page_views = page_views
        self.sessions = sessions
        self.max_rows = max_rows

    def summary(self, start: datetime | None = None, end: datetime | None = None) -> dict:
        """Summarize traffic for [start, end], defaulting to the last 30 days."""
        end = end or utc_now()
        start = start or end - timedelta(days=DEFAULT_WINDOW_DAYS)

        page_views, views_truncated = self.page_views.list_created_between(start, end, self.max_rows)
        sessions, sessions_truncated = self.sessions.list_started_between(start, end, self.max_rows)
        if views_truncated or sessions_truncated:
            logger.debug(
                "Analytics row cap reached, result truncated",
                page_views_truncated=views_truncated,
                sessions_truncated=sessions_truncated,
            )

        page_counts = Counter(pv.page_path for pv in page_views)
        daily_counts = Counter(pv.created_at.date().isoformat() for pv in page_views)

        source_counts = Counter(extract_source(s.referrer) for s in sessions)
        total_sources = sum(source_counts.values())

        devices = dict.fromkeys(DEVICE_KEYS, 0)
        for s in sessions:
            device = s.device_type or "unknown"
            devices[device if device in devices else "unknown"] += 1

        total_sessions = len(sessions)
        total_duration = sum(s.duration_seconds or 0 for s in sessions)
        bounces = sum(1 for s in sessions if s.page_count <= 1)

        return {
            "totalViews": len(page_views),
            "uniqueVisitors": len({s.visitor_id for s in sessions if s.visitor_id}),
            "avgSessionDuration": int(round_half_up(total_duration / total_sessions)) if total_sessions else 0,
            "bounceRate": percent(bounces, total_sessions),
            "topPages": [
                {"path": path, "views": views, "change": 0}
                for path, views in page_counts.most_common(TOP_N)
            ],
            "topSources": [
                {
                    "source": source,
                    "visitors": visitors,
                    "percent": int(round_half_up(visitors / total_sources * 100)),
                }
                for source, visitors in source_counts.most_common(TOP_N)
            ],
            "deviceBreakdown": devices,
            "dailyViews": fill_daily(daily_counts, start.date(), end.date()),
        }
