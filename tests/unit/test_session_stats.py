"""Tests for session statistics and the site analytics summary."""

from datetime import date, datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from folio.models.page_view import PageView
from folio.models.session import TrackedSession
from folio.repositories.page_view import PageViewRepository
from folio.repositories.session import SessionRepository
from folio.services.session_stats import (
    SessionStatsAggregator,
    percent,
    round_half_up,
    summarize_sessions,
)
from folio.services.site_analytics import SiteAnalyticsService, extract_source, fill_daily

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def _session(session_id: str, **overrides) -> TrackedSession:
    fields = {"session_id": session_id, "started_at": NOW, "last_activity_at": NOW}
    fields.update(overrides)
    return TrackedSession(**fields)


class TestRounding:
    """Tests for rounding helpers."""

    def test_round_half_up(self):
        """Halves round away from zero."""
        assert round_half_up(2.5) == 3
        assert round_half_up(0.25, 1) == 0.3
        assert round_half_up(66.66666, 1) == 66.7

    def test_percent(self):
        """Percentages keep one decimal and tolerate a zero total."""
        assert percent(1, 3) == 33.3
        assert percent(2, 3) == 66.7
        assert percent(5, 0) == 0


class TestSummarizeSessions:
    """Tests for summarize_sessions."""

    def test_empty(self):
        """No sessions yields zeros and an empty breakdown."""
        assert summarize_sessions([]) == {
            "totalSessions": 0,
            "uniqueVisitors": 0,
            "avgDuration": 0,
            "avgPageViews": 0,
            "bounceRate": 0,
            "conversionRate": 0,
            "deviceBreakdown": {},
        }

    def test_kpis(self):
        """KPIs are derived from the session rows."""
        sessions = [
            _session("s1", visitor_id="v1", device_type="desktop", page_count=1, duration_seconds=10),
            _session("s2", visitor_id="v1", device_type="mobile", page_count=4, duration_seconds=200,
                     converted=True),
            _session("s3", visitor_id="v2", device_type="desktop", page_count=2, duration_seconds=91),
        ]

        stats = summarize_sessions(sessions)

        assert stats["totalSessions"] == 3
        assert stats["uniqueVisitors"] == 2
        assert stats["avgDuration"] == 100
        assert stats["avgPageViews"] == 2.3
        assert stats["bounceRate"] == 33.3
        assert stats["conversionRate"] == 33.3
        assert stats["deviceBreakdown"] == {"desktop": 2, "mobile": 1}

    def test_unknown_device(self):
        """Sessions without a device type are grouped as unknown."""
        stats = summarize_sessions([_session("s1")])

        assert stats["deviceBreakdown"] == {"unknown": 1}


class TestSessionStatsAggregator:
    """Tests for SessionStatsAggregator against DynamoDB."""

    @pytest.fixture
    def repo(self, dynamodb_table):
        return SessionRepository(dynamodb_table)

    def test_resolve_window_defaults(self, repo):
        """Without parameters the window is the last 30 days."""
        start, end = SessionStatsAggregator(repo).resolve_window(end=NOW)

        assert end == NOW
        assert start == NOW - timedelta(days=30)

    def test_explicit_start_wins(self, repo):
        """An explicit start overrides days."""
        explicit = NOW - timedelta(days=2)

        start, _ = SessionStatsAggregator(repo).resolve_window(days=7, start=explicit, end=NOW)

        assert start == explicit

    def test_stats_window(self, repo):
        """Only sessions started inside the window are counted."""
        repo.create(_session("inside", started_at=NOW - timedelta(days=1)))
        repo.create(_session("old", started_at=NOW - timedelta(days=40)))

        stats = SessionStatsAggregator(repo).stats(days=30, end=NOW)

        assert stats["totalSessions"] == 1

    def test_stats_empty_window(self, repo):
        """An empty window is not an error."""
        assert SessionStatsAggregator(repo).stats(days=7, end=NOW)["totalSessions"] == 0

    def test_inverted_window_is_empty(self):
        """A start after the end yields zeros without querying."""
        repo = MagicMock()

        stats = SessionStatsAggregator(repo).stats(start=NOW, end=NOW - timedelta(days=3))

        assert stats["totalSessions"] == 0
        assert stats["deviceBreakdown"] == {}
        repo.list_started_between.assert_not_called()


class TestSiteAnalytics:
    """Tests for the site analytics summary."""

    def test_extract_source(self):
        """Referrers reduce to their host."""
        assert extract_source("https://www.google.com/search?q=x") == "google.com"
        assert extract_source("https://news.ycombinator.com/") == "news.ycombinator.com"
        assert extract_source(None) == "Direct"
        assert extract_source("") == "Direct"
        assert extract_source("not a url") == "Direct"

    def test_fill_daily(self):
        """Every day in the range appears, missing days as zero."""
        days = fill_daily({"2025-06-02": 4}, date(2025, 6, 1), date(2025, 6, 3))

        assert days == [
            {"date": "2025-06-01", "views": 0},
            {"date": "2025-06-02", "views": 4},
            {"date": "2025-06-03", "views": 0},
        ]

    def test_summary(self, dynamodb_table):
        """Views come from page views, visitors and sources from sessions."""
        sessions = SessionRepository(dynamodb_table)
        page_views = PageViewRepository(dynamodb_table)

        sessions.create(_session("s1", visitor_id="v1", device_type="desktop",
                                 referrer="https://www.google.com/", page_count=3, duration_seconds=120))
        sessions.create(_session("s2", visitor_id="v2", device_type="mobile", page_count=1))
        page_views.add_many([
            PageView(session_id="s1", page_path="/", created_at=NOW),
            PageView(session_id="s1", page_path="/pricing", created_at=NOW),
            PageView(session_id="s2", page_path="/", created_at=NOW - timedelta(days=1)),
        ])

        summary = SiteAnalyticsService(page_views, sessions).summary(
            start=NOW - timedelta(days=2), end=NOW + timedelta(hours=1)
        )

        assert summary["totalViews"] == 3
        assert summary["uniqueVisitors"] == 2
        assert summary["avgSessionDuration"] == 60
        assert summary["bounceRate"] == 50.0
        assert summary["topPages"][0] == {"path": "/", "views": 2, "change": 0}
        sources = {s["source"]: s for s in summary["topSources"]}
        assert sources["google.com"]["percent"] == 50
        assert sources["Direct"]["visitors"] == 1
        assert summary["deviceBreakdown"] == {
            "desktop": 1,
            "mobile": 1,
            "tablet": 0,
            "unknown": 0,
        }
        assert [d["views"] for d in summary["dailyViews"]] == [0, 1, 2]

    def test_summary_empty(self, dynamodb_table):
        """An empty range summarizes to zeros."""
        summary = SiteAnalyticsService(
            PageViewRepository(dynamodb_table), SessionRepository(dynamodb_table)
        ).summary(start=NOW - timedelta(days=1), end=NOW)

        assert summary["totalViews"] == 0
        assert summary["avgSessionDuration"] == 0
        assert summary["bounceRate"] == 0
        assert summary["topSources"] == []
        assert len(summary["dailyViews"]) == 2
