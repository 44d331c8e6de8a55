"""Tests for heatmap and scroll-depth aggregation."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from folio.models.interaction import InteractionEvent
from folio.repositories.interaction import InteractionRepository
from folio.services.heatmap import (
    HeatmapAggregator,
    aggregate_points,
    bucket_scroll_depths,
    count_pages,
    normalize_point,
)


def _click(x, y, session_id="s1", page_path="/", **kwargs) -> InteractionEvent:
    return InteractionEvent(session_id=session_id, page_path=page_path, event_type="click", x=x, y=y, **kwargs)


def _scroll(depth, session_id, page_path="/", **kwargs) -> InteractionEvent:
    return InteractionEvent(
        session_id=session_id,
        page_path=page_path,
        event_type="scroll",
        scroll_depth=depth,
        **kwargs,
    )


class TestNormalizePoint:
    """Tests for normalize_point."""

    def test_reference_canvas(self):
        """Coordinates become percentages of 1920x1080."""
        assert normalize_point(960, 540) == (50, 50)
        assert normalize_point(0, 0) == (0, 0)
        assert normalize_point(1920, 1080) == (100, 100)

    def test_rounds_half_up(self):
        """Half percentages round up."""
        # 240 px is 12.5% of the width
        assert normalize_point(240, 0) == (13, 0)

    def test_clamped(self):
        """Points beyond the canvas are clamped onto its edge."""
        assert normalize_point(5000, 3000) == (100, 100)
        assert normalize_point(-10, -10) == (0, 0)


class TestAggregatePoints:
    """Tests for aggregate_points."""

    def test_groups_by_cell(self):
        """Points in the same cell are counted together."""
        events = [_click(960, 540), _click(961, 541), _click(0, 0)]

        points = sorted(aggregate_points(events), key=lambda p: (p["x"], p["y"]))

        assert points == [{"x": 0, "y": 0, "count": 1}, {"x": 50, "y": 50, "count": 2}]

    def test_skips_missing_coordinates(self):
        """Events without both coordinates are ignored."""
        events = [_click(None, 10), _click(10, None), _click(192, 108)]

        assert aggregate_points(events) == [{"x": 10, "y": 10, "count": 1}]


class TestBucketScrollDepths:
    """Tests for bucket_scroll_depths."""

    def test_session_max_then_bucket(self):
        """Each session counts once, in the bucket of its deepest scroll."""
        events = [
            _scroll(10, "a"),
            _scroll(45, "a"),
            _scroll(42, "b"),
            _scroll(90, "c"),
        ]

        assert bucket_scroll_depths(events) == [
            {"depth": 40, "sessions": 2},
            {"depth": 90, "sessions": 1},
        ]

    def test_hundred_has_own_bucket(self):
        """A full scroll lands in the 100 bucket."""
        assert bucket_scroll_depths([_scroll(100, "a")]) == [{"depth": 100, "sessions": 1}]

    def test_empty(self):
        """No scroll events, no buckets."""
        assert bucket_scroll_depths([]) == []


class TestCountPages:
    """Tests for count_pages."""

    def test_most_active_first(self):
        """Pages are ordered by event count."""
        events = [_click(1, 1, page_path="/a"), _click(1, 1, page_path="/b"), _click(1, 1, page_path="/b")]

        assert count_pages(events) == [
            {"path": "/b", "eventCount": 2},
            {"path": "/a", "eventCount": 1},
        ]


class TestHeatmapAggregator:
    """Tests for HeatmapAggregator against DynamoDB."""

    @pytest.fixture
    def repo(self, dynamodb_table):
        return InteractionRepository(dynamodb_table)

    def test_heatmap_for_page_and_type(self, repo):
        """Only the requested page and event type are aggregated."""
        repo.add_many([
            _click(960, 540, page_path="/pricing"),
            _click(960, 540, page_path="/pricing"),
            _click(0, 0, page_path="/about"),
            InteractionEvent(session_id="s1", page_path="/pricing", event_type="move", x=0, y=0),
        ])

        points = HeatmapAggregator(repo).heatmap("/pricing", "click")

        assert points == [{"x": 50, "y": 50, "count": 2}]

    def test_heatmap_device_filter(self, repo):
        """The device filter narrows the rows."""
        repo.add_many([
            _click(960, 540, page_path="/", device_type="mobile"),
            _click(0, 0, page_path="/", device_type="desktop"),
        ])

        points = HeatmapAggregator(repo).heatmap("/", "click", device_type="mobile")

        assert points == [{"x": 50, "y": 50, "count": 1}]

    def test_heatmap_date_range(self, repo):
        """Rows outside the window are excluded."""
        now = datetime(2025, 6, 1, 12, tzinfo=timezone.utc)
        repo.add_many([
            _click(960, 540, created_at=now - timedelta(days=10)),
            _click(0, 0, created_at=now),
        ])

        points = HeatmapAggregator(repo).heatmap(
            "/", "click", start=now - timedelta(days=1), end=now + timedelta(days=1)
        )

        assert points == [{"x": 0, "y": 0, "count": 1}]

    def test_row_cap(self, repo):
        """At most max_rows rows are aggregated."""
        repo.add_many([_click(960, 540) for _ in range(5)])

        points = HeatmapAggregator(repo, max_rows=3).heatmap("/", "click")

        assert points == [{"x": 50, "y": 50, "count": 3}]

    def test_scroll_depths(self, repo):
        """Scroll rows are bucketed per session."""
        repo.add_many([_scroll(15, "a"), _scroll(55, "a"), _scroll(20, "b")])

        assert HeatmapAggregator(repo).scroll_depths("/") == [
            {"depth": 20, "sessions": 1},
            {"depth": 50, "sessions": 1},
        ]

    def test_tracked_pages(self, repo):
        """Pages are listed from recent events."""
        repo.add_many([
            _click(1, 1, page_path="/a"),
            _click(1, 1, page_path="/b"),
            _click(1, 1, page_path="/b"),
        ])

        assert HeatmapAggregator(repo).tracked_pages() == [
            {"path": "/b", "eventCount": 2},
            {"path": "/a", "eventCount": 1},
        ]

    @pytest.mark.parametrize("method", ["heatmap", "scroll_depths"])
    def test_inverted_range_is_empty(self, method):
        """A start after the end yields nothing without querying."""
        repo = MagicMock()
        now = datetime(2025, 6, 1, tzinfo=timezone.utc)

        result = getattr(HeatmapAggregator(repo), method)("/", start=now, end=now - timedelta(days=9))

        assert result == []
        repo.list_for_page.assert_not_called()
