"""Heatmap and scroll-depth aggregation.

Raw interaction rows are read with a fixed row cap and reduced to the
shapes the admin heatmap viewer renders:

- click/move: points normalized onto a 1920x1080 reference canvas as
  integer percentages, grouped by cell.
- scroll: the maximum depth per session, bucketed into 10-point bins.
"""

import math
from collections import Counter
from collections.abc import Iterable
from datetime import datetime

import structlog

from folio.models.interaction import EventType, InteractionEvent
from folio.repositories.interaction import InteractionRepository

logger = structlog.get_logger()

CANVAS_WIDTH = 1920
CANVAS_HEIGHT = 1080

MAX_ROWS = 10000
TRACKED_PAGES_SAMPLE = 1000
SCROLL_BUCKET_SIZE = 10


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def normalize_point(x: float, y: float) -> tuple[int, int]:
    """Map page pixel coordinates onto the reference canvas.

    Returns:
        (x, y) as integer percentages clamped to [0, 100].
    """
    norm_x = _round_half_up(x / CANVAS_WIDTH * 100)
    norm_y = _round_half_up(y / CANVAS_HEIGHT * 100)
    return max(0, min(100, norm_x)), max(0, min(100, norm_y))


def aggregate_points(events: Iterable[InteractionEvent]) -> list[dict]:
    """Group events by normalized cell and count them.

    Events without both coordinates are skipped.
    """
    grid: Counter = Counter()
    for event in events:
        if event.x is None or event.y is None:
            continue
        grid[normalize_point(event.x, event.y)] += 1
    return [{"x": x, "y": y, "count": count} for (x, y), count in grid.items()]


def bucket_scroll_depths(events: Iterable[InteractionEvent]) -> list[dict]:
    """Bucket each session's maximum scroll depth into 10-point bins.

    The per-session maximum is taken before bucketing, so a session that
    scrolled through several bins is only counted once, in the deepest.
    """
    session_max: dict[str, int] = {}
    for event in events:
        if event.scroll_depth is None:
            continue
        current = session_max.get(event.session_id)
        if current is None or event.scroll_depth > current:
            session_max[event.session_id] = event.scroll_depth

    buckets: Counter = Counter(
        (depth // SCROLL_BUCKET_SIZE) * SCROLL_BUCKET_SIZE for depth in session_max.values()
    )
    return [{"depth": depth, "sessions": buckets[depth]} for depth in sorted(buckets)]


def count_pages(events: Iterable[InteractionEvent]) -> list[dict]:
    """Count events per page path, most active first."""
    counts = Counter(event.page_path for event in events)
    return [{"path": path, "eventCount": count} for path, count in counts.most_common()]


class HeatmapAggregator:
    """Read-only aggregation over interaction events."""

    def __init__(self, interactions: InteractionRepository, max_rows: int = MAX_ROWS):
        self.interactions = interactions
        self.max_rows = max_rows

    def _fetch(self, page_path: str, event_type: str, **kwargs) -> list[InteractionEvent]:
        start, end = kwargs.get("start"), kwargs.get("end")
        if start and end and start > end:
            return []

        events, truncated = self.interactions.list_for_page(
            page_path=page_path,
            event_type=event_type,
            max_items=self.max_rows,
            **kwargs,
        )
        if truncated:
            logger.debug(
                "Heatmap row cap reached, result truncated",
                page_path=page_path,
                event_type=event_type,
                max_rows=self.max_rows,
            )
        return events

    def heatmap(
        self,
        page_path: str,
        event_type: str = EventType.CLICK.value,
        device_type: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[dict]:
        """Aggregate click or move events for a page into [{x, y, count}]."""
        events = self._fetch(
            page_path,
            event_type,
            start=start,
            end=end,
            device_type=device_type,
            required_attributes=("x", "y"),
        )
        return aggregate_points(events)

    def scroll_depths(
        self,
        page_path: str,
        device_type: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[dict]:
        """Aggregate scroll events for a page into [{depth, sessions}]."""
        events = self._fetch(
            page_path,
            EventType.SCROLL.value,
            start=start,
            end=end,
            device_type=device_type,
            required_attributes=("scroll_depth",),
        )
        return bucket_scroll_depths(events)

    def tracked_pages(self, sample_size: int = TRACKED_PAGES_SAMPLE) -> list[dict]:
        """List pages seen in the most recent events, by event count."""
        return count_pages(self.interactions.list_recent(sample_size))
