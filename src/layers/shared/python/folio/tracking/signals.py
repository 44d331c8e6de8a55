"""Per-page behavioral signal detectors for the capture client."""

from collections import deque

RAGE_CLICK_WINDOW_SECONDS = 1.0
RAGE_CLICK_THRESHOLD = 3
MOVE_THROTTLE_SECONDS = 0.1


class RageClickDetector:
    """Flags bursts of clicks inside a sliding time window.

    Once a click is flagged the window is cleared, so the next rage click
    needs a fresh burst of `threshold` clicks.
    """

    def __init__(
        self,
        window_seconds: float = RAGE_CLICK_WINDOW_SECONDS,
        threshold: int = RAGE_CLICK_THRESHOLD,
    ):
        self.window_seconds = window_seconds
        self.threshold = threshold
        self._clicks: deque[float] = deque()

    def register(self, timestamp: float) -> bool:
        """Record a click at `timestamp` (seconds). Returns True if it is a rage click."""
        while self._clicks and timestamp - self._clicks[0] >= self.window_seconds:
            self._clicks.popleft()
        self._clicks.append(timestamp)

        if len(self._clicks) >= self.threshold:
            self._clicks.clear()
            return True
        return False

    def reset(self) -> None:
        self._clicks.clear()


def compute_scroll_depth(scroll_top: float, scroll_height: float, viewport_height: float) -> int | None:
    """Scroll position as an integer percentage of the scrollable height.

    Returns None for pages that cannot scroll.
    """
    scrollable = scroll_height - viewport_height
    if scrollable <= 0:
        return None
    depth = int(scroll_top / scrollable * 100 + 0.5)
    return max(0, min(100, depth))


class ScrollDepthTracker:
    """Tracks the deepest scroll position reached on the current page."""

    def __init__(self):
        self.max_depth = 0

    def observe(self, scroll_top: float, scroll_height: float, viewport_height: float) -> int | None:
        """Return the new depth if it exceeds the page maximum, else None."""
        depth = compute_scroll_depth(scroll_top, scroll_height, viewport_height)
        if depth is None or depth <= self.max_depth:
            return None
        self.max_depth = depth
        return depth

    def reset(self) -> None:
        """Start over for a new page."""
        self.max_depth = 0


class MoveThrottle:
    """Lets through at most one pointer move per interval."""

    def __init__(self, interval_seconds: float = MOVE_THROTTLE_SECONDS):
        self.interval_seconds = interval_seconds
        self._last: float | None = None

    def allow(self, timestamp: float) -> bool:
        if self._last is not None and timestamp - self._last < self.interval_seconds:
            return False
        self._last = timestamp
        return True
