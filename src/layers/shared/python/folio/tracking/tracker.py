"""Capture client facade.

Turns host observations (navigation, clicks, pointer moves, scrolls) into
tracking envelopes and hands them to an EventBatcher. Browser state is
passed in through BrowserEnvironment, so the tracker runs anywhere.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import parse_qs, urlparse

import structlog

from folio.tracking.batcher import EventBatcher
from folio.tracking.identity import IdentityStore
from folio.tracking.signals import MoveThrottle, RageClickDetector, ScrollDepthTracker
from folio.tracking.user_agent import parse_user_agent

logger = structlog.get_logger()

UTM_KEYS = ("utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content")
MAX_ELEMENT_TEXT = 100


@dataclass
class BrowserEnvironment:
    """Snapshot of the browser facts the tracker reports."""

    user_agent: str = ""
    screen_width: int | None = None
    screen_height: int | None = None
    viewport_width: int | None = None
    viewport_height: int = 0
    url: str = ""
    referrer: str = ""


@dataclass
class ElementInfo:
    """Descriptor of a click target."""

    tag: str | None = None
    id: str | None = None
    class_name: str | None = None
    text: str | None = None


def utm_params(url: str) -> dict[str, str]:
    """Extract UTM parameters from a URL, empty string when absent."""
    query = parse_qs(urlparse(url).query)
    return {key: (query.get(key) or [""])[0] for key in UTM_KEYS}


class Tracker:
    """Behavioral tracker for one page load."""

    def __init__(
        self,
        environment: BrowserEnvironment,
        batcher: EventBatcher,
        identity: IdentityStore,
        clock: Callable[[], float] = time.time,
        track_moves: bool = False,
    ):
        self.environment = environment
        self.batcher = batcher
        self.identity = identity
        self.clock = clock
        # Move tracking is off by default because of its volume
        self.track_moves = track_moves

        self.user_agent = parse_user_agent(environment.user_agent)
        self.rage_clicks = RageClickDetector()
        self.scroll = ScrollDepthTracker()
        self.moves = MoveThrottle()

        self.current_path: str | None = None
        self.session_id: str | None = None

    def _ensure_session(self, now: float) -> str:
        """Resolve the session, announcing a new one when it starts."""
        session_id, is_new = self.identity.resolve_session(now)
        self.session_id = session_id
        if is_new:
            env = self.environment
            self.batcher.enqueue(
                {
                    "type": "session",
                    "data": {
                        "sessionId": session_id,
                        "visitorId": self.identity.visitor_id,
                        "deviceType": self.user_agent.device,
                        "browser": self.user_agent.browser,
                        "browserVersion": self.user_agent.browser_version,
                        "os": self.user_agent.os,
                        "osVersion": self.user_agent.os_version,
                        "screenWidth": env.screen_width,
                        "screenHeight": env.screen_height,
                        "entryPage": self.current_path,
                        "referrer": env.referrer,
                        **utm_params(env.url),
                    },
                }
            )
            logger.debug("Tracking session started", session_id=session_id)
        return session_id

    def _event(self, now: float, event_type: str, **fields) -> None:
        session_id = self._ensure_session(now)
        data = {
            "sessionId": session_id,
            "pagePath": self.current_path,
            "eventType": event_type,
            "viewportWidth": self.environment.viewport_width,
            "viewportHeight": self.environment.viewport_height,
            "deviceType": self.user_agent.device,
            "timestamp": int(now * 1000),
        }
        data.update(fields)
        self.batcher.enqueue({"type": "event", "data": data})

    def page_view(self, path: str, title: str | None = None) -> None:
        """Record a navigation. Emits exactly one pageview."""
        now = self.clock()
        self.current_path = path
        self.scroll.reset()
        session_id = self._ensure_session(now)
        self.batcher.enqueue(
            {
                "type": "pageview",
                "data": {
                    "sessionId": session_id,
                    "pagePath": path,
                    "title": title,
                    "timestamp": int(now * 1000),
                },
            }
        )

    def click(
        self,
        x: float,
        y: float,
        page_height: int | None = None,
        element: ElementInfo | None = None,
    ) -> str:
        """Record a click at document coordinates.

        Returns:
            The event type emitted, "click" or "rage_click".
        """
        now = self.clock()
        event_type = "rage_click" if self.rage_clicks.register(now) else "click"
        element = element or ElementInfo()
        self._event(
            now,
            event_type,
            x=x,
            y=y,
            pageHeight=page_height,
            elementTag=element.tag.lower() if element.tag else None,
            elementId=element.id or None,
            elementClass=element.class_name or None,
            elementText=element.text[:MAX_ELEMENT_TEXT] if element.text else None,
        )
        return event_type

    def move(self, x: float, y: float) -> bool:
        """Record a pointer move, subject to the throttle. Returns True if emitted."""
        if not self.track_moves:
            return False
        now = self.clock()
        if not self.moves.allow(now):
            return False
        self._event(now, "move", x=x, y=y)
        return True

    def scrolled(self, scroll_top: float, scroll_height: float) -> int | None:
        """Record a scroll position. Returns the depth if a new page maximum was emitted."""
        depth = self.scroll.observe(scroll_top, scroll_height, self.environment.viewport_height)
        if depth is None:
            return None
        self._event(self.clock(), "scroll", scrollDepth=depth, pageHeight=int(scroll_height))
        return depth

    def unload(self) -> bool:
        """Flush whatever is queued before the page goes away."""
        return self.batcher.flush_on_unload()
