"""Capture client: identifiers, signal detection, batching and delivery."""

from folio.tracking.batcher import EventBatcher
from folio.tracking.identity import IdentityStore
from folio.tracking.signals import MoveThrottle, RageClickDetector, ScrollDepthTracker, compute_scroll_depth
from folio.tracking.tracker import BrowserEnvironment, ElementInfo, Tracker
from folio.tracking.transport import HttpTransport, TransportError
from folio.tracking.user_agent import UserAgentInfo, parse_user_agent

__all__ = [
    "BrowserEnvironment",
    "ElementInfo",
    "EventBatcher",
    "HttpTransport",
    "IdentityStore",
    "MoveThrottle",
    "RageClickDetector",
    "ScrollDepthTracker",
    "Tracker",
    "TransportError",
    "UserAgentInfo",
    "compute_scroll_depth",
    "parse_user_agent",
]
