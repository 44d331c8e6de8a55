"""Delivery of event batches to the ingestion endpoint."""

import json
import urllib.error
import urllib.request
from typing import Protocol

import structlog

logger = structlog.get_logger()


class TransportError(Exception):
    """Raised when a batch could not be delivered."""


class Transport(Protocol):
    """Anything that can deliver a batch of event envelopes."""

    def send(self, events: list[dict]) -> None: ...


class HttpTransport:
    """POSTs batches as JSON to the tracking endpoint."""

    def __init__(self, endpoint: str, timeout: float = 10.0, user_agent: str = "folio-tracker/1.0"):
        self.endpoint = endpoint
        self.timeout = timeout
        self.user_agent = user_agent

    def send(self, events: list[dict]) -> None:
        """Deliver one batch.

        Raises:
            TransportError: On network failure or a non-2xx response.
        """
        body = json.dumps({"events": events}).encode("utf-8")
        req = urllib.request.Request(
            self.endpoint,
            data=body,
            method="POST",
            headers={
                "Content-Type": "application/json",
                "User-Agent": self.user_agent,
            },
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                status = response.status
        except urllib.error.HTTPError as e:
            raise TransportError(f"Tracking endpoint returned {e.code}") from e
        except (urllib.error.URLError, OSError) as e:
            raise TransportError(f"Tracking endpoint unreachable: {e}") from e

        if not 200 <= status < 300:
            raise TransportError(f"Tracking endpoint returned {status}")

        logger.debug("Tracking batch delivered", count=len(events))
