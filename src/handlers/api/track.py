"""Tracking ingestion API handler.

Public telemetry sink for the capture client. There is no authentication
and no rate limiting on this endpoint; abuse protection is expected at
the edge.
"""

from typing import Any

import structlog

from folio.repositories import InteractionRepository, PageViewRepository, SessionRepository, get_table
from folio.services.ingestion import IngestionService
from folio.utils.responses import error, method_not_allowed, parse_json_body, success

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle tracking API requests.

    Routes:
        POST /track
        GET /track  (health check)
    """
    try:
        http_method = event.get("httpMethod", "").upper()

        if http_method == "GET":
            return success({"status": "ok"})
        if http_method == "POST":
            return ingest_events(event)
        return method_not_allowed()

    except Exception as e:
        logger.exception("Tracking handler error", error=str(e))
        return error("Internal server error", 500)


def ingest_events(event: dict) -> dict:
    """Persist a batch of tracking events."""
    try:
        body = parse_json_body(event)
    except ValueError:
        return error("Invalid JSON body", 400, error_code="INVALID_JSON")

    events = body.get("events") if isinstance(body, dict) else None
    if not isinstance(events, list):
        return error("Invalid events", 400, error_code="VALIDATION_ERROR")

    table = get_table()
    service = IngestionService(
        sessions=SessionRepository(table),
        page_views=PageViewRepository(table),
        interactions=InteractionRepository(table),
    )
    result = service.ingest(events)

    return success({"success": True, "processed": result.processed})
