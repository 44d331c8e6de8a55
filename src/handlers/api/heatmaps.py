"""Heatmaps API handler (admin only).

Routes:
    GET /heatmaps?action=data&pagePath=/x&eventType=click|move|rage_click|scroll&deviceType=&startDate=&endDate=
    GET /heatmaps?action=scroll&pagePath=/x&deviceType=&startDate=&endDate=
    GET /heatmaps?action=stats&days=30  (or startDate/endDate)
    GET /heatmaps?action=sessions&limit=50&deviceType=&converted=&cursor=
    GET /heatmaps?action=pages
"""

from typing import Any

import structlog

from folio.models.interaction import EventType
from folio.models.session import normalize_device_type
from folio.repositories import InteractionRepository, SessionRepository, get_table
from folio.services.heatmap import HeatmapAggregator
from folio.services.session_stats import SessionStatsAggregator
from folio.utils.auth import require_admin
from folio.utils.exceptions import UnauthorizedError, ValidationError
from folio.utils.query_params import (
    decode_cursor,
    encode_cursor,
    get_query_params,
    parse_datetime,
    parse_int,
)
from folio.utils.responses import error, method_not_allowed, success, unauthorized, validation_error

logger = structlog.get_logger()

HEATMAP_EVENT_TYPES = {EventType.CLICK.value, EventType.MOVE.value, EventType.RAGE_CLICK.value}


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle heatmap API requests."""
    try:
        require_admin(event)

        http_method = event.get("httpMethod", "").upper()
        if http_method != "GET":
            return method_not_allowed()

        params = get_query_params(event)
        action = params.get("action") or "data"
        table = get_table()

        if action == "pages":
            aggregator = HeatmapAggregator(InteractionRepository(table))
            return success({"pages": aggregator.tracked_pages()})

        if action == "stats":
            return get_session_stats(SessionRepository(table), params)

        if action == "sessions":
            return list_sessions(SessionRepository(table), params)

        if action in ("data", "scroll"):
            page_path = params.get("pagePath")
            if not page_path:
                return error("pagePath is required", 400, error_code="VALIDATION_ERROR")
            aggregator = HeatmapAggregator(InteractionRepository(table))
            if action == "scroll" or params.get("eventType") == EventType.SCROLL.value:
                return get_scroll_data(aggregator, page_path, params)
            return get_heatmap_data(aggregator, page_path, params)

        return error("Invalid action", 400, error_code="VALIDATION_ERROR")

    except UnauthorizedError as e:
        return unauthorized(e.message)
    except ValidationError as e:
        return validation_error(e.errors, e.message)
    except Exception as e:
        logger.exception("Heatmaps handler error", error=str(e))
        return error("Failed to fetch heatmap data", 500)


def _device_filter(params: dict) -> str | None:
    raw = params.get("deviceType")
    if not raw:
        return None
    device = normalize_device_type(raw)
    if device is None:
        raise ValidationError(
            "Invalid deviceType",
            errors=[{"field": "deviceType", "message": "Expected desktop, tablet or mobile"}],
        )
    return device


def get_heatmap_data(aggregator: HeatmapAggregator, page_path: str, params: dict) -> dict:
    """Click or move points for a page."""
    event_type = params.get("eventType") or EventType.CLICK.value
    if event_type not in HEATMAP_EVENT_TYPES:
        return validation_error(
            [{"field": "eventType", "message": "Expected click, move, rage_click or scroll"}],
            "Invalid eventType",
        )

    heatmap_data = aggregator.heatmap(
        page_path,
        event_type=event_type,
        device_type=_device_filter(params),
        start=parse_datetime(params.get("startDate"), "startDate"),
        end=parse_datetime(params.get("endDate"), "endDate"),
    )
    return success({"heatmapData": heatmap_data})


def get_scroll_data(aggregator: HeatmapAggregator, page_path: str, params: dict) -> dict:
    """Scroll-depth distribution for a page."""
    scroll_data = aggregator.scroll_depths(
        page_path,
        device_type=_device_filter(params),
        start=parse_datetime(params.get("startDate"), "startDate"),
        end=parse_datetime(params.get("endDate"), "endDate"),
    )
    return success({"scrollData": scroll_data})


def get_session_stats(repo: SessionRepository, params: dict) -> dict:
    """Summary KPIs over a trailing window or explicit range."""
    aggregator = SessionStatsAggregator(repo)
    stats = aggregator.stats(
        days=parse_int(params.get("days"), "days", default=30, maximum=365),
        start=parse_datetime(params.get("startDate"), "startDate"),
        end=parse_datetime(params.get("endDate"), "endDate"),
    )
    return success(stats)


def list_sessions(repo: SessionRepository, params: dict) -> dict:
    """Recent sessions, newest first."""
    limit = parse_int(params.get("limit"), "limit", default=50, maximum=100)

    converted = None
    if params.get("converted") in ("true", "false"):
        converted = params["converted"] == "true"

    sessions, next_key = repo.list_recent(
        limit=limit,
        device_type=_device_filter(params),
        converted=converted,
        last_key=decode_cursor(params.get("cursor")),
    )

    return success({
        "items": [s.model_dump(mode="json", exclude={"entry_recorded"}) for s in sessions],
        "pagination": {
            "limit": limit,
            "next_cursor": encode_cursor(next_key),
        },
    })
