"""Analytics API handler."""

from typing import Any

import structlog

from folio.repositories import PageViewRepository, SessionRepository, get_table
from folio.services.site_analytics import SiteAnalyticsService
from folio.utils.auth import require_admin
from folio.utils.exceptions import UnauthorizedError, ValidationError
from folio.utils.query_params import get_query_params, parse_datetime
from folio.utils.responses import error, method_not_allowed, success, unauthorized, validation_error

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle analytics API requests.

    Routes:
        GET /analytics?startDate=...&endDate=...  (defaults to the last 30 days)
    """
    try:
        require_admin(event)

        http_method = event.get("httpMethod", "").upper()
        if http_method == "GET":
            return get_analytics(event)
        return method_not_allowed()

    except UnauthorizedError as e:
        return unauthorized(e.message)
    except ValidationError as e:
        return validation_error(e.errors, e.message)
    except Exception as e:
        logger.exception("Analytics handler error", error=str(e))
        return error("Failed to fetch analytics", 500)


def get_analytics(event: dict) -> dict:
    """Site traffic summary for a date range."""
    params = get_query_params(event)
    start = parse_datetime(params.get("startDate"), "startDate")
    end = parse_datetime(params.get("endDate"), "endDate")
    if start and end and start > end:
        return validation_error(
            [{"field": "startDate", "message": "startDate must not be after endDate"}],
            "Invalid date range",
        )

    table = get_table()
    service = SiteAnalyticsService(PageViewRepository(table), SessionRepository(table))
    return success(service.summary(start=start, end=end))
