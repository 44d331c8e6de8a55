"""API Gateway proxy responses for the tracking and admin endpoints.

Every response carries CORS headers so the capture client can post
batches from the public site and the admin dashboard can read aggregates.
"""

import json
import os
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel as PydanticBaseModel

_ALLOWED_ORIGIN = os.environ.get("CORS_ALLOWED_ORIGIN", "*")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": _ALLOWED_ORIGIN,
    "Access-Control-Allow-Headers": "Content-Type,Authorization",
    "Access-Control-Allow-Methods": "GET,POST,PUT,OPTIONS",
    "Content-Type": "application/json",
}


def _default(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return int(obj) if obj == obj.to_integral_value() else float(obj)
    if isinstance(obj, PydanticBaseModel):
        return obj.model_dump(mode="json", by_alias=True)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _response(status_code: int, body: Any) -> dict:
    return {
        "statusCode": status_code,
        "headers": dict(CORS_HEADERS),
        "body": json.dumps(body, default=_default),
    }


def success(data: Any, status_code: int = 200) -> dict:
    """Create a successful API response.

    Args:
        data: Response data (dict, list, or Pydantic model).
        status_code: HTTP status code (default 200).
    """
    return _response(status_code, data)


def error(
    message: str,
    status_code: int = 500,
    error_code: str | None = None,
    details: dict | None = None,
) -> dict:
    """Create an error response: ``{"error", "error_code"?, "details"?}``."""
    body: dict[str, Any] = {"error": message}
    if error_code:
        body["error_code"] = error_code
    if details:
        body["details"] = details
    return _response(status_code, body)


def validation_error(errors: list[dict], message: str = "Validation failed") -> dict:
    """400 response listing field errors as ``{"field", "message"}`` dicts."""
    return error(message, 400, error_code="VALIDATION_ERROR", details={"errors": errors})


def not_found(resource_type: str, resource_id: str) -> dict:
    return error(
        f"{resource_type} with ID '{resource_id}' not found",
        404,
        error_code="NOT_FOUND",
        details={"resource_type": resource_type, "resource_id": resource_id},
    )


def unauthorized(message: str = "Unauthorized") -> dict:
    return error(message, 401, error_code="UNAUTHORIZED")


def method_not_allowed() -> dict:
    return error("Method not allowed", 405, error_code="METHOD_NOT_ALLOWED")


def parse_json_body(event: dict) -> Any:
    """Parse the JSON body of an API Gateway event.

    A missing body parses as an empty object.

    Raises:
        ValueError: If the body is not valid JSON.
    """
    raw = event.get("body") or "{}"
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError("Invalid JSON body") from e
