"""Query string parsing helpers for API handlers."""

import base64
import binascii
import json
from datetime import datetime, timezone

from folio.utils.exceptions import ValidationError


def get_query_params(event: dict) -> dict:
    """Return the event's query string parameters, never None."""
    return event.get("queryStringParameters", {}) or {}


def parse_datetime(value: str | None, field: str) -> datetime | None:
    """Parse an ISO 8601 date or datetime. Naive values are taken as UTC.

    Raises:
        ValidationError: If the value is not ISO 8601.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(
            f"Invalid {field}",
            errors=[{"field": field, "message": "Expected an ISO 8601 date"}],
        )
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_int(value: str | None, field: str, default: int, minimum: int = 1, maximum: int | None = None) -> int:
    """Parse a bounded integer parameter.

    Raises:
        ValidationError: If the value is not an integer.
    """
    if value in (None, ""):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(
            f"Invalid {field}",
            errors=[{"field": field, "message": "Expected an integer"}],
        )
    number = max(minimum, number)
    if maximum is not None:
        number = min(maximum, number)
    return number


def decode_cursor(cursor: str | None) -> dict | None:
    """Decode a pagination cursor into a DynamoDB ExclusiveStartKey.

    Raises:
        ValidationError: If the cursor is malformed.
    """
    if not cursor:
        return None
    try:
        return json.loads(base64.b64decode(cursor).decode())
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError):
        raise ValidationError("Invalid cursor", errors=[{"field": "cursor", "message": "Malformed cursor"}])


def encode_cursor(last_key: dict | None) -> str | None:
    """Encode a LastEvaluatedKey as an opaque cursor."""
    if not last_key:
        return None
    return base64.b64encode(json.dumps(last_key).encode()).decode()
