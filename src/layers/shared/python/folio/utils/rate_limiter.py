"""Per-client rate limiting for public write endpoints.

Counters live in the main table under ``RATELIMIT#{action}#{window}#{bucket}``
with a TTL, so stale buckets expire on their own.
"""

import time
from typing import NamedTuple

import structlog
from botocore.exceptions import ClientError

from folio.utils.responses import error

logger = structlog.get_logger()

# Public lead form limits per client IP
LEAD_CAPTURE_PER_MINUTE = 5
LEAD_CAPTURE_PER_HOUR = 30


class RateLimitResult(NamedTuple):
    """Result of a rate limit check."""

    allowed: bool
    requests_remaining: int
    retry_after: int | None  # seconds until the blocking window resets


def _count_request(table, action: str, window: str, bucket: int, identifier: str, expires_at: int) -> int:
    response = table.update_item(
        Key={"PK": f"RATELIMIT#{action}#{window}#{bucket}", "SK": identifier},
        UpdateExpression="SET #count = if_not_exists(#count, :zero) + :one, #ttl = :ttl",
        ExpressionAttributeNames={"#count": "count", "#ttl": "ttl"},
        ExpressionAttributeValues={":zero": 0, ":one": 1, ":ttl": expires_at},
        ReturnValues="UPDATED_NEW",
    )
    return int(response["Attributes"]["count"])


def check_rate_limit(
    table,
    identifier: str,
    action: str,
    requests_per_minute: int = LEAD_CAPTURE_PER_MINUTE,
    requests_per_hour: int = LEAD_CAPTURE_PER_HOUR,
) -> RateLimitResult:
    """Count a request and decide whether it may proceed.

    Windows are checked shortest first; a request rejected by the minute
    window is not counted against the hour window. DynamoDB errors fail
    open so a throttled table never blocks lead capture.

    Args:
        table: DynamoDB Table resource.
        identifier: Client identifier, usually the source IP.
        action: Name of the limited action, e.g. "lead_capture".
        requests_per_minute: Requests allowed per calendar minute.
        requests_per_hour: Requests allowed per calendar hour.
    """
    now = int(time.time())
    remaining = []

    try:
        for window, seconds, limit in (("MIN", 60, requests_per_minute), ("HOUR", 3600, requests_per_hour)):
            count = _count_request(table, action, window, now // seconds, identifier, now + 2 * seconds)
            if count > limit:
                logger.warning(
                    "Rate limit exceeded",
                    window=window,
                    identifier=identifier[:20],
                    action=action,
                    count=count,
                    limit=limit,
                )
                return RateLimitResult(allowed=False, requests_remaining=0, retry_after=seconds - now % seconds)
            remaining.append(limit - count)
    except ClientError as e:
        logger.error("Rate limiter DynamoDB error", error=str(e), identifier=identifier[:20], action=action)
        return RateLimitResult(allowed=True, requests_remaining=-1, retry_after=None)

    return RateLimitResult(allowed=True, requests_remaining=min(remaining), retry_after=None)


def get_client_ip(event: dict) -> str:
    """Client IP of an API Gateway event.

    Behind CloudFront the first X-Forwarded-For entry is the client.
    """
    headers = event.get("headers") or {}
    forwarded_for = headers.get("X-Forwarded-For") or headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    identity = (event.get("requestContext") or {}).get("identity") or {}
    return identity.get("sourceIp", "unknown")


def rate_limit_response(retry_after: int) -> dict:
    """429 response carrying a Retry-After header."""
    response = error("Too many requests. Please try again later.", 429, error_code="RATE_LIMITED")
    response["headers"] = {**response["headers"], "Retry-After": str(retry_after)}
    return response
