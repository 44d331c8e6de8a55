"""Authentication context helpers.

Identity verification itself happens in the API Gateway authorizer backed
by the external identity provider. Handlers only consume the resulting
authorizer context and ask one question: is this an authenticated admin?
"""

from dataclasses import dataclass
from typing import Any

import structlog

from folio.utils.exceptions import UnauthorizedError

logger = structlog.get_logger()


@dataclass
class AuthContext:
    """Authentication context extracted from API Gateway event."""

    user_id: str
    email: str | None = None
    is_admin: bool = False


def get_auth_context(event: dict[str, Any]) -> AuthContext:
    """Extract authentication context from API Gateway event.

    Args:
        event: API Gateway event dict.

    Returns:
        AuthContext with user information.

    Raises:
        ValueError: If authentication context cannot be extracted.
    """
    request_context = event.get("requestContext", {}) or {}
    authorizer = request_context.get("authorizer", {}) or {}

    # For Lambda authorizer responses, context is nested differently
    # depending on payload format version
    context = authorizer
    if "lambda" in authorizer:
        context = authorizer["lambda"] or {}

    user_id = context.get("userId") or context.get("user_id") or context.get("sub")
    if not user_id:
        raise ValueError("No user ID in authentication context")

    is_admin = context.get("isAdmin", False) or context.get("is_admin", False)
    if isinstance(is_admin, str):
        is_admin = is_admin.lower() == "true"

    return AuthContext(
        user_id=user_id,
        email=context.get("email"),
        is_admin=bool(is_admin),
    )


def require_admin(event: dict[str, Any]) -> AuthContext:
    """Ensure the request comes from an authenticated admin.

    Args:
        event: API Gateway event.

    Returns:
        The caller's AuthContext.

    Raises:
        UnauthorizedError: If the caller is anonymous or not an admin.
    """
    try:
        auth = get_auth_context(event)
    except ValueError:
        raise UnauthorizedError()

    if not auth.is_admin:
        logger.warning("Admin access denied", user_id=auth.user_id)
        raise UnauthorizedError()

    return auth
