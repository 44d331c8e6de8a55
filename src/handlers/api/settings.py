"""Site settings API handler.

Routes:
    GET /settings   Public: current settings merged over defaults
    PUT /settings   Admin: update recognized keys; unknown keys are ignored
"""

from typing import Any

import structlog
from botocore.exceptions import ClientError
from pydantic import ValidationError as PydanticValidationError

from folio.models.settings import SiteSettings
from folio.repositories import SettingsRepository, get_table
from folio.utils.auth import require_admin
from folio.utils.exceptions import UnauthorizedError, ValidationError
from folio.utils.responses import (
    error,
    method_not_allowed,
    parse_json_body,
    success,
    unauthorized,
    validation_error,
)

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle settings API requests."""
    try:
        http_method = event.get("httpMethod", "").upper()

        if http_method == "GET":
            return get_settings(SettingsRepository(get_table()))
        if http_method == "PUT":
            require_admin(event)
            return update_settings(SettingsRepository(get_table()), event)
        return method_not_allowed()

    except UnauthorizedError as e:
        return unauthorized(e.message)
    except ValidationError as e:
        return validation_error(e.errors, e.message)
    except Exception as e:
        logger.exception("Settings handler error", error=str(e))
        return error("Internal server error", 500)


def get_settings(repo: SettingsRepository) -> dict:
    """Return settings, falling back to defaults if the table is unavailable."""
    try:
        settings = repo.load()
    except ClientError as e:
        logger.warning("Settings unavailable, serving defaults", error=str(e))
        settings = SiteSettings()
    return success(settings.model_dump(mode="json", by_alias=True))


def update_settings(repo: SettingsRepository, event: dict) -> dict:
    """Validate and store recognized settings."""
    try:
        body = parse_json_body(event)
    except ValueError:
        return error("Invalid JSON body", 400, error_code="INVALID_JSON")

    if not isinstance(body, dict):
        return validation_error([{"field": "body", "message": "Expected an object"}])

    known, ignored = SiteSettings.split_known(body)
    if ignored:
        logger.info("Ignoring unknown settings keys", keys=ignored)

    current = repo.load()
    try:
        merged = SiteSettings.model_validate({**current.model_dump(), **known})
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e)

    repo.save({name: getattr(merged, name) for name in known})

    return success({
        "settings": merged.model_dump(mode="json", by_alias=True),
        "ignored": ignored,
    })
