"""Leads API handler.

Routes:
    POST /leads                      Public lead capture (rate limited per IP)
    GET  /leads                      Admin: list leads (status, classification, limit, cursor)
    GET  /leads?action=stats         Admin: lead statistics
    GET  /leads/{lead_id}            Admin: get a lead
    PUT  /leads/{lead_id}            Admin: update status, notes or classification
"""

from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from folio.models.lead import CreateLeadRequest, LeadClassification, LeadStatus, UpdateLeadRequest
from folio.repositories import LeadRepository, SessionRepository, get_table
from folio.services.lead_service import LeadService
from folio.utils.auth import require_admin
from folio.utils.exceptions import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from folio.utils.query_params import decode_cursor, encode_cursor, get_query_params, parse_int
from folio.utils.rate_limiter import check_rate_limit, get_client_ip, rate_limit_response
from folio.utils.responses import (
    error,
    method_not_allowed,
    not_found,
    parse_json_body,
    success,
    unauthorized,
    validation_error,
)

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle leads API requests."""
    try:
        http_method = event.get("httpMethod", "").upper()
        path_params = event.get("pathParameters", {}) or {}
        lead_id = path_params.get("lead_id")

        table = get_table()

        if http_method == "POST" and not lead_id:
            return capture_lead(table, event)

        # Everything else is admin only
        require_admin(event)
        service = LeadService(LeadRepository(table), SessionRepository(table))

        if http_method == "GET" and lead_id:
            return success(service.get(lead_id).model_dump(mode="json"))
        if http_method == "GET":
            params = get_query_params(event)
            if params.get("action") == "stats":
                return success(service.stats())
            return list_leads(service, params)
        if http_method == "PUT" and lead_id:
            return update_lead(service, lead_id, event)

        return method_not_allowed()

    except UnauthorizedError as e:
        return unauthorized(e.message)
    except ValidationError as e:
        return validation_error(e.errors, e.message)
    except NotFoundError as e:
        return not_found(e.resource_type, e.resource_id)
    except ConflictError as e:
        return error(e.message, 409, error_code="CONFLICT")
    except Exception as e:
        logger.exception("Leads handler error", error=str(e))
        return error("Internal server error", 500)


def capture_lead(table, event: dict) -> dict:
    """Capture a lead from the public form."""
    rate_check = check_rate_limit(table, identifier=get_client_ip(event), action="lead_capture")
    if not rate_check.allowed:
        return rate_limit_response(rate_check.retry_after or 60)

    try:
        body = parse_json_body(event)
    except ValueError:
        return error("Invalid JSON body", 400, error_code="INVALID_JSON")

    if not isinstance(body, dict) or not body.get("email"):
        return validation_error(
            [{"field": "email", "message": "Email is required"}],
            "Email is required",
        )

    try:
        request = CreateLeadRequest.model_validate(body)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e)

    service = LeadService(LeadRepository(table), SessionRepository(table))
    lead, created_new = service.capture(request)

    response = {"success": True, "lead": lead.summary()}
    if not created_new:
        response["message"] = "Lead already exists - updated session"
    return success(response)


def list_leads(service: LeadService, params: dict) -> dict:
    """List leads newest first."""
    limit = parse_int(params.get("limit"), "limit", default=50, maximum=100)

    status = params.get("status")
    if status and status not in {s.value for s in LeadStatus}:
        return validation_error([{"field": "status", "message": "Unknown status"}], "Invalid status")

    classification = params.get("classification")
    if classification and classification not in {c.value for c in LeadClassification}:
        return validation_error(
            [{"field": "classification", "message": "Unknown classification"}],
            "Invalid classification",
        )

    leads, next_key = service.list_leads(
        status=status,
        classification=classification,
        limit=limit,
        last_key=decode_cursor(params.get("cursor")),
    )

    return success({
        "items": [lead.model_dump(mode="json") for lead in leads],
        "pagination": {
            "limit": limit,
            "next_cursor": encode_cursor(next_key),
        },
    })


def update_lead(service: LeadService, lead_id: str, event: dict) -> dict:
    """Apply an admin update to a lead."""
    try:
        body = parse_json_body(event)
    except ValueError:
        return error("Invalid JSON body", 400, error_code="INVALID_JSON")

    try:
        request = UpdateLeadRequest.model_validate(body)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e)

    lead = service.update(lead_id, request)
    return success(lead.model_dump(mode="json"))
