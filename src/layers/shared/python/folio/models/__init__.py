"""Pydantic models for Folio entities."""

from folio.models.base import BaseModel
from folio.models.interaction import EventType, InteractionEvent
from folio.models.lead import (
    CreateLeadRequest,
    Lead,
    LeadClassification,
    LeadStatus,
    UpdateLeadRequest,
)
from folio.models.page_view import PageView
from folio.models.session import DeviceType, TrackedSession
from folio.models.settings import SiteSettings

__all__ = [
    # Base
    "BaseModel",
    # Tracking
    "DeviceType",
    "TrackedSession",
    "EventType",
    "InteractionEvent",
    "PageView",
    # Leads
    "Lead",
    "LeadStatus",
    "LeadClassification",
    "CreateLeadRequest",
    "UpdateLeadRequest",
    # Settings
    "SiteSettings",
]
