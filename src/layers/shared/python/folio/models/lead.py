"""Lead model for captured contacts.

Leads are unique per lower-cased email. The behavioral fields are a
snapshot copied from the referenced session at creation time.

DynamoDB keys:
    PK: LEAD#{email}
    SK: META
    GSI1PK: LEADS
    GSI1SK: {created_at}#{id}
    GSI2PK: LEAD#ID
    GSI2SK: {id}
"""

import re
from datetime import datetime
from enum import Enum

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, Field, field_validator

from folio.models.base import BaseModel, to_iso

# Email validation regex
EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


class LeadStatus(str, Enum):
    """Lead pipeline status. Only "new" is assigned automatically."""

    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    CONVERTED = "converted"
    LOST = "lost"
    SPAM = "spam"


class LeadClassification(str, Enum):
    """Coarse lead quality bucket.

    SPAM is reserved for manual tagging; scoring never assigns it.
    """

    HOT = "hot"
    WARM = "warm"
    COLD = "cold"
    SPAM = "spam"


class Lead(BaseModel):
    """A captured contact with a heuristic qualification score."""

    email: str = Field(..., min_length=3, max_length=320)
    name: str | None = Field(None, max_length=200)
    company: str | None = Field(None, max_length=200)
    phone: str | None = Field(None, max_length=30)

    source: str = Field(default="website")
    source_page: str | None = None
    referrer: str | None = Field(None, max_length=2000)
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    session_id: str | None = None

    ai_score: int = Field(default=0, ge=0, le=100)
    ai_score_reasons: list[str] = Field(default_factory=list)
    ai_classification: LeadClassification | None = None

    # Behavioral snapshot
    pages_viewed: int = Field(default=1, ge=0)
    time_on_site_seconds: int = Field(default=0, ge=0)
    scroll_depth_avg: int = Field(default=0, ge=0, le=100)

    status: LeadStatus = LeadStatus.NEW
    notes: str | None = Field(None, max_length=5000)
    contacted_at: datetime | None = None
    converted_at: datetime | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase for consistent lookups."""
        return v.strip().lower()

    def get_pk(self) -> str:
        """Get partition key: LEAD#{email}."""
        return f"LEAD#{self.email}"

    def get_sk(self) -> str:
        """Get sort key: META."""
        return "META"

    def get_gsi_keys(self) -> dict[str, str]:
        """Get GSI1 (listing) and GSI2 (id lookup) keys."""
        return {
            "GSI1PK": "LEADS",
            "GSI1SK": f"{to_iso(self.created_at)}#{self.id}",
            "GSI2PK": "LEAD#ID",
            "GSI2SK": self.id,
        }

    def summary(self) -> dict:
        """Public-facing summary returned by the capture endpoint."""
        return {
            "id": self.id,
            "email": self.email,
            "score": self.ai_score,
            "classification": self.ai_classification,
        }


class CreateLeadRequest(PydanticBaseModel):
    """Request model for the public lead capture endpoint.

    Accepts the camelCase keys sent by the site's capture form.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    email: str = Field(..., max_length=320)
    name: str | None = Field(None, max_length=200)
    company: str | None = Field(None, max_length=200)
    phone: str | None = Field(None, max_length=30)
    source: str | None = Field(None, max_length=100)
    source_page: str | None = Field(None, alias="sourcePage", max_length=2000)
    session_id: str | None = Field(None, alias="sessionId", max_length=128)
    referrer: str | None = Field(None, max_length=2000)
    utm_source: str | None = Field(None, alias="utmSource", max_length=200)
    utm_medium: str | None = Field(None, alias="utmMedium", max_length=200)
    utm_campaign: str | None = Field(None, alias="utmCampaign", max_length=200)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Reject malformed addresses and normalize case."""
        v = v.strip().lower()
        if not EMAIL_REGEX.match(v):
            raise ValueError("Invalid email address")
        return v


class UpdateLeadRequest(PydanticBaseModel):
    """Request model for admin lead updates."""

    status: LeadStatus | None = None
    notes: str | None = Field(None, max_length=5000)
    ai_classification: LeadClassification | None = Field(None, alias="classification")

    model_config = ConfigDict(populate_by_name=True)
