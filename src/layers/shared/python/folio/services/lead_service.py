"""Lead capture and administration."""

import os
from enum import Enum

import structlog

from folio.models.base import utc_now
from folio.models.lead import CreateLeadRequest, Lead, LeadClassification, LeadStatus, UpdateLeadRequest
from folio.models.session import TrackedSession
from folio.repositories.lead import LeadRepository
from folio.repositories.session import SessionRepository
from folio.services.lead_scoring import LeadScore, LeadScorer
from folio.services.session_stats import round_half_up
from folio.utils.exceptions import ConflictError, NotFoundError

logger = structlog.get_logger()

CONVERSION_TYPE = "lead_capture"


class RescorePolicy(str, Enum):
    """What to do with the score when an existing email is re-submitted."""

    KEEP_FIRST_SCORE = "keep_first_score"
    RESCORE = "rescore"

    @classmethod
    def from_env(cls) -> "RescorePolicy":
        value = os.environ.get("LEAD_RESCORE_POLICY", cls.KEEP_FIRST_SCORE.value)
        try:
            return cls(value.strip().lower())
        except ValueError:
            logger.warning("Unknown lead rescore policy, keeping first score", value=value)
            return cls.KEEP_FIRST_SCORE


def _apply_score(lead: Lead, result: LeadScore, session: TrackedSession | None) -> None:
    """Copy a score and the session's behavioral snapshot onto a lead."""
    lead.ai_score = result.score
    lead.ai_score_reasons = result.reasons
    lead.ai_classification = result.classification
    if session is not None:
        lead.pages_viewed = session.page_count or 1
        lead.time_on_site_seconds = session.duration_seconds or 0
        lead.scroll_depth_avg = session.max_scroll_depth or 0


class LeadService:
    """Captures leads from the public form and serves the admin back office."""

    def __init__(
        self,
        leads: LeadRepository,
        sessions: SessionRepository,
        policy: RescorePolicy | None = None,
    ):
        self.leads = leads
        self.sessions = sessions
        self.scorer = LeadScorer(sessions.get_by_id)
        self.policy = policy or RescorePolicy.from_env()

    def capture(self, request: CreateLeadRequest) -> tuple[Lead, bool]:
        """Create a lead, or update the existing one for the same email.

        Args:
            request: Validated capture request.

        Returns:
            Tuple of (lead, created).
        """
        existing = self.leads.get_by_email(request.email)
        if existing:
            return self._resubmit(existing, request), False

        result, session = self.scorer.score(
            request.email,
            name=request.name,
            company=request.company,
            session_id=request.session_id,
        )

        lead = Lead(
            email=request.email,
            name=request.name or None,
            company=request.company or None,
            phone=request.phone or None,
            source=request.source or "website",
            source_page=request.source_page,
            session_id=request.session_id,
            referrer=request.referrer or None,
            utm_source=request.utm_source or None,
            utm_medium=request.utm_medium or None,
            utm_campaign=request.utm_campaign or None,
        )
        _apply_score(lead, result, session)

        try:
            self.leads.create_lead(lead)
        except ConflictError:
            # Lost a race with a concurrent submission for the same email
            existing = self.leads.get_by_email(request.email)
            if existing is None:
                raise
            return self._resubmit(existing, request), False

        if request.session_id:
            self.sessions.mark_converted(request.session_id, CONVERSION_TYPE)

        logger.info(
            "Lead captured",
            lead_id=lead.id,
            score=lead.ai_score,
            classification=lead.ai_classification,
            has_session=session is not None,
        )
        return lead, True

    def _resubmit(self, lead: Lead, request: CreateLeadRequest) -> Lead:
        """Handle a submission for an email that already has a lead."""
        if self.policy == RescorePolicy.RESCORE:
            result, session = self.scorer.score(
                lead.email,
                name=request.name or lead.name,
                company=request.company or lead.company,
                session_id=request.session_id or lead.session_id,
            )
            if request.session_id:
                lead.session_id = request.session_id
            if request.source_page:
                lead.source_page = request.source_page
            _apply_score(lead, result, session)
            self.leads.update(lead)
            logger.info("Lead rescored", lead_id=lead.id, score=lead.ai_score)
            return lead

        updated = self.leads.relink(lead.email, request.session_id, request.source_page)
        logger.info("Existing lead re-submitted", lead_id=lead.id)
        return updated or lead

    def get(self, lead_id: str) -> Lead:
        """Get a lead by ID.

        Raises:
            NotFoundError: If no lead has this ID.
        """
        lead = self.leads.get_by_id(lead_id)
        if lead is None:
            raise NotFoundError("Lead", lead_id)
        return lead

    def list_leads(
        self,
        status: str | None = None,
        classification: str | None = None,
        limit: int = 50,
        last_key: dict | None = None,
    ) -> tuple[list[Lead], dict | None]:
        """List leads newest first with optional filters."""
        return self.leads.list_leads(
            status=status,
            classification=classification,
            limit=limit,
            last_key=last_key,
        )

    def stats(self) -> dict:
        """Counts per status/classification plus the average score."""
        leads, truncated = self.leads.list_all()
        if truncated:
            logger.debug("Lead stats row cap reached, result truncated")

        total = len(leads)
        return {
            "total": total,
            "new": sum(1 for lead in leads if lead.status == LeadStatus.NEW.value),
            "hot": sum(1 for lead in leads if lead.ai_classification == LeadClassification.HOT.value),
            "warm": sum(1 for lead in leads if lead.ai_classification == LeadClassification.WARM.value),
            "cold": sum(1 for lead in leads if lead.ai_classification == LeadClassification.COLD.value),
            "converted": sum(1 for lead in leads if lead.status == LeadStatus.CONVERTED.value),
            "avgScore": round_half_up(sum(lead.ai_score for lead in leads) / total, 1) if total else 0,
        }

    def update(self, lead_id: str, request: UpdateLeadRequest) -> Lead:
        """Apply an admin update.

        contacted_at and converted_at are stamped when the status moves to
        the matching value.

        Raises:
            NotFoundError: If no lead has this ID.
            ConflictError: If the lead changed since it was read.
        """
        lead = self.get(lead_id)
        previous_status = lead.status

        if request.status is not None and request.status != previous_status:
            lead.status = request.status
            if lead.status == LeadStatus.CONTACTED.value:
                lead.contacted_at = utc_now()
            elif lead.status == LeadStatus.CONVERTED.value:
                lead.converted_at = utc_now()

        if request.notes is not None:
            lead.notes = request.notes
        if request.ai_classification is not None:
            lead.ai_classification = request.ai_classification

        self.leads.update(lead)
        logger.info(
            "Lead updated",
            lead_id=lead.id,
            status_from=previous_status,
            status_to=lead.status,
        )
        return lead
