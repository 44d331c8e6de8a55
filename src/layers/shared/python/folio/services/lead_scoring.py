"""Heuristic lead scoring.

Scores a newly captured lead from 0 to 100 using its email domain, the
identity fields it supplied and, when available, the behavior of the
session it was captured in. Every contributing signal appends one reason
string, in evaluation order, so the score is explainable.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

import structlog

from folio.models.lead import LeadClassification
from folio.models.session import TrackedSession

logger = structlog.get_logger()

BASE_SCORE = 50

ENTERPRISE_DOMAINS = frozenset(
    {"google.com", "microsoft.com", "amazon.com", "apple.com", "meta.com", "nvidia.com"}
)
BUSINESS_TLDS = (".co", ".io", ".ai", ".tech", ".dev")
FREE_EMAIL_DOMAINS = frozenset({"gmail.com", "yahoo.com", "hotmail.com", "outlook.com", "icloud.com"})

HOT_THRESHOLD = 80
WARM_THRESHOLD = 60


@dataclass
class LeadScore:
    """Result of scoring one lead."""

    score: int
    reasons: list[str] = field(default_factory=list)
    classification: str = LeadClassification.COLD.value


def classify(score: int) -> str:
    """Map a score to hot/warm/cold. Spam is never assigned here."""
    if score >= HOT_THRESHOLD:
        return LeadClassification.HOT.value
    if score >= WARM_THRESHOLD:
        return LeadClassification.WARM.value
    return LeadClassification.COLD.value


def _email_domain(email: str) -> str:
    _, _, domain = email.partition("@")
    return domain.strip().lower()


def score_lead(
    email: str,
    name: str | None = None,
    company: str | None = None,
    session: TrackedSession | None = None,
) -> LeadScore:
    """Score a lead. Pure: the session, if any, is passed in already loaded.

    Args:
        email: Lead email address.
        name: Optional name.
        company: Optional company.
        session: The lead's session, or None when unknown.

    Returns:
        LeadScore with the clamped score, reasons and classification.
    """
    score = BASE_SCORE
    reasons: list[str] = []

    domain = _email_domain(email)
    if domain in ENTERPRISE_DOMAINS:
        score += 30
        reasons.append("Enterprise email domain")
    elif domain.endswith(BUSINESS_TLDS):
        score += 20
        reasons.append("Business email domain")
    elif domain not in FREE_EMAIL_DOMAINS:
        score += 15
        reasons.append("Custom email domain")
    else:
        reasons.append("Free email domain")

    if name and name.strip():
        score += 10
        reasons.append("Name provided")

    if company and company.strip():
        score += 15
        reasons.append("Company provided")

    if session is not None:
        if session.page_count >= 5:
            score += 15
            reasons.append("High page engagement (5+ pages)")
        elif session.page_count >= 3:
            score += 10
            reasons.append("Good page engagement (3+ pages)")

        if session.duration_seconds >= 300:
            score += 10
            reasons.append("Long session duration (5+ min)")
        elif session.duration_seconds >= 120:
            score += 5
            reasons.append("Good session duration (2+ min)")

        if session.max_scroll_depth >= 75:
            score += 10
            reasons.append("High scroll engagement (75%+)")

        # Only negative signal
        if session.rage_click_count > 0:
            score -= 5
            reasons.append("Potential frustration (rage clicks detected)")

    score = max(0, min(100, score))
    return LeadScore(score=score, reasons=reasons, classification=classify(score))


class LeadScorer:
    """Scores leads, resolving the session reference through a lookup.

    A session id that cannot be resolved means no behavioral signal; it
    is not an error.
    """

    def __init__(self, session_lookup: Callable[[str], TrackedSession | None]):
        self.session_lookup = session_lookup

    def score(
        self,
        email: str,
        name: str | None = None,
        company: str | None = None,
        session_id: str | None = None,
    ) -> tuple[LeadScore, TrackedSession | None]:
        """Score a lead and return the session used, if any."""
        session = None
        if session_id:
            session = self.session_lookup(session_id)
            if session is None:
                logger.info("Lead session not found, scoring without behavior", session_id=session_id)

        return score_lead(email, name=name, company=company, session=session), session
