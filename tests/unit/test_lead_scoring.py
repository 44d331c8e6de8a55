"""Tests for heuristic lead scoring."""

import pytest

from folio.models.session import TrackedSession
from folio.services.lead_scoring import LeadScorer, classify, score_lead


def _session(**overrides) -> TrackedSession:
    fields = {"session_id": "sess_1"}
    fields.update(overrides)
    return TrackedSession(**fields)


class TestScoreLead:
    """Tests for score_lead."""

    def test_free_email_only(self):
        """A bare free-mail address keeps the base score."""
        result = score_lead("test@gmail.com")

        assert result.score == 50
        assert result.classification == "cold"
        assert result.reasons == ["Free email domain"]

    def test_enterprise_lead_with_engaged_session_is_capped(self):
        """Every positive signal together is capped at 100."""
        session = _session(page_count=6, duration_seconds=400, max_scroll_depth=80)

        result = score_lead("ceo@nvidia.com", name="Jensen", company="NVIDIA", session=session)

        assert result.score == 100
        assert result.classification == "hot"
        assert result.reasons == [
            "Enterprise email domain",
            "Name provided",
            "Company provided",
            "High page engagement (5+ pages)",
            "Long session duration (5+ min)",
            "High scroll engagement (75%+)",
        ]

    @pytest.mark.parametrize(
        "email,expected_score,reason",
        [
            ("a@google.com", 80, "Enterprise email domain"),
            ("a@startup.io", 70, "Business email domain"),
            ("a@studio.dev", 70, "Business email domain"),
            ("a@acme-widgets.org", 65, "Custom email domain"),
            ("a@yahoo.com", 50, "Free email domain"),
        ],
    )
    def test_domain_signals(self, email, expected_score, reason):
        """The email domain contributes exactly one signal."""
        result = score_lead(email)

        assert result.score == expected_score
        assert result.reasons == [reason]

    def test_blank_name_and_company_ignored(self):
        """Whitespace-only identity fields do not count."""
        result = score_lead("a@gmail.com", name="  ", company="")

        assert result.score == 50

    def test_moderate_engagement(self):
        """Mid-range engagement earns the smaller bonuses."""
        session = _session(page_count=3, duration_seconds=150, max_scroll_depth=50)

        result = score_lead("a@gmail.com", session=session)

        assert result.score == 65
        assert result.reasons == [
            "Free email domain",
            "Good page engagement (3+ pages)",
            "Good session duration (2+ min)",
        ]
        assert result.classification == "warm"

    def test_rage_clicks_penalized(self):
        """Rage clicks are the only negative signal."""
        session = _session(rage_click_count=2)

        result = score_lead("a@gmail.com", session=session)

        assert result.score == 45
        assert result.reasons[-1] == "Potential frustration (rage clicks detected)"

    def test_domain_case_insensitive(self):
        """Domain matching ignores case."""
        assert score_lead("A@Google.COM").score == 80


class TestClassify:
    """Tests for classify."""

    @pytest.mark.parametrize(
        "score,expected",
        [(100, "hot"), (80, "hot"), (79, "warm"), (60, "warm"), (59, "cold"), (0, "cold")],
    )
    def test_thresholds(self, score, expected):
        """Hot from 80, warm from 60, cold below."""
        assert classify(score) == expected


class TestLeadScorer:
    """Tests for LeadScorer."""

    def test_unknown_session_scores_without_behavior(self):
        """An unresolvable session id is not an error."""
        scorer = LeadScorer(lambda session_id: None)

        result, session = scorer.score("a@gmail.com", session_id="sess_missing")

        assert session is None
        assert result.score == 50

    def test_session_lookup_used(self):
        """The resolved session feeds the behavioral signals."""
        engaged = _session(page_count=5)
        scorer = LeadScorer(lambda session_id: engaged if session_id == "sess_1" else None)

        result, session = scorer.score("a@gmail.com", session_id="sess_1")

        assert session is engaged
        assert result.score == 65

    def test_no_session_id_skips_lookup(self):
        """Without a session id the lookup is never called."""
        def lookup(session_id):
            raise AssertionError("lookup should not be called")

        result, session = LeadScorer(lookup).score("a@gmail.com")

        assert session is None
        assert result.score == 50
