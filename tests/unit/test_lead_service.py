"""Tests for lead capture and administration."""

import pytest

from folio.models.lead import CreateLeadRequest, UpdateLeadRequest
from folio.models.session import TrackedSession
from folio.repositories.lead import LeadRepository
from folio.repositories.session import SessionRepository
from folio.services.lead_service import LeadService, RescorePolicy
from folio.utils.exceptions import NotFoundError


@pytest.fixture
def sessions(dynamodb_table):
    return SessionRepository(dynamodb_table)


@pytest.fixture
def leads(dynamodb_table):
    return LeadRepository(dynamodb_table)


@pytest.fixture
def service(leads, sessions):
    return LeadService(leads, sessions, policy=RescorePolicy.KEEP_FIRST_SCORE)


def _request(**fields) -> CreateLeadRequest:
    return CreateLeadRequest.model_validate(fields)


class TestRescorePolicy:
    """Tests for RescorePolicy.from_env."""

    def test_default(self, monkeypatch):
        """Keeping the first score is the default."""
        monkeypatch.delenv("LEAD_RESCORE_POLICY", raising=False)

        assert RescorePolicy.from_env() == RescorePolicy.KEEP_FIRST_SCORE

    def test_rescore(self, monkeypatch):
        """The policy can be switched by environment."""
        monkeypatch.setenv("LEAD_RESCORE_POLICY", "RESCORE")

        assert RescorePolicy.from_env() == RescorePolicy.RESCORE

    def test_unknown_value(self, monkeypatch):
        """Unknown values fall back to the default."""
        monkeypatch.setenv("LEAD_RESCORE_POLICY", "sometimes")

        assert RescorePolicy.from_env() == RescorePolicy.KEEP_FIRST_SCORE


class TestLeadCapture:
    """Tests for LeadService.capture."""

    def test_new_lead_with_session(self, service, sessions):
        """A new lead is scored from its session and converts it."""
        sessions.create(TrackedSession(session_id="sess_1", page_count=5, duration_seconds=320,
                                       max_scroll_depth=90))

        lead, created = service.capture(_request(email="Jane@Startup.io", name="Jane", sessionId="sess_1"))

        assert created is True
        assert lead.email == "jane@startup.io"
        # 50 + 20 business + 10 name + 15 pages + 10 duration + 10 scroll
        assert lead.ai_score == 100
        assert lead.ai_classification == "hot"
        assert lead.pages_viewed == 5
        assert lead.time_on_site_seconds == 320
        assert lead.scroll_depth_avg == 90

        session = sessions.get_by_id("sess_1")
        assert session.converted is True
        assert session.conversion_type == "lead_capture"

    def test_new_lead_without_session(self, service):
        """Without a session only identity signals count."""
        lead, created = service.capture(_request(email="test@gmail.com"))

        assert created is True
        assert lead.ai_score == 50
        assert lead.ai_score_reasons == ["Free email domain"]
        assert lead.pages_viewed == 1

    def test_duplicate_keeps_first_score(self, service, sessions):
        """Re-submitting an email relinks the session without rescoring."""
        first, _ = service.capture(_request(email="test@gmail.com", sessionId="sess_a", sourcePage="/a"))
        sessions.create(TrackedSession(session_id="sess_b", page_count=9, duration_seconds=900))

        second, created = service.capture(
            _request(email="TEST@gmail.com", name="Tess", company="Acme", sessionId="sess_b", sourcePage="/b")
        )

        assert created is False
        assert second.id == first.id
        assert second.ai_score == 50
        assert second.session_id == "sess_b"
        assert second.source_page == "/b"
        assert second.name is None

    def test_duplicate_with_rescore_policy(self, leads, sessions):
        """Under the rescore policy a re-submission is scored again."""
        service = LeadService(leads, sessions, policy=RescorePolicy.RESCORE)
        service.capture(_request(email="test@gmail.com"))

        lead, created = service.capture(_request(email="test@gmail.com", name="Tess", company="Acme"))

        assert created is False
        assert lead.ai_score == 75
        assert leads.get_by_email("test@gmail.com").ai_score == 75


class TestLeadAdmin:
    """Tests for lead administration."""

    def test_get_unknown(self, service):
        """Unknown ids raise NotFoundError."""
        with pytest.raises(NotFoundError):
            service.get("missing")

    def test_get_by_id(self, service):
        """Leads are found by id."""
        lead, _ = service.capture(_request(email="a@gmail.com"))

        assert service.get(lead.id).email == "a@gmail.com"

    def test_update_contacted_stamps_time(self, service):
        """Moving to contacted stamps contacted_at."""
        lead, _ = service.capture(_request(email="a@gmail.com"))

        updated = service.update(lead.id, UpdateLeadRequest(status="contacted", notes="Called"))

        assert updated.status == "contacted"
        assert updated.contacted_at is not None
        assert updated.converted_at is None
        assert service.get(lead.id).notes == "Called"

    def test_update_converted_stamps_time(self, service):
        """Moving to converted stamps converted_at."""
        lead, _ = service.capture(_request(email="a@gmail.com"))

        updated = service.update(lead.id, UpdateLeadRequest(status="converted"))

        assert updated.converted_at is not None

    def test_stats(self, service):
        """Stats count by status and classification."""
        service.capture(_request(email="a@gmail.com"))
        service.capture(_request(email="b@google.com", name="B", company="G"))
        lead, _ = service.capture(_request(email="c@acme.org"))
        service.update(lead.id, UpdateLeadRequest(status="converted"))

        stats = service.stats()

        assert stats["total"] == 3
        assert stats["new"] == 2
        assert stats["converted"] == 1
        assert stats["hot"] == 1
        assert stats["warm"] == 1
        assert stats["cold"] == 1
        # (50 + 100 + 65) / 3
        assert stats["avgScore"] == 71.7

    def test_stats_empty(self, service):
        """No leads yields zeros."""
        assert service.stats() == {
            "total": 0,
            "new": 0,
            "hot": 0,
            "warm": 0,
            "cold": 0,
            "converted": 0,
            "avgScore": 0,
        }

    def test_list_filters(self, service):
        """Leads can be filtered by classification."""
        service.capture(_request(email="a@gmail.com"))
        service.capture(_request(email="b@google.com", name="B", company="G"))

        hot, _ = service.list_leads(classification="hot")

        assert [lead.email for lead in hot] == ["b@google.com"]
