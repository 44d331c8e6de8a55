"""Tests for the tracking ingestion API handler."""

import json


def _post(public_event, events) -> dict:
    return public_event(method="POST", path="/track", body={"events": events})


def _session(session_id: str = "sess_h1", **data) -> dict:
    payload = {
        "sessionId": session_id,
        "visitorId": "vis_h1",
        "deviceType": "mobile",
        "browser": "Safari",
        "os": "iOS",
        "entryPage": "/",
        "referrer": "https://www.google.com/",
    }
    payload.update(data)
    return {"type": "session", "data": payload}


class TestTrack:
    """Tests for POST/GET /track."""

    def test_health_check(self, dynamodb_table, public_event):
        """GET answers a health check."""
        from api.track import handler

        response = handler(public_event(method="GET", path="/track"), None)

        assert response["statusCode"] == 200
        assert json.loads(response["body"]) == {"status": "ok"}

    def test_ingest_batch(self, dynamodb_table, public_event):
        """A mixed batch is persisted and counted."""
        from api.track import handler
        from folio.repositories import SessionRepository

        events = [
            _session(),
            {"type": "pageview", "data": {"sessionId": "sess_h1", "pagePath": "/", "title": "Home"}},
            {"type": "event", "data": {"sessionId": "sess_h1", "pagePath": "/", "eventType": "click",
                                       "x": 100, "y": 200}},
        ]

        response = handler(_post(public_event, events), None)

        assert response["statusCode"] == 200
        assert json.loads(response["body"]) == {"success": True, "processed": 3}

        session = SessionRepository(dynamodb_table).get_by_id("sess_h1")
        assert session.device_type == "mobile"
        assert session.page_count == 1
        assert session.click_count == 1
        assert session.exit_page == "/"

    def test_duplicate_session_is_noop(self, dynamodb_table, public_event):
        """Two session starts with one id leave a single, unchanged row."""
        from api.track import handler
        from folio.repositories import SessionRepository

        handler(_post(public_event, [_session(browser="Safari")]), None)
        response = handler(_post(public_event, [_session(browser="Chrome")]), None)

        assert response["statusCode"] == 200
        sessions, _ = SessionRepository(dynamodb_table).list_recent()
        assert len(sessions) == 1
        assert sessions[0].browser == "Safari"

    def test_second_page_view_updates_session(self, dynamodb_table, public_event):
        """Navigation raises page_count and moves exit_page."""
        from api.track import handler
        from folio.repositories import SessionRepository

        handler(_post(public_event, [
            _session(),
            {"type": "pageview", "data": {"sessionId": "sess_h1", "pagePath": "/"}},
        ]), None)
        handler(_post(public_event, [
            {"type": "pageview", "data": {"sessionId": "sess_h1", "pagePath": "/pricing"}},
        ]), None)

        session = SessionRepository(dynamodb_table).get_by_id("sess_h1")
        assert session.page_count == 2
        assert session.exit_page == "/pricing"

    def test_empty_batch(self, dynamodb_table, public_event):
        """An empty batch is accepted."""
        from api.track import handler

        response = handler(_post(public_event, []), None)

        assert response["statusCode"] == 200
        assert json.loads(response["body"])["processed"] == 0

    def test_events_not_a_list(self, dynamodb_table, public_event):
        """A non-list events field is rejected."""
        from api.track import handler

        event = public_event(method="POST", path="/track", body={"events": "nope"})

        response = handler(event, None)

        assert response["statusCode"] == 400
        assert json.loads(response["body"])["error"] == "Invalid events"

    def test_missing_events(self, dynamodb_table, public_event):
        """A body without events is rejected."""
        from api.track import handler

        response = handler(public_event(method="POST", path="/track", body={}), None)

        assert response["statusCode"] == 400

    def test_invalid_json(self, dynamodb_table, public_event):
        """Malformed JSON is a 400."""
        from api.track import handler

        response = handler(public_event(method="POST", path="/track", body="{not json"), None)

        assert response["statusCode"] == 400
        assert json.loads(response["body"])["error_code"] == "INVALID_JSON"

    def test_invalid_rows_do_not_fail_request(self, dynamodb_table, public_event):
        """Bad rows are dropped; the request still succeeds."""
        from api.track import handler

        events = [
            {"type": "event", "data": {"sessionId": "s", "pagePath": "/", "eventType": "hover"}},
            {"type": "mystery", "data": {}},
        ]

        response = handler(_post(public_event, events), None)

        assert response["statusCode"] == 200
        assert json.loads(response["body"])["processed"] == 2

    def test_method_not_allowed(self, dynamodb_table, public_event):
        """Only GET and POST are routed."""
        from api.track import handler

        response = handler(public_event(method="DELETE", path="/track"), None)

        assert response["statusCode"] == 405
