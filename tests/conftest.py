"""Pytest configuration and fixtures."""

import json
import os

import pytest

# Handlers read these at call time; set before anything builds a client
os.environ["TABLE_NAME"] = "folio-test"
os.environ["STAGE"] = "test"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"

TABLE_NAME = "folio-test"
INDEXES = ("GSI1", "GSI2")


def _key_schema(pk: str, sk: str) -> list[dict]:
    return [
        {"AttributeName": pk, "KeyType": "HASH"},
        {"AttributeName": sk, "KeyType": "RANGE"},
    ]


@pytest.fixture
def dynamodb_table(monkeypatch):
    """In-memory copy of the single tracking table, with both GSIs."""
    import boto3
    from moto import mock_aws

    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")

    key_names = ["PK", "SK"] + [f"{index}{part}" for index in INDEXES for part in ("PK", "SK")]

    with mock_aws():
        table = boto3.resource("dynamodb", region_name="us-east-1").create_table(
            TableName=TABLE_NAME,
            KeySchema=_key_schema("PK", "SK"),
            AttributeDefinitions=[{"AttributeName": name, "AttributeType": "S"} for name in key_names],
            GlobalSecondaryIndexes=[
                {
                    "IndexName": index,
                    "KeySchema": _key_schema(f"{index}PK", f"{index}SK"),
                    "Projection": {"ProjectionType": "ALL"},
                }
                for index in INDEXES
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        table.wait_until_exists()

        yield table


@pytest.fixture
def sample_session():
    """A desktop Chrome session that landed on / from Google."""
    from folio.models.session import TrackedSession

    return TrackedSession(
        session_id="sess_test_001",
        visitor_id="vis_test_001",
        device_type="desktop",
        browser="Chrome",
        browser_version="120.0.0.0",
        os="macOS",
        os_version="10.15",
        screen_width=1920,
        screen_height=1080,
        entry_page="/",
        referrer="https://www.google.com/",
        utm_source="newsletter",
    )


@pytest.fixture
def api_gateway_event():
    """Factory for API Gateway proxy events.

    Requests come from an authenticated admin unless admin=False, and are
    anonymous when authenticated=False. A str body is passed through as is.
    """
    def _create_event(
        method: str = "GET",
        path: str = "/",
        path_params: dict = None,
        query_params: dict = None,
        body=None,
        user_id: str = "test-user-123",
        admin: bool = True,
        authenticated: bool = True,
        source_ip: str = "203.0.113.10",
    ):
        authorizer = {}
        if authenticated:
            authorizer = {
                "userId": user_id,
                "email": "admin@example.com",
                "isAdmin": "true" if admin else "false",
            }

        if body is not None and not isinstance(body, str):
            body = json.dumps(body)

        return {
            "httpMethod": method,
            "path": path,
            "pathParameters": path_params or {},
            "queryStringParameters": query_params or {},
            "body": body,
            "headers": {"Content-Type": "application/json"},
            "requestContext": {
                "authorizer": authorizer,
                "identity": {"sourceIp": source_ip},
            },
        }

    return _create_event


@pytest.fixture
def public_event(api_gateway_event):
    """Factory for anonymous API Gateway events."""
    def _create_event(**kwargs):
        return api_gateway_event(authenticated=False, **kwargs)

    return _create_event
