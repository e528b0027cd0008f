"""HTTP status mapping of application exceptions."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.core import (
    ApplicationException,
    ConfigurationException,
    InvalidTransitionException,
    PermissionDeniedException,
    ResourceNotFoundException,
    ValidationException,
)
from src.shared.api.middleware import (
    CorrelationIDMiddleware,
    application_exception_handler,
    global_exception_handler,
)

ERRORS = {
    "missing": ResourceNotFoundException("Ticket", "t-1"),
    "denied": PermissionDeniedException("tickets.reassign", "helpdesk"),
    "invalid": ValidationException("Unknown status 'x'", {"accepted": ["resolved"]}),
    "transition": InvalidTransitionException("t-1", "closed", "assign"),
    "config": ConfigurationException("RBAC reload failed"),
}


@pytest.fixture
def client():
    app = FastAPI()
    app.add_middleware(CorrelationIDMiddleware)
    app.add_exception_handler(ApplicationException, application_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    @app.get("/raise/{name}")
    async def raise_error(name: str):
        raise ERRORS[name]

    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.parametrize("name, status_code", [
    ("missing", 404),
    ("denied", 403),
    ("invalid", 422),
    ("transition", 409),
    ("config", 500),
])
def test_status_codes(client, name, status_code):
    response = client.get(f"/raise/{name}")
    assert response.status_code == status_code


def test_error_body_carries_details_and_correlation_id(client):
    response = client.get("/raise/invalid", headers={"X-Correlation-ID": "abc-123"})

    body = response.json()
    assert body["detail"] == "Unknown status 'x'"
    assert body["details"] == {"accepted": ["resolved"]}
    assert body["correlation_id"] == "abc-123"


def test_unmapped_errors_hide_their_message(client):
    body = client.get("/raise/config").json()
    assert body["detail"] == "Internal server error"
