from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from app.database import get_db
from app.dependencies import get_connectivity_validator, get_secret_service
from app.logging_config import StructuredFormatter
from app.main import app
from app.services.connectivity import ConnectivityValidator
from app.services.quality_api import ApiResponse, Environment
from app.services.secret import SecretService

from tests.fakes import ADMIN_TOKEN, make_jwt

ADMIN_HEADERS = {"Authorization": f"Bearer {ADMIN_TOKEN}"}

FORM = {
    "application_url": "https://ci.example.com",
    "api_url": "https://api.quality.example.com",
    "resource_id": "S1",
    "api_key": "super-secret-key",
}


@pytest.fixture
def client(db_session, client_factory) -> Iterator[TestClient]:
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_connectivity_validator] = lambda: ConnectivityValidator(client_factory)
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


def test_health(client) -> None:
    response = client.get("/api/v1/healthz")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_ready(client) -> None:
    response = client.get("/api/v1/readyz")

    assert response.status_code == 200
    assert response.json()["dependencies"] == {"database": "healthy"}


def test_plugin_descriptor(client) -> None:
    response = client.get("/api/v1/plugin")

    assert response.json() == {
        "display_name": "Quality Report",
        "symbol": "QualityReport",
        "applicable": True,
    }


@pytest.mark.parametrize(
    "headers",
    [{}, {"Authorization": f"Bearer {make_jwt('bob', client_roles=['viewer'])}"}],
)
def test_settings_require_administrator(client, headers) -> None:
    assert client.get("/api/v1/settings", headers=headers).status_code == 403
    response = client.put("/api/v1/settings", json=FORM, headers=headers)

    assert response.status_code == 403
    assert response.json() == {"error": "Access denied", "status_code": 403}


def test_save_then_read_redacts_key(client) -> None:
    response = client.put("/api/v1/settings", json={"QualityReport": FORM}, headers=ADMIN_HEADERS)
    assert response.json() == {"success": True}

    admin = make_jwt("alice", client_roles=["quality-report-admin"])
    body = client.get("/api/v1/settings", headers={"Authorization": f"Bearer {admin}"}).json()

    assert body == {
        "application_url": "https://ci.example.com",
        "api_url": "https://api.quality.example.com",
        "resource_id": "S1",
        "api_key": "********",
        "api_key_configured": True,
    }


def test_save_with_missing_field_is_bad_request(client) -> None:
    form = {k: v for k, v in FORM.items() if k != "api_url"}

    response = client.put("/api/v1/settings", json=form, headers=ADMIN_HEADERS)

    assert response.status_code == 400
    assert response.json()["error"] == "Settings form is missing field 'api_url'"


def test_connection_success(client, fake_client) -> None:
    fake_client.environments = [Environment("S1", "prod")]

    response = client.post("/api/v1/settings/test-connection", json=FORM, headers=ADMIN_HEADERS)

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "message": "Connection Successful."}
    assert fake_client.api_key.get_secret_value() == "super-secret-key"


def test_connection_failure_is_reported_in_body(client, fake_client) -> None:
    fake_client.response = ApiResponse(503)

    response = client.post("/api/v1/settings/test-connection", json=FORM, headers=ADMIN_HEADERS)

    assert response.status_code == 200
    assert response.json() == {
        "status": "error",
        "message": "Unable to connect to API server. Code: 503",
        "reason": "connectivity",
    }


def test_connection_input_error_comes_before_permission(client, client_factory) -> None:
    response = client.post(
        "/api/v1/settings/test-connection", json={**FORM, "application_url": ""}
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Application URL is empty"
    assert client_factory.calls == 0


def test_connection_requires_administrator(client, client_factory) -> None:
    response = client.post("/api/v1/settings/test-connection", json=FORM)

    assert response.status_code == 403
    assert client_factory.calls == 0


def test_connection_does_not_save(client) -> None:
    client.post("/api/v1/settings/test-connection", json=FORM, headers=ADMIN_HEADERS)

    body = client.get("/api/v1/settings", headers=ADMIN_HEADERS).json()

    assert body["api_url"] is None
    assert body["api_key_configured"] is False


def test_rejected_key_is_not_logged(client, caplog) -> None:
    caplog.set_level(logging.INFO)

    response = client.post(
        "/api/v1/settings/test-connection",
        json={**FORM, "api_key": 98765432123},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 422
    assert "98765432123" not in response.text
    formatter = StructuredFormatter()
    logged = [formatter.format(record) for record in caplog.records]
    assert any("Request validation error" in line for line in logged)
    assert not any("98765432123" in line for line in logged)


def test_connection_works_when_stored_key_cannot_be_decrypted(client) -> None:
    client.put("/api/v1/settings", json=FORM, headers=ADMIN_HEADERS)
    app.dependency_overrides[get_secret_service] = lambda: SecretService("rotated-key")

    response = client.post(
        "/api/v1/settings/test-connection",
        json={**FORM, "resource_id": None},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.parametrize("value", [["S1"], {"id": "S1"}])
def test_save_with_non_text_value_is_bad_request(client, value) -> None:
    response = client.put(
        "/api/v1/settings", json={**FORM, "resource_id": value}, headers=ADMIN_HEADERS
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Settings form field 'resource_id' must be a string"


def test_save_with_numeric_values(client) -> None:
    response = client.put(
        "/api/v1/settings",
        json={**FORM, "resource_id": 12345, "api_key": 98765},
        headers=ADMIN_HEADERS,
    )
    assert response.status_code == 200

    body = client.get("/api/v1/settings", headers=ADMIN_HEADERS).json()

    assert body["resource_id"] == "12345"
    assert body["api_key_configured"] is True
