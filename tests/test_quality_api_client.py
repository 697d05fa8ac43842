from __future__ import annotations

import pytest
import requests
from pydantic import SecretStr

from app.exceptions import QualityApiError
from app.services.quality_api import (
    API_KEY_HEADER,
    ENVIRONMENTS_PATH,
    TEST_CONNECTION_PATH,
    ApiResponse,
    Environment,
    QualityApiClient,
)

from tests.fakes import FakeSession, make_response


def _client(routes) -> tuple[QualityApiClient, FakeSession]:
    session = FakeSession(routes)
    client = QualityApiClient(
        "https://api.quality.example.com/", SecretStr("key-123"), timeout=3, session=session
    )
    return client, session


def test_probe_sends_api_key_to_normalized_url() -> None:
    client, session = _client({TEST_CONNECTION_PATH: make_response(200, "ok")})

    response = client.test_connection()

    assert response == ApiResponse(200, "ok")
    url, headers, timeout = session.requests[0]
    assert url == "https://api.quality.example.com/api/v1/test"
    assert headers[API_KEY_HEADER] == "key-123"
    assert timeout == 3


@pytest.mark.parametrize(
    ("status_code", "bad"),
    [(200, False), (204, False), (301, True), (401, True), (503, True)],
)
def test_response_classification(status_code, bad) -> None:
    assert ApiResponse(status_code).is_bad_response is bad


def test_probe_transport_failure_means_no_response() -> None:
    client, _ = _client({TEST_CONNECTION_PATH: requests.ConnectionError("refused")})

    assert client.test_connection() is None


def test_empty_key_is_not_sent() -> None:
    session = FakeSession({TEST_CONNECTION_PATH: make_response(200)})
    client = QualityApiClient("https://api.quality.example.com", SecretStr(""), session=session)

    client.test_connection()

    assert API_KEY_HEADER not in session.requests[0][1]


@pytest.mark.parametrize("hostname", ["", "   "])
def test_empty_hostname_is_rejected(hostname) -> None:
    with pytest.raises(ValueError):
        QualityApiClient(hostname, SecretStr("key"), session=FakeSession({}))


def test_list_environments_parses_services() -> None:
    body = '{"services": [{"id": "S1", "name": "prod"}, {"id": 42}]}'
    client, _ = _client({ENVIRONMENTS_PATH: make_response(200, body)})

    assert client.list_environments() == [Environment("S1", "prod"), Environment("42", None)]


def test_list_environments_raises_on_bad_status() -> None:
    client, _ = _client({ENVIRONMENTS_PATH: make_response(401, "unauthorized")})

    with pytest.raises(requests.HTTPError):
        client.list_environments()


@pytest.mark.parametrize("body", ["not json", '{"items": []}', '{"services": [{"name": "x"}]}'])
def test_list_environments_rejects_unexpected_payload(body) -> None:
    client, _ = _client({ENVIRONMENTS_PATH: make_response(200, body)})

    with pytest.raises(QualityApiError):
        client.list_environments()
