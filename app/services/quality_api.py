"""
HTTP client for the quality-monitoring API.
Implements the connectivity probe and the environment listing used to validate settings.
"""

import time
from dataclasses import dataclass
from typing import Any

import requests
from opentelemetry import trace
from pydantic import SecretStr

from app.exceptions import QualityApiError
from app.logging_config import get_structured_logger
from app.services.base import BaseService
from app.settings import settings

logger = get_structured_logger(__name__)

TEST_CONNECTION_PATH = "/api/v1/test"
ENVIRONMENTS_PATH = "/api/v1/services"
API_KEY_HEADER = "X-API-Key"


@dataclass(frozen=True)
class ApiResponse:
    """Status and body of a quality API call."""

    response_code: int
    body: str = ""

    @property
    def is_bad_response(self) -> bool:
        return not 200 <= self.response_code < 300


@dataclass(frozen=True)
class Environment:
    """Monitored environment (a "service" in the quality API)."""

    id: str
    name: str | None = None


class QualityApiClient(BaseService):
    """Client bound to one API URL and authenticated with one API key."""

    def __init__(
        self,
        hostname: str,
        api_key: SecretStr | None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        super().__init__("quality_api")
        if not hostname or not hostname.strip():
            raise ValueError("Quality API hostname is empty")

        self.hostname = hostname.strip().rstrip("/")
        self.timeout = timeout if timeout is not None else settings.get_quality_api_timeout()
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if api_key is not None and api_key.get_secret_value():
            self.session.headers[API_KEY_HEADER] = api_key.get_secret_value()

    def _url(self, path: str) -> str:
        return f"{self.hostname}{path}"

    def test_connection(self) -> ApiResponse | None:
        """
        Probe the API with the configured key.
        Returns None when no response was received at all.
        """
        url = self._url(TEST_CONNECTION_PATH)
        with self.trace_operation("test_connection", {"quality_api.url": url}) as span:
            start_time = time.time()
            try:
                response = self.session.get(url, timeout=self.timeout)
            except requests.RequestException as e:
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                logger.log_quality_api_operation(
                    message=f"Quality API unreachable: {e}",
                    operation="test_connection",
                    url=url,
                    status_code=None,
                    duration_ms=(time.time() - start_time) * 1000,
                    level=30,  # WARNING
                )
                return None

            span.set_attribute("http.status_code", response.status_code)
            logger.log_quality_api_operation(
                message=f"GET {url} -> {response.status_code}",
                operation="test_connection",
                url=url,
                status_code=response.status_code,
                duration_ms=(time.time() - start_time) * 1000,
            )
            return ApiResponse(response_code=response.status_code, body=response.text)

    def list_environments(self) -> list[Environment]:
        """
        List the environments visible to the configured key.

        Raises:
            requests.RequestException: transport failure or non-2xx status
            QualityApiError: the payload is not a service listing
        """
        url = self._url(ENVIRONMENTS_PATH)
        with self.trace_operation("list_environments", {"quality_api.url": url}) as span:
            start_time = time.time()
            try:
                response = self.session.get(url, timeout=self.timeout)
                response.raise_for_status()
            except requests.RequestException as e:
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                raise

            try:
                payload = response.json()
            except ValueError as e:
                span.record_exception(e)
                raise QualityApiError(f"Quality API returned invalid JSON: {e}") from e

            environments = self._parse_environments(payload)
            span.set_attribute("quality_api.environment_count", len(environments))
            logger.log_quality_api_operation(
                message=f"GET {url} -> {response.status_code}",
                operation="list_environments",
                url=url,
                status_code=response.status_code,
                duration_ms=(time.time() - start_time) * 1000,
            )
            return environments

    @staticmethod
    def _parse_environments(payload: Any) -> list[Environment]:
        if not isinstance(payload, dict) or not isinstance(payload.get("services"), list):
            raise QualityApiError("Unexpected environment listing format: missing 'services'")

        environments = []
        for item in payload["services"]:
            if not isinstance(item, dict) or "id" not in item:
                raise QualityApiError(f"Unexpected environment entry: {item!r}")
            environments.append(Environment(id=str(item["id"]), name=item.get("name")))
        return environments

    def close(self) -> None:
        self.session.close()
