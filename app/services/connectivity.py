"""
Connectivity validation for the Quality Report settings.
Checks that the API URL answers and that the API key can see the configured environment.
"""

from collections.abc import Callable

from opentelemetry import trace
from pydantic import SecretStr

from app.common.validation import ValidationReason, ValidationResult
from app.logging_config import get_structured_logger
from app.services.base import BaseService
from app.services.quality_api import ApiResponse, Environment, QualityApiClient

logger = get_structured_logger(__name__)

NO_RESPONSE_CODE = -1

ClientFactory = Callable[[str, SecretStr | None], QualityApiClient]


def default_client_factory(api_url: str, api_key: SecretStr | None) -> QualityApiClient:
    return QualityApiClient(hostname=api_url, api_key=api_key)


class ConnectivityValidator(BaseService):
    """Validates candidate settings against the live quality API."""

    def __init__(self, client_factory: ClientFactory | None = None):
        super().__init__("connectivity")
        self.client_factory = client_factory or default_client_factory

    def validate(
        self,
        application_url: str | None,
        api_url: str | None,
        resource_id: str | None,
        api_key: SecretStr | None,
        permission_check: Callable[[], None] | None = None,
    ) -> ValidationResult:
        """
        Validate candidate settings. The candidate values are only read.

        Checks run in order and the first failure wins: application URL,
        API URL, administrator permission, connectivity probe, environment
        access. Every failure except the permission check is reported as an
        error result; AdministratorPermissionError raised by
        ``permission_check`` propagates before any network call.
        """
        if not application_url:
            return ValidationResult.error(
                "Application URL is empty", ValidationReason.INPUT
            )

        if not api_url:
            return ValidationResult.error("API URL is empty", ValidationReason.INPUT)

        if permission_check is not None:
            permission_check()

        with self.trace_operation(
            "validate",
            {
                "connectivity.api_url": api_url,
                "connectivity.resource_id": resource_id,
                "connectivity.api_key_configured": bool(
                    api_key and api_key.get_secret_value()
                ),
            },
        ) as span:
            try:
                result = self._check_remote(api_url, resource_id, api_key)
            except Exception as e:
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                result = ValidationResult.error(
                    f"REST API error : {e}", ValidationReason.TRANSPORT
                )

            span.set_attribute("connectivity.status", result.status)
            logger.log_operation(
                level=20 if result.is_ok else 30,  # INFO / WARNING
                message=f"Connection test finished: {result.message}",
                operation="connection_test",
                target=api_url,
                extra_fields={
                    "resource_id": resource_id,
                    "status": result.status,
                    "reason": result.reason.value if result.reason else None,
                },
            )
            return result

    def _check_remote(
        self, api_url: str, resource_id: str | None, api_key: SecretStr | None
    ) -> ValidationResult:
        client = self.client_factory(api_url, api_key)
        try:
            return self._probe_and_list(client, api_url, resource_id)
        finally:
            client.close()

    def _probe_and_list(
        self, client: QualityApiClient, api_url: str, resource_id: str | None
    ) -> ValidationResult:
        try:
            response = client.test_connection()
        except OSError as e:
            # requests.RequestException is an OSError too
            logger.log_operation(
                level=30,  # WARNING
                message=f"Connectivity probe raised: {e}",
                operation="connection_test_probe",
                target=api_url,
                extra_fields={"exception_type": type(e).__name__},
            )
            response = None

        if self._is_bad(response):
            code = response.response_code if response is not None else NO_RESPONSE_CODE
            return ValidationResult.error(
                f"Unable to connect to API server. Code: {code}",
                ValidationReason.CONNECTIVITY,
            )

        if resource_id and not self._has_access_to_environment(client, resource_id):
            return ValidationResult.error(
                f"API key has no access to environment {resource_id}",
                ValidationReason.RESOURCE_ACCESS,
            )

        return ValidationResult.ok("Connection Successful.")

    @staticmethod
    def _is_bad(response: ApiResponse | None) -> bool:
        return response is None or response.is_bad_response

    @staticmethod
    def _has_access_to_environment(client: QualityApiClient, resource_id: str) -> bool:
        # Listing failures propagate to validate()
        environments: list[Environment] = client.list_environments()
        return any(environment.id == resource_id for environment in environments)
