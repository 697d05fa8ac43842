"""
Global settings of the Quality Report build step.
Handles the settings form, the "test connection" action and read access for build steps.
"""

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import SecretStr
from sqlalchemy.orm import Session

from app.common.configuration import QualityReportConfiguration
from app.common.validation import ValidationResult
from app.exceptions import SettingsFormError
from app.logging_config import get_structured_logger
from app.services.audit import AuditService
from app.services.base import BaseService
from app.services.connectivity import ConnectivityValidator
from app.services.settings_store import SettingsStore

logger = get_structured_logger(__name__)

DISPLAY_NAME = "Quality Report"
SYMBOL = "QualityReport"
FORM_KEY = "QualityReport"
FORM_FIELDS = ("application_url", "api_url", "resource_id", "api_key")


def _form_value(field_name: str, value: Any) -> str | None:
    """Form values as text; numbers are accepted, blanks become None."""
    if isinstance(value, SecretStr):
        value = value.get_secret_value()
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    elif value is not None and not isinstance(value, str):
        raise SettingsFormError(field_name, "must be a string")
    return value or None


class PluginSettingsService(BaseService):
    """Owns the current configuration and delegates persistence to a store."""

    def __init__(
        self,
        store: SettingsStore,
        validator: ConnectivityValidator | None = None,
        audit_service: AuditService | None = None,
        db: Session | None = None,
    ):
        super().__init__("plugin_settings")
        self.store = store
        self.validator = validator or ConnectivityValidator()
        self.audit_service = audit_service
        self.db = db
        self._configuration: QualityReportConfiguration | None = None

    @property
    def configuration(self) -> QualityReportConfiguration:
        """Stored configuration, loaded on first access."""
        if self._configuration is None:
            self._configuration = self.store.load()
        return self._configuration

    @property
    def display_name(self) -> str:
        return DISPLAY_NAME

    @property
    def symbol(self) -> str:
        return SYMBOL

    def is_applicable(self, project_type: str | None = None) -> bool:
        """The build step is offered for every project type."""
        return True

    def get_application_url(self) -> str | None:
        return self.configuration.application_url

    def get_api_url(self) -> str | None:
        return self.configuration.api_url

    def get_resource_id(self) -> str | None:
        return self.configuration.resource_id

    def get_api_key(self) -> SecretStr | None:
        return self.configuration.api_key

    def configure(
        self, form_fields: Mapping[str, Any], actor_subject: str | None = None
    ) -> bool:
        """
        Store the four settings from a submitted form and persist them.

        The fields may be given flat or nested under the ``QualityReport``
        form key. Numbers are taken as text. Raises SettingsFormError if a
        field is missing or holds anything other than text or a number.
        """
        with self.trace_operation(
            "configure", {"plugin_settings.actor_subject": actor_subject}
        ) as span:
            fields = form_fields.get(FORM_KEY, form_fields)
            if not isinstance(fields, Mapping):
                raise SettingsFormError(FORM_KEY)

            values = {}
            for field_name in FORM_FIELDS:
                if field_name not in fields:
                    raise SettingsFormError(field_name)
                values[field_name] = _form_value(field_name, fields[field_name])

            configuration = QualityReportConfiguration(
                application_url=values["application_url"],
                api_url=values["api_url"],
                resource_id=values["resource_id"],
                api_key=SecretStr(values["api_key"]) if values["api_key"] else None,
            )

            self.store.save(configuration, actor_subject=actor_subject)
            self._configuration = configuration
            span.set_attribute("plugin_settings.saved", True)

            logger.log_operation(
                level=20,  # INFO
                message="Quality Report settings saved",
                operation="configure",
                actor_subject=actor_subject,
                extra_fields={
                    "application_url": configuration.application_url,
                    "api_url": configuration.api_url,
                    "resource_id": configuration.resource_id,
                    "api_key_configured": configuration.has_api_key,
                },
            )
            self._audit(
                actor_subject,
                "settings_configure",
                request_payload=dict(values),
                result={"saved": True},
                success=True,
            )
            return True

    def test_connection(
        self,
        application_url: str | None,
        api_url: str | None,
        resource_id: str | None,
        api_key: SecretStr | None,
        permission_check: Callable[[], None] | None = None,
        actor_subject: str | None = None,
    ) -> ValidationResult:
        """Validate candidate values; the saved configuration is left untouched."""
        result = self.validator.validate(
            application_url=application_url,
            api_url=api_url,
            resource_id=resource_id,
            api_key=api_key,
            permission_check=permission_check,
        )
        self._audit(
            actor_subject,
            "settings_test_connection",
            request_payload={
                "application_url": application_url,
                "api_url": api_url,
                "resource_id": resource_id,
            },
            result=result.model_dump(mode="json"),
            success=result.is_ok,
        )
        return result

    def _audit(self, actor_subject: str | None, operation: str, **kwargs: Any) -> None:
        if self.audit_service is None or self.db is None:
            return
        self.audit_service.safe_log_operation(
            self.db,
            actor_subject=actor_subject,
            operation=operation,
            target_type="plugin_settings",
            target_id=SYMBOL,
            **kwargs,
        )
