"""
Persistence of the plugin configuration.
The store is injected wherever settings are loaded or saved.
"""

from typing import Protocol

from opentelemetry import trace
from sqlalchemy.orm import Session

from app.common.configuration import QualityReportConfiguration
from app.models import PLUGIN_CONFIGURATION_ROW_ID, PluginConfiguration
from app.services.base import BaseService
from app.services.secret import SecretService


class SettingsStore(Protocol):
    """Load/save interface for the plugin configuration."""

    def load(self) -> QualityReportConfiguration: ...

    def save(
        self, configuration: QualityReportConfiguration, actor_subject: str | None = None
    ) -> None: ...


class SqlAlchemySettingsStore(BaseService):
    """Keeps the configuration in a single database row, API key sealed."""

    def __init__(self, db: Session, secret_service: SecretService):
        super().__init__("settings_store")
        self.db = db
        self.secret_service = secret_service

    def load(self) -> QualityReportConfiguration:
        """Load the stored configuration, or an empty one if nothing was saved yet."""
        with self.trace_operation("load") as span:
            row = self.db.get(PluginConfiguration, PLUGIN_CONFIGURATION_ROW_ID)
            if row is None:
                span.set_attribute("settings_store.found", False)
                return QualityReportConfiguration()

            span.set_attribute("settings_store.found", True)
            return QualityReportConfiguration(
                application_url=row.application_url,
                api_url=row.api_url,
                resource_id=row.resource_id,
                api_key=self.secret_service.reveal(row.sealed_api_key),
            )

    def save(
        self, configuration: QualityReportConfiguration, actor_subject: str | None = None
    ) -> None:
        """Persist the configuration, replacing the previous one."""
        with self.trace_operation(
            "save", {"settings_store.actor_subject": actor_subject}
        ) as span:
            try:
                row = self.db.get(PluginConfiguration, PLUGIN_CONFIGURATION_ROW_ID)
                if row is None:
                    row = PluginConfiguration(id=PLUGIN_CONFIGURATION_ROW_ID)
                    self.db.add(row)

                row.application_url = configuration.application_url
                row.api_url = configuration.api_url
                row.resource_id = configuration.resource_id
                row.sealed_api_key = self.secret_service.seal(configuration.api_key)
                row.updated_by = actor_subject

                self.db.commit()
                span.set_attribute("settings_store.saved", True)

            except Exception as e:
                span.record_exception(e)
                span.set_attribute("settings_store.saved", False)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                self.db.rollback()
                raise
