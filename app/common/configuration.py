"""
Plugin configuration value passed to whichever component needs it.
"""

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class QualityReportConfiguration(BaseModel):
    """Global connection settings of the Quality Report plugin."""

    model_config = ConfigDict(frozen=True)

    application_url: str | None = Field(
        None,
        description="Base address of the build server UI, used for callback links",
        examples=["https://ci.example.com"],
    )
    api_url: str | None = Field(
        None,
        description="Base address of the quality-monitoring API",
        examples=["https://api.quality.example.com"],
    )
    resource_id: str | None = Field(
        None,
        description="Environment the API key must be authorized against",
        examples=["S12345"],
    )
    api_key: SecretStr | None = Field(
        None,
        description="API key used to authenticate calls to the quality API",
    )

    def get_application_url(self) -> str | None:
        return self.application_url

    def get_api_url(self) -> str | None:
        return self.api_url

    def get_resource_id(self) -> str | None:
        return self.resource_id

    def get_api_key(self) -> SecretStr | None:
        return self.api_key

    @property
    def has_api_key(self) -> bool:
        return self.api_key is not None and bool(self.api_key.get_secret_value())
