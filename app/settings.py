"""
Centralized configuration settings for the Quality Report settings service.
All environment variables are defined, accessed, and validated through this module.
"""

import os
import re
from typing import Any
from urllib.parse import urlparse


class ConfigValidationError(Exception):
    """Raised when environment configuration validation fails."""

    pass


class Settings:
    """Centralized configuration settings with validation."""

    def __init__(self):
        """Initialize settings from environment variables."""
        # Database Configuration (plugin settings store)
        self.DATABASE_URL: str = os.getenv(
            "DATABASE_URL", "sqlite:///./quality_report.db"
        )
        self.SQL_DEBUG: bool = os.getenv("SQL_DEBUG", "false").lower() == "true"

        # Secret sealing
        self.SETTINGS_ENCRYPTION_KEY: str | None = os.getenv("SETTINGS_ENCRYPTION_KEY")

        # Administrator authentication
        self.STATIC_API_TOKEN: str | None = os.getenv("STATIC_API_TOKEN")
        self.KEYCLOAK_CLIENT_ID: str = os.getenv("KEYCLOAK_CLIENT_ID", "quality-report")
        self.KEYCLOAK_ADMIN_ROLE: str = os.getenv(
            "KEYCLOAK_ADMIN_ROLE", "quality-report-admin"
        )

        # Quality API client
        self.QUALITY_API_TIMEOUT_SECONDS: int = int(
            os.getenv("QUALITY_API_TIMEOUT_SECONDS", "10")
        )

        # Server Configuration
        self.HOST: str = os.getenv("HOST", "0.0.0.0")
        self.PORT: int = int(os.getenv("PORT", "8080"))

        # OpenTelemetry Tracing
        self.OTEL_SERVICE_NAME: str = os.getenv(
            "OTEL_SERVICE_NAME", "quality-report-settings"
        )
        self.OTEL_EXPORTER_OTLP_ENDPOINT: str | None = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
        self.OTEL_RESOURCE_ATTRIBUTES: str | None = os.getenv("OTEL_RESOURCE_ATTRIBUTES")

    def get_database_url(self) -> str:
        """Get the database connection URL."""
        return self.DATABASE_URL

    def is_debug_mode(self) -> bool:
        """Check if SQL debug mode is enabled."""
        return self.SQL_DEBUG

    def get_encryption_key(self) -> str | None:
        """Get the key material used to seal the API key at rest."""
        return self.SETTINGS_ENCRYPTION_KEY

    def get_quality_api_timeout(self) -> int:
        """Get the HTTP timeout for quality API calls, in seconds."""
        return self.QUALITY_API_TIMEOUT_SECONDS

    def validate(self) -> None:
        """
        Validate all environment configuration.
        Raises ConfigValidationError if validation fails.
        """
        errors: list[str] = []

        errors.extend(self._validate_required_variables())
        errors.extend(self._validate_url_formats())
        errors.extend(self._validate_database_config())
        errors.extend(self._validate_otel_config())
        errors.extend(self._validate_numeric_values())

        if errors:
            error_msg = "Environment configuration validation failed:\n" + "\n".join(
                f"  - {error}" for error in errors
            )
            self._log_validation_result(False, errors)
            raise ConfigValidationError(error_msg)

        self._log_validation_result(True, [])

    def _get_required_variables(self) -> list[tuple[str, str]]:
        """Get list of required environment variables with descriptions."""
        return [
            ("DATABASE_URL", "SQLAlchemy URL of the plugin settings store"),
            ("SETTINGS_ENCRYPTION_KEY", "Key material used to seal the quality API key"),
        ]

    def _get_optional_variables(self) -> list[tuple[str, str, str]]:
        """Get list of optional environment variables with descriptions and defaults."""
        return [
            ("STATIC_API_TOKEN", "Automation token granted administrator rights", ""),
            ("KEYCLOAK_CLIENT_ID", "Keycloak client whose roles are inspected", "quality-report"),
            ("KEYCLOAK_ADMIN_ROLE", "Keycloak client role that grants administrator rights", "quality-report-admin"),
            ("QUALITY_API_TIMEOUT_SECONDS", "Timeout for quality API calls", "10"),
            (
                "OTEL_EXPORTER_OTLP_ENDPOINT",
                "OpenTelemetry OTLP exporter endpoint (enables tracing)",
                "",
            ),
            ("OTEL_SERVICE_NAME", "OpenTelemetry service name", "quality-report-settings"),
            ("OTEL_RESOURCE_ATTRIBUTES", "OpenTelemetry resource attributes", ""),
            ("HOST", "Server host address", "0.0.0.0"),
            ("PORT", "Server port", "8080"),
        ]

    def _validate_required_variables(self) -> list[str]:
        """Validate that all required environment variables are present."""
        errors = []
        for var_name, description in self._get_required_variables():
            value = getattr(self, var_name, None)
            if not value:
                errors.append(
                    f"Required environment variable '{var_name}' is not set ({description})"
                )
            elif isinstance(value, str) and value.strip() == "":
                errors.append(
                    f"Required environment variable '{var_name}' is empty ({description})"
                )
        return errors

    def _validate_url_formats(self) -> list[str]:
        """Validate URL format for URL environment variables."""
        errors = []
        value = self.OTEL_EXPORTER_OTLP_ENDPOINT
        if value:
            parsed = urlparse(value)
            if not parsed.scheme:
                errors.append(
                    f"'OTEL_EXPORTER_OTLP_ENDPOINT' must include URL scheme (http:// or https://): {value}"
                )
            if not parsed.netloc:
                errors.append(
                    f"'OTEL_EXPORTER_OTLP_ENDPOINT' must include host/netloc: {value}"
                )
        return errors

    def _validate_database_config(self) -> list[str]:
        """Validate database connection string format."""
        errors = []
        db_url = self.DATABASE_URL
        if db_url:
            parsed = urlparse(db_url)
            scheme = parsed.scheme.split("+", 1)[0]
            if scheme not in ("sqlite", "postgresql"):
                errors.append(
                    f"DATABASE_URL must use sqlite:// or postgresql:// scheme: {db_url}"
                )
            elif scheme == "postgresql" and not parsed.hostname:
                errors.append(f"DATABASE_URL must include database host: {db_url}")
        return errors

    def _validate_otel_config(self) -> list[str]:
        """Validate OpenTelemetry configuration."""
        errors = []
        service_name = self.OTEL_SERVICE_NAME
        if service_name and not re.match(
            r"^[a-z0-9]([a-z0-9\-._]*[a-z0-9])?$", service_name
        ):
            errors.append(
                f"OTEL_SERVICE_NAME should follow naming conventions (lowercase, alphanumeric, hyphens, dots, underscores): {service_name}"
            )

        resource_attrs = self.OTEL_RESOURCE_ATTRIBUTES
        if resource_attrs:
            for pair in resource_attrs.split(","):
                if "=" not in pair:
                    errors.append(
                        f"OTEL_RESOURCE_ATTRIBUTES must be in format 'key=value,key2=value2': {resource_attrs}"
                    )
                    break
        return errors

    def _validate_numeric_values(self) -> list[str]:
        """Validate numeric settings."""
        errors = []
        numeric_vars = [
            ("QUALITY_API_TIMEOUT_SECONDS", self.QUALITY_API_TIMEOUT_SECONDS, 1, 300),
            ("PORT", self.PORT, 1, 65535),
        ]

        for var_name, value, min_val, max_val in numeric_vars:
            if value < min_val or value > max_val:
                errors.append(
                    f"'{var_name}' must be between {min_val} and {max_val}: {value}"
                )
        return errors

    def _log_validation_result(self, success: bool, errors: list[str]) -> None:
        """Log validation result."""
        # Local import: logging_config reads settings for the service name
        from app.logging_config import get_structured_logger

        logger = get_structured_logger(__name__)

        if success:
            logger.log_operation(
                level=20,  # INFO
                message="Environment configuration validation successful",
                operation="config_validation",
                extra_fields={
                    "total_variables": len(self._get_required_variables())
                    + len(self._get_optional_variables()),
                },
            )
        else:
            logger.log_operation(
                level=50,  # ERROR
                message="Environment configuration validation failed",
                operation="config_validation",
                extra_fields={
                    "validation_errors": errors,
                    "total_errors": len(errors),
                },
            )

    def get_config_summary(self) -> dict[str, Any]:
        """Get a summary of the current configuration (safe for logging)."""
        config_summary: dict[str, Any] = {}

        for var_name, _ in self._get_required_variables():
            value = getattr(self, var_name, None)
            if not value:
                config_summary[var_name] = "***NOT_SET***"
            elif "key" in var_name.lower():
                config_summary[var_name] = "***MASKED***"
            elif "url" in var_name.lower():
                parsed = urlparse(value)
                safe_url = f"{parsed.scheme}://{parsed.hostname or ''}"
                if parsed.port:
                    safe_url += f":{parsed.port}"
                if parsed.path:
                    safe_url += parsed.path
                config_summary[var_name] = safe_url
            else:
                config_summary[var_name] = value

        for var_name, _, default in self._get_optional_variables():
            value = getattr(self, var_name, None)
            if "token" in var_name.lower():
                config_summary[var_name] = "***MASKED***" if value else "***NOT_SET***"
            else:
                config_summary[var_name] = value if value is not None else default

        return config_summary


# Global settings instance
settings = Settings()


def validate_environment() -> None:
    """Validate environment configuration and raise if invalid."""
    settings.validate()
