from __future__ import annotations

import pytest

from app.settings import ConfigValidationError, Settings


def test_defaults_validate() -> None:
    settings = Settings()

    settings.validate()

    assert settings.get_quality_api_timeout() == 10
    assert settings.KEYCLOAK_ADMIN_ROLE == "quality-report-admin"


def test_missing_encryption_key_is_reported(monkeypatch) -> None:
    monkeypatch.delenv("SETTINGS_ENCRYPTION_KEY", raising=False)

    with pytest.raises(ConfigValidationError, match="SETTINGS_ENCRYPTION_KEY"):
        Settings().validate()


@pytest.mark.parametrize(
    ("name", "value", "expected"),
    [
        ("DATABASE_URL", "mysql://db/settings", "sqlite:// or postgresql://"),
        ("DATABASE_URL", "postgresql:///settings", "database host"),
        ("QUALITY_API_TIMEOUT_SECONDS", "0", "QUALITY_API_TIMEOUT_SECONDS"),
        ("OTEL_EXPORTER_OTLP_ENDPOINT", "collector:4317", "host/netloc"),
        ("OTEL_RESOURCE_ATTRIBUTES", "team", "key=value"),
    ],
)
def test_invalid_values_are_reported(monkeypatch, name, value, expected) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigValidationError, match=expected):
        Settings().validate()


def test_all_errors_are_collected(monkeypatch) -> None:
    monkeypatch.delenv("SETTINGS_ENCRYPTION_KEY", raising=False)
    monkeypatch.setenv("PORT", "70000")

    with pytest.raises(ConfigValidationError) as exc_info:
        Settings().validate()

    assert "SETTINGS_ENCRYPTION_KEY" in str(exc_info.value)
    assert "'PORT'" in str(exc_info.value)


def test_config_summary_masks_secrets(monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://user:pw@db.internal:5432/settings")

    summary = Settings().get_config_summary()

    assert summary["SETTINGS_ENCRYPTION_KEY"] == "***MASKED***"
    assert summary["STATIC_API_TOKEN"] == "***MASKED***"
    assert summary["DATABASE_URL"] == "postgresql://db.internal:5432/settings"
