from __future__ import annotations

import pytest
from pydantic import SecretStr

from app.common.configuration import QualityReportConfiguration
from app.models import PLUGIN_CONFIGURATION_ROW_ID, PluginConfiguration
from app.services.secret import REDACTED, SecretService
from app.services.settings_store import SqlAlchemySettingsStore


def test_sealed_key_is_not_plaintext_and_reveals_back(secret_service) -> None:
    sealed = secret_service.seal(SecretStr("super-secret-key"))

    assert sealed is not None
    assert "super-secret-key" not in sealed
    assert secret_service.reveal(sealed).get_secret_value() == "super-secret-key"


@pytest.mark.parametrize("secret", [None, SecretStr("")])
def test_empty_secret_is_not_sealed(secret_service, secret) -> None:
    assert secret_service.seal(secret) is None
    assert secret_service.reveal(None) is None


def test_reveal_with_another_key_fails(secret_service) -> None:
    sealed = secret_service.seal(SecretStr("super-secret-key"))

    with pytest.raises(ValueError, match="SETTINGS_ENCRYPTION_KEY"):
        SecretService("another-key").reveal(sealed)


def test_redact() -> None:
    assert SecretService.redact(SecretStr("abc")) == REDACTED
    assert SecretService.redact(SecretStr("")) == ""
    assert SecretService.redact(None) == ""


def test_secret_handle_does_not_leak_in_repr() -> None:
    configuration = QualityReportConfiguration(api_key=SecretStr("super-secret-key"))

    assert "super-secret-key" not in repr(configuration)
    assert "super-secret-key" not in str(configuration.api_key)


def test_store_loads_empty_configuration(db_session, secret_service) -> None:
    store = SqlAlchemySettingsStore(db_session, secret_service)

    configuration = store.load()

    assert configuration == QualityReportConfiguration()
    assert not configuration.has_api_key


def test_store_saves_single_row_with_sealed_key(db_session, secret_service) -> None:
    store = SqlAlchemySettingsStore(db_session, secret_service)
    first = QualityReportConfiguration(
        application_url="https://ci.example.com",
        api_url="https://api.quality.example.com",
        resource_id="S1",
        api_key=SecretStr("super-secret-key"),
    )
    second = first.model_copy(update={"resource_id": "S2"})

    store.save(first, actor_subject="alice")
    store.save(second, actor_subject="bob")

    rows = db_session.query(PluginConfiguration).all()
    assert len(rows) == 1
    assert rows[0].id == PLUGIN_CONFIGURATION_ROW_ID
    assert rows[0].updated_by == "bob"
    assert rows[0].sealed_api_key
    assert "super-secret-key" not in rows[0].sealed_api_key

    loaded = SqlAlchemySettingsStore(db_session, secret_service).load()
    assert loaded.get_resource_id() == "S2"
    assert loaded.get_api_url() == "https://api.quality.example.com"
    assert loaded.get_api_key().get_secret_value() == "super-secret-key"


def test_store_clears_key(db_session, secret_service) -> None:
    store = SqlAlchemySettingsStore(db_session, secret_service)
    store.save(QualityReportConfiguration(api_key=SecretStr("k")))

    store.save(QualityReportConfiguration(api_url="https://api.quality.example.com"))

    assert store.load().get_api_key() is None
