import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SETTINGS_ENCRYPTION_KEY", "test-encryption-key")
os.environ.setdefault("STATIC_API_TOKEN", "test-admin-token")
os.environ.setdefault("KEYCLOAK_CLIENT_ID", "quality-report")
os.environ.setdefault("KEYCLOAK_ADMIN_ROLE", "quality-report-admin")
os.environ.pop("OTEL_EXPORTER_OTLP_ENDPOINT", None)

from collections.abc import Iterator  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.database import create_all_tables  # noqa: E402
from app.services.secret import SecretService  # noqa: E402

from tests.fakes import FakeClientFactory, FakeQualityApiClient  # noqa: E402


@pytest.fixture
def fake_client() -> FakeQualityApiClient:
    return FakeQualityApiClient()


@pytest.fixture
def client_factory(fake_client: FakeQualityApiClient) -> FakeClientFactory:
    return FakeClientFactory(fake_client)


@pytest.fixture
def db_session() -> Iterator[Session]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_all_tables(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def secret_service() -> SecretService:
    return SecretService("test-encryption-key")
