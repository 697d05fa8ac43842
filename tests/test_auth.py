from __future__ import annotations

import pytest

from app.exceptions import AdministratorPermissionError
from app.services.auth import STATIC_API_SUBJECT, AuthService

from tests.fakes import ADMIN_TOKEN, make_jwt


@pytest.fixture
def auth_service() -> AuthService:
    return AuthService()


def test_static_token_is_administrator(auth_service) -> None:
    principal = auth_service.authenticate_request(f"Bearer {ADMIN_TOKEN}")

    assert principal == {"type": "static_api", "subject": STATIC_API_SUBJECT}
    assert auth_service.is_administrator(principal)


@pytest.mark.parametrize(
    ("client_roles", "realm_roles"),
    [(["quality-report-admin"], []), ([], ["quality-report-admin"])],
)
def test_admin_role_grants_administrator(auth_service, client_roles, realm_roles) -> None:
    token = make_jwt("alice", client_roles=client_roles, realm_roles=realm_roles)

    principal = auth_service.authenticate_request(f"Bearer {token}")

    assert principal["subject"] == "alice"
    auth_service.require_administrator(principal)


def test_other_roles_are_refused(auth_service) -> None:
    principal = auth_service.authenticate_request(
        f"Bearer {make_jwt('bob', client_roles=['viewer'], realm_roles=['offline_access'])}"
    )

    with pytest.raises(AdministratorPermissionError) as exc_info:
        auth_service.require_administrator(principal)

    assert exc_info.value.subject == "bob"


@pytest.mark.parametrize("header", [None, "", "Basic abc", "Bearer not-a-jwt"])
def test_unauthenticated_requests(auth_service, header) -> None:
    principal = auth_service.authenticate_request(header)

    assert principal is None
    assert not auth_service.is_administrator(principal)
    with pytest.raises(AdministratorPermissionError):
        auth_service.require_administrator(principal)
