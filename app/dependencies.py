"""
FastAPI dependencies for authentication and the plugin settings services.
"""

from typing import Annotated, Any

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.database import get_db
from app.logging_config import get_structured_logger
from app.services.audit import AuditService
from app.services.auth import AuthService
from app.services.connectivity import ConnectivityValidator
from app.services.plugin_settings import PluginSettingsService
from app.services.secret import SecretService
from app.services.settings_store import SettingsStore, SqlAlchemySettingsStore

# Missing credentials are an authorization failure, reported by require_administrator
security = HTTPBearer(auto_error=False)

logger = get_structured_logger(__name__)


def get_auth_service() -> AuthService:
    """Get authentication service instance."""
    return AuthService()


def get_secret_service() -> SecretService:
    """Get secret service instance."""
    return SecretService()


def get_connectivity_validator() -> ConnectivityValidator:
    """Get connectivity validator instance."""
    return ConnectivityValidator()


def get_audit_service() -> AuditService:
    """Get audit service instance."""
    return AuditService()


def get_settings_store(
    db: Annotated[Session, Depends(get_db)],
    secret_service: Annotated[SecretService, Depends(get_secret_service)],
) -> SettingsStore:
    """Get the settings store bound to the request's database session."""
    return SqlAlchemySettingsStore(db, secret_service)


def get_plugin_settings_service(
    store: Annotated[SettingsStore, Depends(get_settings_store)],
    validator: Annotated[ConnectivityValidator, Depends(get_connectivity_validator)],
    audit_service: Annotated[AuditService, Depends(get_audit_service)],
    db: Annotated[Session, Depends(get_db)],
) -> PluginSettingsService:
    """Get the plugin settings service with the stored configuration loaded."""
    return PluginSettingsService(
        store=store, validator=validator, audit_service=audit_service, db=db
    )


def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> dict[str, Any] | None:
    """
    Resolve the caller from the bearer token, or None if there is none.
    Authorization is decided separately by require_administrator.
    """
    if credentials is None:
        return None

    auth_header = f"{credentials.scheme} {credentials.credentials}"
    principal = auth_service.authenticate_request(auth_header)

    if principal is None:
        logger.log_auth_event(
            message="Authentication failed - invalid credentials",
            event_type="auth_failed",
            success=False,
            error="Invalid authentication credentials",
        )
        return None

    logger.log_auth_event(
        message="Authentication successful",
        event_type=f"{principal['type']}_auth_success",
        actor_subject=principal.get("subject"),
        success=True,
    )
    return principal


def get_admin_principal(
    principal: Annotated[dict[str, Any] | None, Depends(get_current_principal)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> dict[str, Any]:
    """Get the caller, aborting with AdministratorPermissionError unless it is an administrator."""
    auth_service.require_administrator(principal)
    return principal
