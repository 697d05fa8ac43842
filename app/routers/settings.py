"""
Plugin settings API endpoints.
Backs the administration form: read, save and "test connection".
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import BaseModel, Field, SecretStr

from app.common.validation import ValidationResult
from app.dependencies import (
    get_admin_principal,
    get_auth_service,
    get_current_principal,
    get_plugin_settings_service,
)
from app.exceptions import SettingsFormError
from app.services.auth import AuthService
from app.services.plugin_settings import PluginSettingsService
from app.services.secret import SecretService

router = APIRouter()


class PluginDescriptorResponse(BaseModel):
    """Response model describing the build step."""

    display_name: str = Field(..., description="Name shown in the build step picker", example="Quality Report")
    symbol: str = Field(..., description="Symbol used in pipeline scripts", example="QualityReport")
    applicable: bool = Field(..., description="Whether the step is offered for all project types", example=True)


class SettingsResponse(BaseModel):
    """Response model for the stored settings. The API key is never returned."""

    application_url: str | None = Field(None, description="Build server UI address", example="https://ci.example.com")
    api_url: str | None = Field(None, description="Quality API address", example="https://api.quality.example.com")
    resource_id: str | None = Field(None, description="Environment identifier", example="S12345")
    api_key: str = Field("", description="Redacted API key, empty when not configured", example="********")
    api_key_configured: bool = Field(..., description="Whether an API key is stored", example=True)


class SettingsSaveResponse(BaseModel):
    success: bool = Field(..., description="Whether the settings were persisted", example=True)


class ConnectionTestRequest(BaseModel):
    """Candidate settings to test; they do not have to be saved."""

    application_url: str | None = Field(None, description="Build server UI address", example="https://ci.example.com")
    api_url: str | None = Field(None, description="Quality API address", example="https://api.quality.example.com")
    resource_id: str | None = Field(None, description="Environment the key must see", example="S12345")
    api_key: SecretStr | None = Field(None, description="API key to test")


@router.get(
    "/plugin",
    response_model=PluginDescriptorResponse,
    summary="Describe the build step",
)
def get_plugin_descriptor(
    plugin_settings: Annotated[PluginSettingsService, Depends(get_plugin_settings_service)],
):
    return PluginDescriptorResponse(
        display_name=plugin_settings.display_name,
        symbol=plugin_settings.symbol,
        applicable=plugin_settings.is_applicable(),
    )


@router.get(
    "/settings",
    response_model=SettingsResponse,
    summary="Get the global settings",
    description="Returns the stored settings with the API key redacted. Requires administrator rights.",
)
def get_settings(
    _admin: Annotated[dict[str, Any], Depends(get_admin_principal)],
    plugin_settings: Annotated[PluginSettingsService, Depends(get_plugin_settings_service)],
):
    api_key = plugin_settings.get_api_key()
    return SettingsResponse(
        application_url=plugin_settings.get_application_url(),
        api_url=plugin_settings.get_api_url(),
        resource_id=plugin_settings.get_resource_id(),
        api_key=SecretService.redact(api_key),
        api_key_configured=plugin_settings.configuration.has_api_key,
    )


@router.put(
    "/settings",
    response_model=SettingsSaveResponse,
    summary="Save the global settings",
    description="""
Save the settings form. Fields may be sent flat or nested under `QualityReport`:
`application_url`, `api_url`, `resource_id`, `api_key`.

**Authorization**: Requires administrator rights.

The settings are not tested before saving; use `POST /settings/test-connection` first.
    """,
    responses={
        400: {
            "description": "Bad request - a form field is missing",
            "content": {
                "application/json": {
                    "example": {"error": "Settings form is missing field 'api_url'", "status_code": 400}
                }
            },
        },
        403: {"description": "Forbidden - administrator rights required"},
    },
)
def save_settings(
    admin: Annotated[dict[str, Any], Depends(get_admin_principal)],
    plugin_settings: Annotated[PluginSettingsService, Depends(get_plugin_settings_service)],
    form_fields: Annotated[
        dict[str, Any],
        Body(
            examples=[
                {
                    "QualityReport": {
                        "application_url": "https://ci.example.com",
                        "api_url": "https://api.quality.example.com",
                        "resource_id": "S12345",
                        "api_key": "my-api-key",
                    }
                }
            ]
        ),
    ],
):
    try:
        saved = plugin_settings.configure(form_fields, actor_subject=admin.get("subject"))
    except SettingsFormError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return SettingsSaveResponse(success=saved)


@router.post(
    "/settings/test-connection",
    response_model=ValidationResult,
    response_model_exclude_none=True,
    summary="Test the settings against the quality API",
    description="""
Checks, in order: application URL present, API URL present, administrator rights,
API reachable with the key, and (when `resource_id` is set) the key can see that environment.

Validation failures are returned with HTTP 200 and `status: "error"` so the form can show them.
Only a missing administrator right is reported as HTTP 403.
    """,
    responses={
        200: {
            "description": "Validation outcome",
            "content": {
                "application/json": {
                    "examples": {
                        "ok": {"value": {"status": "ok", "message": "Connection Successful."}},
                        "unreachable": {
                            "value": {
                                "status": "error",
                                "message": "Unable to connect to API server. Code: 503",
                                "reason": "connectivity",
                            }
                        },
                    }
                }
            },
        },
        403: {"description": "Forbidden - administrator rights required"},
    },
)
def run_connection_test(
    candidate: ConnectionTestRequest,
    principal: Annotated[dict[str, Any] | None, Depends(get_current_principal)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    plugin_settings: Annotated[PluginSettingsService, Depends(get_plugin_settings_service)],
):
    return plugin_settings.test_connection(
        application_url=candidate.application_url,
        api_url=candidate.api_url,
        resource_id=candidate.resource_id,
        api_key=candidate.api_key,
        permission_check=lambda: auth_service.require_administrator(principal),
        actor_subject=principal.get("subject") if principal else None,
    )
