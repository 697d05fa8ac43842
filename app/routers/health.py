"""
Health and readiness endpoints for the Quality Report settings service.
"""

from datetime import UTC, datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.database import check_database_connection, get_db
from app.logging_config import get_structured_logger
from app.settings import settings

logger = get_structured_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["health"])


@router.get(
    "/healthz",
    summary="Health check",
    description="Basic health check endpoint that returns 200 if the service is running.",
)
async def health_check() -> dict[str, Any]:
    return {
        "status": "healthy",
        "service": settings.OTEL_SERVICE_NAME,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get(
    "/readyz",
    summary="Readiness check",
    description="""
Verifies that the settings store is reachable.

The quality API is not probed here; testing it needs the
administrator's candidate settings, see `POST /api/v1/settings/test-connection`.
    """,
    responses={503: {"description": "Settings store unavailable"}},
)
def readiness_check(db: Annotated[Session, Depends(get_db)]):
    database_ok = check_database_connection(db)

    body = {
        "status": "ready" if database_ok else "not_ready",
        "service": settings.OTEL_SERVICE_NAME,
        "timestamp": datetime.now(UTC).isoformat(),
        "dependencies": {"database": "healthy" if database_ok else "unhealthy"},
    }

    if not database_ok:
        logger.log_operation(
            level=40,  # ERROR
            message="Database readiness check failed",
            operation="readiness_check_database",
        )
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)

    return body
