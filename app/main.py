"""
FastAPI application entry point for the Quality Report settings service.
"""

import time
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry import trace

# Load environment variables from .env file before importing app modules
load_dotenv()

# Import app modules after load_dotenv() to ensure environment is set
from app.database import create_all_tables, engine  # noqa: E402
from app.exceptions import AdministratorPermissionError  # noqa: E402
from app.logging_config import (  # noqa: E402
    get_structured_logger,
    setup_structured_logging,
)
from app.routers import health, settings as settings_router  # noqa: E402
from app.settings import settings, validate_environment  # noqa: E402
from app.tracing import (  # noqa: E402
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_tracing,
)

# Initialize OpenTelemetry tracing before creating the FastAPI app (optional)
tracing_enabled = setup_tracing()

# Configure structured logging
setup_structured_logging()
logger = get_structured_logger(__name__)

logger.log_operation(
    level=20,  # INFO
    message="OpenTelemetry tracing enabled"
    if tracing_enabled
    else "OpenTelemetry tracing disabled - OTEL_EXPORTER_OTLP_ENDPOINT not set",
    operation="tracing_setup",
    extra_fields={"tracing_enabled": tracing_enabled},
)

# Validate environment configuration on startup
try:
    validate_environment()
except Exception as e:
    logger.log_operation(
        level=50,  # ERROR
        message=f"Environment configuration validation failed: {e}",
        operation="startup_validation",
        extra_fields={"error": str(e)},
    )
    raise


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    create_all_tables()
    logger.log_operation(
        level=20,  # INFO
        message="Settings store ready",
        operation="startup_settings_store",
    )
    yield


app = FastAPI(
    title="Quality Report Settings Service",
    lifespan=lifespan,
    description="""
Global settings of the Quality Report build step.

- **Settings**: application URL, quality API URL, environment id and API key (sealed at rest)
- **Test connection**: probes the quality API and checks the key can see the environment
- **Administrator only**: every settings operation requires administrator rights
    """.strip(),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure as needed for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def logging_middleware(request: Request, call_next) -> Response:
    """Middleware for structured HTTP request/response logging."""
    start_time = time.time()

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    logger.log_http_request(
        message=f"{request.method} {request.url.path} -> {response.status_code}",
        method=request.method,
        path=str(request.url.path),
        status_code=response.status_code,
        duration_ms=duration_ms,
        user_agent=request.headers.get("user-agent", "unknown"),
    )

    return response


instrument_fastapi(app)
instrument_sqlalchemy(engine)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with structured logging."""
    tracer = trace.get_tracer(__name__)
    with tracer.start_span("http_exception_handler") as span:
        span.set_attribute("http.status_code", exc.status_code)
        span.set_attribute("error.message", str(exc.detail))
        span.set_attribute("http.method", request.method)
        span.set_attribute("http.url", str(request.url))

        logger.log_operation(
            level=30,  # WARNING
            message="HTTP exception occurred",
            operation="http_exception",
            extra_fields={
                "status_code": exc.status_code,
                "detail": exc.detail,
                "method": request.method,
                "url": str(request.url),
            },
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail, "status_code": exc.status_code},
        )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    logger.log_operation(
        level=30,  # WARNING
        message="Request validation error",
        operation="validation_exception",
        extra_fields={
            "validation_errors": jsonable_errors(exc),
            "method": request.method,
            "url": str(request.url),
        },
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "Validation error", "details": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation errors without the raw input, which may carry the API key."""
    return [
        {key: value for key, value in error.items() if key in ("loc", "msg", "type")}
        for error in exc.errors()
    ]


@app.exception_handler(AdministratorPermissionError)
async def administrator_permission_handler(
    request: Request, exc: AdministratorPermissionError
):
    """Handle missing administrator rights with 403 status."""
    tracer = trace.get_tracer(__name__)
    with tracer.start_span("administrator_permission_handler") as span:
        span.set_attribute("http.status_code", 403)
        span.set_attribute("error.type", "AdministratorPermissionError")
        span.set_attribute("http.method", request.method)
        span.set_attribute("http.url", str(request.url))

        logger.log_auth_event(
            message="Access denied - administrator permission required",
            event_type="administrator_required",
            actor_subject=exc.subject,
            success=False,
            error=str(exc),
        )

        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"error": "Access denied", "status_code": 403},
        )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    tracer = trace.get_tracer(__name__)
    with tracer.start_span("general_exception_handler") as span:
        span.set_attribute("http.status_code", 500)
        span.set_attribute("error.type", type(exc).__name__)
        span.set_attribute("http.method", request.method)
        span.set_attribute("http.url", str(request.url))
        span.record_exception(exc)

        logger.log_operation(
            level=50,  # ERROR
            message="Unhandled exception occurred",
            operation="general_exception",
            extra_fields={
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
                "method": request.method,
                "url": str(request.url),
            },
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error", "status_code": 500},
        )


app.include_router(health.router, tags=["health"])
app.include_router(settings_router.router, prefix="/api/v1", tags=["settings"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
