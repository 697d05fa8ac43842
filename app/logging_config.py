"""
Structured logging configuration for the Quality Report settings service.
Every record is one JSON object on stdout, tagged with the active OpenTelemetry trace.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from opentelemetry import trace

from app.settings import settings

# Record attributes copied verbatim to the top level of the JSON entry
TOP_LEVEL_FIELDS = ("operation", "actor_subject", "target")

# Nested context blocks: JSON key -> (record attribute prefix, fields)
CONTEXT_BLOCKS = {
    "http": ("http_", ("method", "path", "status_code", "duration_ms", "user_agent")),
    "quality_api": ("quality_api_", ("operation", "url", "status_code", "duration_ms")),
}


class StructuredFormatter(logging.Formatter):
    """JSON formatter that adds the service name and trace context."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.service_name = settings.OTEL_SERVICE_NAME

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }

        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            log_entry["trace_id"] = format(span_context.trace_id, "032x")
            log_entry["span_id"] = format(span_context.span_id, "016x")

        for field in TOP_LEVEL_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        for block, (prefix, fields) in CONTEXT_BLOCKS.items():
            if hasattr(record, f"{prefix}{fields[0]}"):
                log_entry[block] = {
                    field: getattr(record, f"{prefix}{field}", None) for field in fields
                }

        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            log_entry["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class StructuredLogger:
    """Thin wrapper that turns keyword context into LogRecord attributes."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def log_operation(
        self,
        level: int,
        message: str,
        operation: str | None = None,
        actor_subject: str | None = None,
        target: str | None = None,
        extra_fields: dict[str, Any] | None = None,
    ) -> None:
        """Log an operation with structured context."""
        extra: dict[str, Any] = {}
        if operation:
            extra["operation"] = operation
        if actor_subject:
            extra["actor_subject"] = actor_subject
        if target:
            extra["target"] = target
        if extra_fields:
            extra["extra_fields"] = extra_fields

        self.logger.log(level, message, extra=extra)

    def log_http_request(
        self,
        message: str,
        method: str,
        path: str,
        status_code: int,
        duration_ms: float,
        user_agent: str | None = None,
    ) -> None:
        self.logger.info(
            message,
            extra={
                "http_method": method,
                "http_path": path,
                "http_status_code": status_code,
                "http_duration_ms": round(duration_ms, 2),
                "http_user_agent": user_agent,
            },
        )

    def log_quality_api_operation(
        self,
        message: str,
        operation: str,
        url: str,
        status_code: int | None,
        duration_ms: float,
        level: int = logging.INFO,
    ) -> None:
        """Log a call to the quality API. Never pass the API key here."""
        self.logger.log(
            level,
            message,
            extra={
                "quality_api_operation": operation,
                "quality_api_url": url,
                "quality_api_status_code": status_code,
                "quality_api_duration_ms": round(duration_ms, 2),
            },
        )

    def log_auth_event(
        self,
        message: str,
        event_type: str,
        actor_subject: str | None = None,
        success: bool | None = None,
        error: str | None = None,
    ) -> None:
        """Log an authentication or authorization decision."""
        extra_fields: dict[str, Any] = {"auth_event_type": event_type}
        if success is not None:
            extra_fields["auth_success"] = success
        if error:
            extra_fields["auth_error"] = error

        self.log_operation(
            level=logging.INFO if success else logging.WARNING,
            message=message,
            operation="authentication",
            actor_subject=actor_subject,
            extra_fields=extra_fields,
        )


def setup_structured_logging(level: int = logging.INFO) -> None:
    """Route the root logger to stdout through StructuredFormatter."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    logging.getLogger("app").setLevel(level)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_structured_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name)
