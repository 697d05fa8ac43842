"""
OpenTelemetry tracing configuration for the Quality Report settings service.
Tracing is optional and only exports spans when an OTLP endpoint is configured.
"""

from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.requests import RequestsInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from app.settings import settings


def is_tracing_enabled() -> bool:
    """Check if OpenTelemetry tracing is enabled via environment configuration."""
    return bool(settings.OTEL_EXPORTER_OTLP_ENDPOINT)


def get_resource_attributes() -> dict[str, Any]:
    """Parse resource attributes from settings."""
    attrs_str = (
        settings.OTEL_RESOURCE_ATTRIBUTES
        or f"service.name={settings.OTEL_SERVICE_NAME},service.version=1.0.0"
    )

    attrs = {}
    for pair in attrs_str.split(","):
        if "=" in pair:
            key, value = pair.split("=", 1)
            attrs[key.strip()] = value.strip()

    return attrs


def setup_tracing() -> bool:
    """
    Configure OpenTelemetry tracing with gRPC OTLP exporter.
    Returns True if tracing was enabled, False otherwise.
    """
    if not is_tracing_enabled():
        trace.set_tracer_provider(TracerProvider())
        return False

    resource = Resource.create(get_resource_attributes())

    provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(provider)

    otlp_exporter = OTLPSpanExporter(
        endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT,
        insecure=True,  # Use insecure connection for development
    )
    provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    # Outbound quality API calls show up as child spans
    RequestsInstrumentor().instrument()

    return True


def instrument_fastapi(app) -> None:
    """Instrument FastAPI application for automatic HTTP tracing."""
    if is_tracing_enabled():
        FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy(engine) -> None:
    """Instrument SQLAlchemy engine for automatic database tracing."""
    if is_tracing_enabled():
        SQLAlchemyInstrumentor().instrument(engine=engine)


def get_tracer(name: str = __name__):
    """Get a tracer instance for creating custom spans."""
    return trace.get_tracer(name)


def create_span(tracer, name: str, attributes: dict[str, Any] | None = None):
    """Create a custom span with optional attributes."""
    span = tracer.start_span(name)
    if attributes:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(key, value)
    return span
