"""
OpenTelemetry tracing setup.

Spans are created throughout the package with ``trace.get_tracer(__name__)``.
Without a configured provider they are no-ops; ``configure_tracing`` installs
an SDK provider tagged with the service name and, optionally, a console
exporter for local debugging.
"""

import logging
from typing import Any, Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from .config import Settings

logger = logging.getLogger(__name__)

_provider: Optional[TracerProvider] = None


def configure_tracing(settings: Settings) -> TracerProvider:
    """Install the SDK tracer provider once per process."""
    global _provider
    if _provider is not None:
        return _provider

    resource = Resource.create(
        {
            "service.name": settings.OTEL_SERVICE_NAME,
            "service.version": settings.OTEL_SERVICE_VERSION,
            "deployment.environment": settings.ENVIRONMENT,
        }
    )
    provider = TracerProvider(resource=resource)
    if settings.OTEL_CONSOLE_EXPORT:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _provider = provider
    logger.info(
        "Tracing configured",
        extra={
            "service_name": settings.OTEL_SERVICE_NAME,
            "console_export": settings.OTEL_CONSOLE_EXPORT,
        },
    )
    return provider


def shutdown_tracing() -> None:
    """Flush and shut down the tracer provider if one was installed."""
    global _provider
    if _provider is None:
        return
    _provider.shutdown()
    _provider = None


def add_span_attribute(key: str, value: Any) -> None:
    """Add an attribute to the current span if it is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attribute(key, value)
