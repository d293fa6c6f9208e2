"""OpenTelemetry tracing support for AppForge jobs and steps."""

import logging
import os

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanExporter,
)

logger = logging.getLogger(__name__)

# Global state
_tracer_provider: TracerProvider | None = None
_tracer = None


def get_tracer():
    """Get or create the OpenTelemetry tracer instance."""
    if _tracer is None:
        initialize_otel()
    return _tracer


def initialize_otel(
    enabled: bool | None = None,
    service_name: str | None = None,
    exporter: SpanExporter | None = None,
) -> None:
    """Initialize the OpenTelemetry SDK.

    Args:
        enabled: Overrides ``APPFORGE_OTEL_ENABLED`` (default: enabled)
        service_name: Overrides ``APPFORGE_OTEL_SERVICE_NAME`` (default: "appforge")
        exporter: Span exporter to attach synchronously. When omitted, spans are printed to
            the console only if ``APPFORGE_OTEL_CONSOLE=true``.
    """
    global _tracer_provider, _tracer

    if enabled is None:
        enabled = os.getenv("APPFORGE_OTEL_ENABLED", "true").lower() == "true"
    if not enabled:
        _tracer = trace.NoOpTracer()
        return

    service_name = service_name or os.getenv("APPFORGE_OTEL_SERVICE_NAME", "appforge")
    _tracer_provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

    if exporter is not None:
        _tracer_provider.add_span_processor(SimpleSpanProcessor(exporter))
    elif os.getenv("APPFORGE_OTEL_CONSOLE", "false").lower() == "true":
        _tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    # Use the provider directly instead of the global one so re-initialization works in tests
    _tracer = _tracer_provider.get_tracer(service_name)
    logger.info("OpenTelemetry initialized for service %s", service_name)


def shutdown_otel() -> None:
    """Flush and shut down the tracer provider, if one was created."""
    global _tracer_provider, _tracer
    if _tracer_provider is not None:
        _tracer_provider.shutdown()
    _tracer_provider = None
    _tracer = None
