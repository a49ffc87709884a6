"""OpenTelemetry spans around reconcile runs.

Tracing is off unless OTEL_TRACES_ENABLED=true. While it is off the global
no-op tracer provider stays installed and spans are non-recording.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, Status, StatusCode

from . import __version__

logger = logging.getLogger(__name__)

INSTRUMENTATION_NAME = "generated_secrets_operator"


def tracing_enabled() -> bool:
    return os.getenv("OTEL_TRACES_ENABLED", "false").lower() in ("1", "true", "yes")


def initialize_tracing(service_name: str = "generated-secrets-operator") -> bool:
    """Install an OTLP-exporting tracer provider when tracing is enabled.

    Reads OTEL_SERVICE_NAME and OTEL_EXPORTER_OTLP_ENDPOINT (default
    http://localhost:4317).

    Returns:
        Whether a provider was installed
    """
    if not tracing_enabled():
        return False

    provider = TracerProvider(
        resource=Resource.create({
            "service.name": os.getenv("OTEL_SERVICE_NAME", service_name),
            "service.version": __version__,
        })
    )
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")
    try:
        exporter = OTLPSpanExporter(endpoint=endpoint)
    except Exception as e:
        logger.warning(f"Tracing disabled, cannot create OTLP exporter for {endpoint}: {e}")
        return False
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    logger.info(f"Exporting traces to {endpoint}")
    return True


@contextmanager
def trace_span(
    name: str,
    kind: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Iterator[Span]:
    """Run the block inside a child span of the current one.

    Args:
        name: Span name
        kind: Resource kind recorded as ``resource.kind``
        attributes: Extra span attributes

    Yields:
        The span, non-recording while tracing is disabled
    """
    attrs = dict(attributes or {})
    if kind:
        attrs["resource.kind"] = kind

    tracer = trace.get_tracer(INSTRUMENTATION_NAME, __version__)
    with tracer.start_as_current_span(
        name, attributes=attrs, record_exception=False, set_status_on_exception=False
    ) as span:
        try:
            yield span
        except Exception as e:
            if span.is_recording():
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, type(e).__name__))
            raise


def add_span_attribute(key: str, value: Any) -> None:
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attribute(key, value)
