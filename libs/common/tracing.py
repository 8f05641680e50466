"""Distributed tracing configuration for the module search service.

Wraps OpenTelemetry setup for an OTLP/HTTP collector with optional
auto-instrumentation for FastAPI and HTTPX, plus a small context manager for
manual spans around units of work.
"""

import os
from typing import Any, Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Status, StatusCode
import structlog

logger = structlog.get_logger("tracing")


def configure_tracing(
    service_name: str,
    otlp_endpoint: str = "http://localhost:4318/v1/traces",
    app: Any = None,
    enable_instrumentation: bool = True
) -> Optional[trace.Tracer]:
    """Configure distributed tracing for a service.

    Parameters
    - service_name: Logical service identifier used in trace resources
    - otlp_endpoint: Collector endpoint for exporting spans
    - app: FastAPI application to instrument, if any
    - enable_instrumentation: Toggle built-in instrumentation hooks

    Returns
    - A tracer instance for ad-hoc span creation, or ``None`` on failure
    """

    try:
        tracer_provider = TracerProvider(
            resource=Resource.create({
                "service.name": service_name,
                "service.version": "0.1.0",
                "deployment.environment": os.getenv("ML_ENV", "local")
            })
        )
        tracer_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint))
        )
        trace.set_tracer_provider(tracer_provider)

        tracer = trace.get_tracer(service_name)

        if enable_instrumentation:
            try:
                if app is not None:
                    FastAPIInstrumentor.instrument_app(app)
                HTTPXClientInstrumentor().instrument()
                logger.info("Automatic instrumentation enabled")
            except Exception as e:
                # Partial failure is acceptable; log but continue.
                logger.warning("Failed to enable some instrumentation", error=str(e))

        logger.info(
            "Distributed tracing configured",
            service_name=service_name,
            otlp_endpoint=otlp_endpoint
        )

        return tracer

    except Exception as e:
        logger.error("Failed to configure tracing", error=str(e))
        return None


def create_span(
    tracer: trace.Tracer,
    operation_name: str,
    **attributes
) -> trace.Span:
    """Create a new span with stringified attributes."""
    span = tracer.start_span(operation_name)

    for key, value in attributes.items():
        span.set_attribute(key, str(value))

    return span


class TracingContext:
    """Context manager for tracing operations.

    Starts a span on entry and ensures it ends, recording success or error.
    Without a configured provider the span is a no-op.
    """

    def __init__(self, tracer: trace.Tracer, operation_name: str, **attributes):
        self.tracer = tracer
        self.operation_name = operation_name
        self.attributes = attributes
        self.span: Optional[trace.Span] = None

    def __enter__(self):
        self.span = create_span(self.tracer, self.operation_name, **self.attributes)
        return self.span

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.span:
            if exc_type is not None:
                self.span.set_status(Status(StatusCode.ERROR, f"{exc_type.__name__}: {exc_val}"))
            else:
                self.span.set_status(Status(StatusCode.OK))

            self.span.end()
