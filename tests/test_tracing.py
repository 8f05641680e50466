"""Tests for tracing helpers."""

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode

from libs.common.tracing import TracingContext


@pytest.fixture
def tracer_and_exporter():
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    return provider.get_tracer("test"), exporter


def test_tracing_context_records_success(tracer_and_exporter):
    tracer, exporter = tracer_and_exporter

    with TracingContext(tracer, "module_search.query", query="ping", limit=5):
        pass

    (span,) = exporter.get_finished_spans()
    assert span.name == "module_search.query"
    assert span.attributes["query"] == "ping"
    assert span.attributes["limit"] == "5"
    assert span.status.status_code == StatusCode.OK


def test_tracing_context_records_error(tracer_and_exporter):
    tracer, exporter = tracer_and_exporter

    with pytest.raises(RuntimeError):
        with TracingContext(tracer, "module_search.query"):
            raise RuntimeError("index down")

    (span,) = exporter.get_finished_spans()
    assert span.status.status_code == StatusCode.ERROR
    assert "index down" in span.status.description
