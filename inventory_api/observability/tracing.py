"""OpenTelemetry setup.

Spans for authorization decisions are emitted unconditionally through the
OpenTelemetry API (no-ops until a provider is installed); setup_tracing()
installs the SDK provider and instruments FastAPI and SQLAlchemy.
"""
import logging
import re
from typing import Optional

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.sdk.trace import ReadableSpan, Span, SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

logger = logging.getLogger(__name__)

_SENSITIVE = re.compile(r".*(authorization|cookie|token|secret|password).*", re.IGNORECASE)


class RedactingSpanProcessor(SpanProcessor):
    """Wraps a processor and masks sensitive attributes before export."""

    def __init__(self, processor: SpanProcessor):
        self._processor = processor

    def on_start(self, span: Span, parent_context: Optional[Context] = None) -> None:
        self._processor.on_start(span, parent_context)

    def on_end(self, span: ReadableSpan) -> None:
        if span.attributes:
            # Ended spans hold immutable attributes; swap in a redacted copy.
            span._attributes = {
                key: "[REDACTED]" if _SENSITIVE.match(key) else value
                for key, value in span.attributes.items()
            }
        self._processor.on_end(span)

    def shutdown(self) -> None:
        self._processor.shutdown()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return self._processor.force_flush(timeout_millis)


def setup_tracing(app: FastAPI, settings) -> Optional[TracerProvider]:
    if not settings.TRACING_ENABLED:
        return None

    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
    from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

    from inventory_api.adapters.postgres.session import get_engine

    provider = TracerProvider()
    if settings.OTEL_EXPORTER_OTLP_ENDPOINT:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        exporter = OTLPSpanExporter(endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT, insecure=True)
    else:
        exporter = ConsoleSpanExporter()
    provider.add_span_processor(RedactingSpanProcessor(BatchSpanProcessor(exporter)))
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app, tracer_provider=provider, excluded_urls="health/*")
    SQLAlchemyInstrumentor().instrument(
        engine=get_engine(),
        tracer_provider=provider,
        enable_commenter=False,
    )
    logger.info("Tracing enabled")
    return provider
