"""OpenTelemetry tracing and request metrics.

Tracing uses a Loguru-backed span exporter in development and OTLP
elsewhere. Request metrics are recorded by handlers through the
``MetricsSink`` protocol; ``OTelMetricsSink`` is the production
implementation and records a duration histogram plus a request counter,
both labelled by operation name and final status code.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Final, Protocol

from loguru import logger
from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SpanExporter,
    SpanExportResult,
)
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

from catalog.core.context import RequestContext

if TYPE_CHECKING:
    from fastapi import FastAPI

    from catalog.core.config import Settings

SERVICE_NAME_KEY: Final[str] = "service.name"
SERVICE_VERSION_KEY: Final[str] = "service.version"
ENVIRONMENT_KEY: Final[str] = "deployment.environment"
DEFAULT_OTLP_ENDPOINT: Final[str] = "http://localhost:4317"

REQUEST_DURATION_METRIC: Final[str] = "http.server.request.duration"
REQUEST_COUNT_METRIC: Final[str] = "http.server.requests"


class _ProviderState:
    """Global OpenTelemetry providers may only be installed once per process."""

    def __init__(self) -> None:
        self.tracing_configured = False
        self.metrics_configured = False


_state = _ProviderState()


class MetricsSink(Protocol):
    """Receives one observation per handled request."""

    def observe_request(self, duration: float, status: int, op: str) -> None:
        """Record a finished request.

        Args:
            duration: Wall time spent in the handler, in seconds.
            status: Final status code the handler settled on.
            op: Operation name, e.g. ``orders.createOrder.handler``.
        """
        ...


class OTelMetricsSink:
    """MetricsSink recording through the global OpenTelemetry meter."""

    def __init__(self, meter: metrics.Meter | None = None) -> None:
        meter = meter or metrics.get_meter(__name__)
        self._duration = meter.create_histogram(
            REQUEST_DURATION_METRIC,
            unit="s",
            description="Duration of handled HTTP requests",
        )
        self._count = meter.create_counter(
            REQUEST_COUNT_METRIC,
            description="Number of handled HTTP requests",
        )

    def observe_request(self, duration: float, status: int, op: str) -> None:
        attributes = {"op": op, "status": status}
        self._duration.record(duration, attributes=attributes)
        self._count.add(1, attributes=attributes)


class NullMetricsSink:
    """MetricsSink that discards observations."""

    def observe_request(self, duration: float, status: int, op: str) -> None:
        return None


class LoguruSpanExporter(SpanExporter):
    """Span exporter that writes finished spans through Loguru."""

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        for span in spans:
            span_context = span.get_span_context()
            if not span_context:
                continue

            attributes = dict(span.attributes or {})
            duration_ms = None
            if span.end_time and span.start_time:
                duration_ms = (span.end_time - span.start_time) // 1_000_000

            logger.bind(
                trace_id=f"0x{span_context.trace_id:032x}",
                span_id=f"0x{span_context.span_id:016x}",
                correlation_id=attributes.get(
                    "correlation_id", RequestContext.get_correlation_id()
                ),
                span_name=span.name,
                duration_ms=duration_ms,
                status=span.status.status_code.name,
            ).debug("Trace span completed: {}", span.name)

        return SpanExportResult.SUCCESS


def _resource(settings: Settings) -> Resource:
    return Resource.create(
        {
            SERVICE_NAME_KEY: settings.app_name,
            SERVICE_VERSION_KEY: settings.app_version,
            ENVIRONMENT_KEY: settings.environment,
        }
    )


def get_span_exporter(settings: Settings) -> SpanExporter | None:
    """Get the span exporter selected by configuration.

    Args:
        settings: Application settings.

    Returns:
        SpanExporter | None: Configured exporter or None if disabled.
    """
    config = settings.observability_config
    if config.exporter_type == "console":
        return LoguruSpanExporter()
    if config.exporter_type == "otlp":
        endpoint = config.exporter_endpoint or DEFAULT_OTLP_ENDPOINT
        logger.info("Using OTLP span exporter at {}", endpoint)
        return OTLPSpanExporter(
            endpoint=endpoint, insecure=settings.environment == "development"
        )
    logger.info("Span export disabled")
    return None


def setup_tracing(settings: Settings) -> None:
    """Install the global tracer provider when tracing is enabled.

    Args:
        settings: Application settings.
    """
    config = settings.observability_config
    if not config.enable_tracing or _state.tracing_configured:
        return

    tracer_provider = TracerProvider(
        resource=_resource(settings),
        sampler=TraceIdRatioBased(config.trace_sample_rate),
    )
    if exporter := get_span_exporter(settings):
        tracer_provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(tracer_provider)
    _state.tracing_configured = True

    logger.info(
        "Tracing configured",
        exporter_type=config.exporter_type,
        sample_rate=config.trace_sample_rate,
    )


def setup_metrics(settings: Settings) -> None:
    """Install the global meter provider when metrics are enabled.

    Only the OTLP exporter ships metrics out of process; other exporter types
    keep in-process instruments so handlers can record unconditionally.

    Args:
        settings: Application settings.
    """
    config = settings.observability_config
    if not config.enable_metrics or _state.metrics_configured:
        return

    readers = []
    if config.exporter_type == "otlp":
        endpoint = config.exporter_endpoint or DEFAULT_OTLP_ENDPOINT
        readers.append(
            PeriodicExportingMetricReader(
                OTLPMetricExporter(
                    endpoint=endpoint, insecure=settings.environment == "development"
                )
            )
        )
    metrics.set_meter_provider(
        MeterProvider(resource=_resource(settings), metric_readers=readers)
    )
    _state.metrics_configured = True
    logger.info("Metrics configured", exporter_type=config.exporter_type)


def build_metrics_sink(settings: Settings) -> MetricsSink:
    """Return the metrics sink matching configuration."""
    if settings.observability_config.enable_metrics:
        return OTelMetricsSink()
    return NullMetricsSink()


def instrument_app(app: FastAPI, settings: Settings) -> None:
    """Instrument the FastAPI application for tracing.

    Args:
        app: FastAPI application to instrument.
        settings: Application settings.
    """
    if not settings.observability_config.enable_tracing:
        return

    FastAPIInstrumentor.instrument_app(
        app, excluded_urls="/health,/docs,/openapi.json"
    )
    logger.info("Application instrumented for tracing")


def add_correlation_id_to_span(correlation_id: str) -> None:
    """Copy the correlation ID into the active server span, if one is recording.

    Args:
        correlation_id: The request's correlation ID.
    """
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attribute("correlation_id", correlation_id)
