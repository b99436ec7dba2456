"""OpenTelemetry + Prometheus fallback wiring for the agent memory backend."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

from fastapi import FastAPI

from agentmem import config

logger = logging.getLogger("agentmem.observability")


_initialized = False
_enabled = False
_tracer: Any | None = None
_trace_provider: Any | None = None
_meter_provider: Any | None = None
_fastapi_instrumentor: Any | None = None

_backfill_counter: Any | None = None
_backfill_latency_hist: Any | None = None
_conversations_counter: Any | None = None

_prom_enabled = False
_prom_backfill_counter: Any | None = None
_prom_backfill_latency_hist: Any | None = None
_prom_conversations_counter: Any | None = None


def _normalize_otlp_endpoint(base_endpoint: str, signal_path: str) -> str:
    endpoint = (base_endpoint or "").strip()
    if not endpoint:
        return ""
    if endpoint.endswith(signal_path):
        return endpoint
    if endpoint.endswith("/"):
        endpoint = endpoint[:-1]
    if endpoint.endswith("/v1"):
        return f"{endpoint}{signal_path[3:]}"
    return f"{endpoint}{signal_path}"


def initialize(app: FastAPI | None = None) -> None:
    global _initialized, _enabled, _tracer, _trace_provider, _meter_provider, _fastapi_instrumentor
    global _backfill_counter, _backfill_latency_hist, _conversations_counter
    global _prom_enabled, _prom_backfill_counter, _prom_backfill_latency_hist, _prom_conversations_counter

    if _initialized:
        if _enabled and app and _fastapi_instrumentor:
            _fastapi_instrumentor.instrument_app(app)
        return

    _initialized = True

    if not config.OTEL_ENABLED:
        logger.info("OpenTelemetry disabled (AGENTMEM_OTEL_ENABLED=false)")
        return

    try:
        from opentelemetry import metrics, trace
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
    except ImportError as exc:
        logger.warning("OpenTelemetry dependencies unavailable: %s", exc)
        return

    traces_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/traces")
    metrics_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/metrics")
    service_name = config.OTEL_SERVICE_NAME or "agentmem-backend"

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.namespace": "agentmem",
        }
    )

    trace_provider = TracerProvider(resource=resource)
    trace_exporter = OTLPSpanExporter(endpoint=traces_endpoint or None)
    trace_provider.add_span_processor(BatchSpanProcessor(trace_exporter))
    trace.set_tracer_provider(trace_provider)
    tracer = trace.get_tracer("agentmem.backend")

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=metrics_endpoint or None)
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)
    meter = metrics.get_meter("agentmem.backend")

    _backfill_counter = meter.create_counter(
        "agentmem_backfill_runs_total",
        unit="1",
        description="Count of memory backfill runs",
    )
    _backfill_latency_hist = meter.create_histogram(
        "agentmem_backfill_latency_ms",
        unit="ms",
        description="Latency of memory backfill runs",
    )
    _conversations_counter = meter.create_counter(
        "agentmem_backfill_conversations_total",
        unit="1",
        description="Conversations classified by memory backfill runs",
    )

    _trace_provider = trace_provider
    _meter_provider = meter_provider
    _tracer = tracer
    _fastapi_instrumentor = FastAPIInstrumentor()
    _enabled = True

    if app:
        _fastapi_instrumentor.instrument_app(app)

    if config.PROM_PORT > 0:
        try:
            from prometheus_client import Counter, Histogram, start_http_server

            start_http_server(config.PROM_PORT)
            _prom_enabled = True
            _prom_backfill_counter = Counter(
                "agentmem_backfill_runs_total",
                "Count of memory backfill runs",
                ["mode", "result"],
            )
            _prom_backfill_latency_hist = Histogram(
                "agentmem_backfill_latency_ms",
                "Latency of memory backfill runs",
                ["mode", "result"],
            )
            _prom_conversations_counter = Counter(
                "agentmem_backfill_conversations_total",
                "Conversations classified by memory backfill runs",
                ["mode", "outcome"],
            )
            logger.info("Prometheus fallback metrics server listening on port %s", config.PROM_PORT)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Prometheus fallback not started: %s", exc)
            _prom_enabled = False

    logger.info(
        "OpenTelemetry initialized (service=%s endpoint=%s)",
        service_name,
        config.OTEL_ENDPOINT,
    )


def shutdown(app: FastAPI | None = None) -> None:
    global _enabled
    if not _initialized:
        return
    try:
        if app and _fastapi_instrumentor:
            _fastapi_instrumentor.uninstrument_app(app)
    except Exception:
        logger.debug("FastAPI instrumentation removal failed", exc_info=True)
    try:
        if _meter_provider is not None:
            _meter_provider.shutdown()
    except Exception:
        logger.debug("Meter provider shutdown failed", exc_info=True)
    try:
        if _trace_provider is not None:
            _trace_provider.shutdown()
    except Exception:
        logger.debug("Trace provider shutdown failed", exc_info=True)
    _enabled = False


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None):
    if not _enabled or _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)
        yield span


def record_backfill(mode: str, result: str, duration_ms: float, *, outcomes: dict[str, int] | None = None) -> None:
    labels = {"mode": mode or "unknown", "result": result or "unknown"}
    if _enabled and _backfill_counter is not None:
        _backfill_counter.add(1, labels)
    if _enabled and _backfill_latency_hist is not None:
        _backfill_latency_hist.record(max(0.0, float(duration_ms)), labels)
    if _prom_enabled and _prom_backfill_counter is not None:
        _prom_backfill_counter.labels(**labels).inc()
    if _prom_enabled and _prom_backfill_latency_hist is not None:
        _prom_backfill_latency_hist.labels(**labels).observe(max(0.0, float(duration_ms)))

    for outcome, count in (outcomes or {}).items():
        safe_count = max(0, int(count))
        if safe_count == 0:
            continue
        if _enabled and _conversations_counter is not None:
            _conversations_counter.add(safe_count, {"mode": labels["mode"], "outcome": outcome})
        if _prom_enabled and _prom_conversations_counter is not None:
            _prom_conversations_counter.labels(mode=labels["mode"], outcome=outcome).inc(safe_count)
