"""OpenTelemetry and logging configuration for the client."""

import logging
import os
from typing import Any

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span
from pythonjsonlogger import jsonlogger

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_NAME = "moms-kitchen-client"
DEFAULT_OTLP_ENDPOINT = "http://localhost:4318"

# httpx logs every request at INFO, which duplicates the request spans
NOISY_LOGGERS = ("httpx", "httpcore")

_configured = False


def get_service_resource() -> Resource:
    """Create the resource attached to every span and metric.

    Returns:
        Resource with service name, environment and client role
    """
    return Resource.create(
        {
            "service.name": os.getenv("OTEL_SERVICE_NAME", DEFAULT_SERVICE_NAME),
            "deployment.environment": os.getenv("ENVIRONMENT", "development"),
            "client.role": os.getenv("MOMS_KITCHEN_ROLE", "customer"),
        }
    )


def _otlp_endpoint(signal: str) -> str:
    base = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", DEFAULT_OTLP_ENDPOINT).rstrip("/")
    return f"{base}/v1/{signal}"


def setup_tracing(resource: Resource) -> None:
    """Export spans over OTLP/HTTP in batches."""
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=_otlp_endpoint("traces"))))
    trace.set_tracer_provider(provider)
    logger.info(f"Tracing exports to {_otlp_endpoint('traces')}")


def setup_metrics(resource: Resource) -> None:
    """Export metrics over OTLP/HTTP once a minute."""
    reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=_otlp_endpoint("metrics")),
        export_interval_millis=60000,
    )
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[reader]))
    logger.info(f"Metrics export to {_otlp_endpoint('metrics')}")


async def _tag_request(span: Span, request: Any) -> None:
    if span is None or not span.is_recording():
        return
    headers = request.headers or {}
    if headers.get("x-user-role"):
        span.set_attribute("kitchen.role", headers["x-user-role"])
    # Only record whether a token was sent, never the token itself
    span.set_attribute("kitchen.authenticated", "authorization" in headers)


async def _tag_response(span: Span, request: Any, response: Any) -> None:
    if span is not None and span.is_recording() and response.status_code == 401:
        span.set_attribute("kitchen.token_expired", True)


def setup_observability(enable_exporters: bool = True) -> None:
    """Initialize tracing, metrics and httpx auto-instrumentation.

    Runs once per process; later calls are ignored.

    Args:
        enable_exporters: Whether to enable OTLP exporters (forced off when ENVIRONMENT=test)
    """
    global _configured
    if _configured:
        return

    if os.getenv("ENVIRONMENT", "development") == "test":
        enable_exporters = False

    resource = get_service_resource()
    if enable_exporters:
        setup_tracing(resource)
        setup_metrics(resource)
    else:
        trace.set_tracer_provider(TracerProvider(resource=resource))
        metrics.set_meter_provider(MeterProvider(resource=resource))

    HTTPXClientInstrumentor().instrument(
        async_request_hook=_tag_request,
        async_response_hook=_tag_response,
    )
    _configured = True
    logger.info("Observability configured", extra={"exporters": enable_exporters})


def configure_logging(log_level: str = "INFO") -> None:
    """Send JSON log lines to stderr from the root logger.

    Every line carries the service name so client logs can be told apart
    from backend logs in a shared sink.

    Args:
        log_level: Default level; LOG_LEVEL takes precedence
    """
    level_str = os.getenv("LOG_LEVEL", log_level).upper()
    level = getattr(logging, level_str, logging.INFO)

    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        rename_fields={"levelname": "level", "name": "logger"},
        static_fields={"service": os.getenv("OTEL_SERVICE_NAME", DEFAULT_SERVICE_NAME)},
        timestamp=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers[:] = [handler]

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logger.info(f"JSON logging at {level_str}")
