from typing import Dict, Optional
import functools
import asyncio
import logging
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from agent_audit.common.core.config import settings

# Configure logging at module level
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    force=True,
)


# Global flag to ensure initialization only happens once
_initialized = False
audit_tracer = None


def _parse_otlp_headers(raw: Optional[str]) -> Dict[str, str]:
    """Parse `key=value,key2=value2` exporter headers."""
    headers = {}
    if not raw:
        return headers
    for pair in raw.split(","):
        key, sep, value = pair.partition("=")
        if sep and key.strip():
            headers[key.strip()] = value.strip()
    return headers


def _initialize_telemetry():
    """Initialize telemetry once and only once."""
    global _initialized, audit_tracer

    if _initialized:
        return

    resource = Resource(attributes={SERVICE_NAME: settings.otel_service_name})
    provider = TracerProvider(resource=resource)

    # Spans are only exported when a collector is configured
    if settings.otel_exporter_otlp_endpoint:
        exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            headers=_parse_otlp_headers(settings.otel_exporter_otlp_headers),
        )
        provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(provider)
    audit_tracer = trace.get_tracer(settings.otel_service_name)

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance. Ensures telemetry is initialized.
    Use this instead of logging.getLogger() directly.
    """
    if not _initialized:
        _initialize_telemetry()
    return logging.getLogger(name)


def trace_span(func):
    """Decorator that automatically creates a span with the function name."""

    def _span_name(args) -> str:
        span_name = func.__name__
        if args and hasattr(args[0], func.__name__):
            # If it's a method, include class name
            span_name = f"{args[0].__class__.__name__}.{func.__name__}"
        return span_name

    def _tracer():
        if not _initialized:
            _initialize_telemetry()
        return audit_tracer

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        with _tracer().start_as_current_span(_span_name(args)):
            return func(*args, **kwargs)

    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs):
        with _tracer().start_as_current_span(_span_name(args)):
            return await func(*args, **kwargs)

    if asyncio.iscoroutinefunction(func):
        return async_wrapper
    else:
        return sync_wrapper
