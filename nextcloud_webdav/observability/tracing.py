"""
OpenTelemetry distributed tracing for the Nextcloud WebDAV client.

This module provides:
- OpenTelemetry SDK initialization with OTLP exporter
- Helper functions for creating custom spans
- Trace context extraction for log correlation
"""

import logging
from contextlib import contextmanager
from typing import Any

from importlib_metadata import PackageNotFoundError, version
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from opentelemetry.trace import Status, StatusCode, Tracer

logger = logging.getLogger(__name__)

# Global tracer instance (initialized in setup_tracing)
_tracer: Tracer | None = None


def _package_version() -> str:
    try:
        return version("nextcloud-webdav")
    except PackageNotFoundError:
        return "unknown"


def setup_tracing(
    service_name: str = "nextcloud-webdav",
    otlp_endpoint: str | None = None,
    otlp_verify_ssl: bool = False,
    sampling_rate: float = 1.0,
) -> Tracer:
    """
    Initialize OpenTelemetry tracing with OTLP exporter.

    Args:
        service_name: Service name for traces (default: "nextcloud-webdav")
        otlp_endpoint: OTLP gRPC endpoint (e.g., "http://otel-collector:4317")
                      If None, tracing is initialized but no exporter is configured
        otlp_verify_ssl: Enable TLS verification for otlp_endpoint
        sampling_rate: Sampling rate (0.0-1.0). Default 1.0 (100% sampling)

    Returns:
        Tracer instance for creating custom spans
    """
    global _tracer

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.version": _package_version(),
        }
    )

    provider = TracerProvider(
        resource=resource, sampler=TraceIdRatioBased(sampling_rate)
    )

    if otlp_endpoint:
        try:
            otlp_exporter = OTLPSpanExporter(
                endpoint=otlp_endpoint, insecure=not otlp_verify_ssl
            )
            provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
            logger.info(
                f"OpenTelemetry tracing enabled with OTLP endpoint: {otlp_endpoint}"
            )
        except Exception as e:
            logger.warning(
                f"Failed to initialize OTLP exporter: {e}. Continuing without trace export."
            )
    else:
        logger.info(
            "OpenTelemetry tracing initialized without OTLP exporter (traces will be generated but not exported)"
        )

    trace.set_tracer_provider(provider)

    # Auto-instrument logging to inject trace context
    LoggingInstrumentor().instrument(set_logging_format=True)

    _tracer = trace.get_tracer(__name__)

    logger.info(f"OpenTelemetry tracing initialized for service: {service_name}")
    return _tracer


def get_tracer() -> Tracer | None:
    """
    Get the global tracer instance.

    Returns:
        Tracer instance, or None if setup_tracing() was never called
    """
    return _tracer


@contextmanager
def trace_operation(
    operation_name: str,
    attributes: dict[str, Any] | None = None,
    record_exception: bool = True,
):
    """
    Context manager for tracing an operation with automatic error handling.

    Usage:
        with trace_operation("webdav.cache.reconcile", {"webdav.path": "Photos"}):
            ...

    Args:
        operation_name: Name of the operation (span name)
        attributes: Optional attributes to add to the span
        record_exception: Whether to record exceptions in the span (default: True)

    Yields:
        Span instance (or None if tracing disabled)
    """
    tracer = get_tracer()

    if tracer is None:
        yield None
        return

    with tracer.start_as_current_span(operation_name) as span:
        if attributes:
            for key, value in attributes.items():
                span.set_attribute(key, value)

        try:
            yield span
            span.set_status(Status(StatusCode.OK))
        except Exception as e:
            if record_exception:
                span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            raise


def trace_webdav_request(method: str, path: str | None = None):
    """
    Create a span for a WebDAV request.

    Args:
        method: HTTP method (GET, PUT, PROPFIND, ...)
        path: Optional request path

    Returns:
        Context manager for the span
    """
    attributes = {"http.method": method}
    if path:
        attributes["http.path"] = path

    return trace_operation(f"webdav.request.{method}", attributes)


def get_trace_context() -> dict[str, str]:
    """
    Get current trace context as a dictionary.

    Returns:
        Dictionary with trace_id and span_id (or empty dict if tracing disabled or no active span)
    """
    if _tracer is None:
        return {}

    span = trace.get_current_span()
    if span.is_recording():
        span_context = span.get_span_context()
        return {
            "trace_id": format(span_context.trace_id, "032x"),
            "span_id": format(span_context.span_id, "016x"),
        }
    return {}
