"""
Observability module for the Nextcloud WebDAV client.

This module provides:
- Prometheus metrics collection
- OpenTelemetry distributed tracing
- Structured logging with trace correlation

Usage:
    from nextcloud_webdav.config import get_settings
    from nextcloud_webdav.observability import setup_observability

    setup_observability(get_settings())
"""

from nextcloud_webdav.config import Settings
from nextcloud_webdav.observability.logging_config import setup_logging
from nextcloud_webdav.observability.metrics import setup_metrics
from nextcloud_webdav.observability.tracing import setup_tracing


def setup_observability(settings: Settings) -> None:
    """Configure logging, metrics and tracing from settings."""
    setup_logging(
        log_format=settings.log_format,
        log_level=settings.log_level,
        include_trace_context=settings.log_include_trace_context,
    )
    if settings.metrics_enabled:
        setup_metrics(settings.metrics_port)
    if settings.otel_exporter_otlp_endpoint:
        setup_tracing(
            service_name=settings.otel_service_name,
            otlp_endpoint=settings.otel_exporter_otlp_endpoint,
            otlp_verify_ssl=settings.otel_exporter_verify_ssl,
            sampling_rate=settings.otel_traces_sampler_arg,
        )


__all__ = [
    "setup_logging",
    "setup_metrics",
    "setup_observability",
    "setup_tracing",
]
