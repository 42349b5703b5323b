"""
Prometheus metrics for the Nextcloud WebDAV client.

Metrics are organized by category:

- WebDAV API Client Metrics (RED: Rate, Errors, Duration)
- Cache Metrics (lookups, writes, pruning, disk failures)
"""

import logging

from prometheus_client import (
    Counter,
    Histogram,
    start_http_server,
)

logger = logging.getLogger(__name__)

# =============================================================================
# WebDAV API Client Metrics
# =============================================================================

webdav_api_requests_total = Counter(
    "webdav_api_requests_total",
    "Total WebDAV API requests",
    ["method", "status_code"],
)

webdav_api_duration_seconds = Histogram(
    "webdav_api_duration_seconds",
    "WebDAV API request duration in seconds",
    ["method"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

webdav_api_retries_total = Counter(
    "webdav_api_retries_total",
    "Total WebDAV API retries",
    ["method", "reason"],  # reason: 429
)

# =============================================================================
# Cache Metrics
# =============================================================================

cache_lookups_total = Counter(
    "webdav_cache_lookups_total",
    "Total cache lookups",
    ["table", "result"],  # result: memory_hit | disk_hit | miss
)

cache_writes_total = Counter(
    "webdav_cache_writes_total",
    "Total values written to the cache",
    ["table"],
)

cache_pruned_total = Counter(
    "webdav_cache_pruned_total",
    "Total cache entries removed by reconciliation",
    ["kind"],  # kind: listing | disk
)

cache_disk_errors_total = Counter(
    "webdav_cache_disk_errors_total",
    "Total disk cache failures",
    ["operation"],  # operation: read | write | delete | enumerate | index
)

# =============================================================================
# Metrics Setup
# =============================================================================


def setup_metrics(port: int = 9090) -> None:
    """
    Start the Prometheus exposition HTTP server.

    The server runs in a separate thread owned by prometheus_client.

    Args:
        port: Port to serve metrics on (default: 9090)
    """
    try:
        start_http_server(port)
        logger.info(f"Prometheus metrics server started on port {port}")
    except OSError as e:
        if "Address already in use" in str(e):
            logger.warning(
                f"Metrics port {port} already in use (metrics server likely already running)"
            )
        else:
            logger.error(f"Failed to start metrics server on port {port}: {e}")
            raise


# =============================================================================
# Convenience Functions for Common Metric Updates
# =============================================================================


def record_webdav_api_call(method: str, status_code: int, duration: float) -> None:
    """
    Record metrics for a WebDAV API call.

    Args:
        method: HTTP method (GET, PUT, PROPFIND, MKCOL, ...)
        status_code: HTTP status code (0 for connection errors)
        duration: Request duration in seconds
    """
    webdav_api_requests_total.labels(method=method, status_code=str(status_code)).inc()
    webdav_api_duration_seconds.labels(method=method).observe(duration)


def record_webdav_api_retry(method: str, reason: str) -> None:
    webdav_api_retries_total.labels(method=method, reason=reason).inc()


def record_cache_lookup(table: str, result: str) -> None:
    """
    Record a cache lookup.

    Args:
        table: Cache table name (files, data, image, thumbnail)
        result: memory_hit, disk_hit or miss
    """
    cache_lookups_total.labels(table=table, result=result).inc()


def record_cache_write(table: str) -> None:
    cache_writes_total.labels(table=table).inc()


def record_cache_pruned(kind: str, count: int = 1) -> None:
    if count > 0:
        cache_pruned_total.labels(kind=kind).inc(count)


def record_cache_disk_error(operation: str) -> None:
    cache_disk_errors_total.labels(operation=operation).inc()
