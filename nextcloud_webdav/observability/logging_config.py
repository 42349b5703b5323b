"""
Logging configuration for the Nextcloud WebDAV client.

This module provides:
- Structured JSON logging with python-json-logger
- Trace context injection (trace_id, span_id) for correlation with traces
- Configurable log formats (JSON or text)
- Log level configuration per component
"""

import logging
import sys
from typing import Any

from pythonjsonlogger.json import JsonFormatter

from nextcloud_webdav.observability.tracing import get_trace_context

TEXT_FORMAT = "%(levelname)s [%(asctime)s] %(name)s - %(message)s"
JSON_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"


class TraceContextFormatter(JsonFormatter):
    """
    JSON formatter that injects OpenTelemetry trace context into log records.
    """

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        trace_context = get_trace_context()
        if trace_context:
            log_record["trace_id"] = trace_context.get("trace_id")
            log_record["span_id"] = trace_context.get("span_id")

        log_record["timestamp"] = self.formatTime(record)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["message"] = record.getMessage()

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


class TraceContextTextFormatter(logging.Formatter):
    """
    Text formatter that includes OpenTelemetry trace context.

    Format: LEVEL [timestamp] logger - message [trace_id=xxx span_id=yyy]
    """

    def format(self, record: logging.LogRecord) -> str:
        base_message = super().format(record)

        trace_context = get_trace_context()
        if trace_context:
            trace_id = trace_context.get("trace_id", "")
            span_id = trace_context.get("span_id", "")
            return f"{base_message} [trace_id={trace_id} span_id={span_id}]"

        return base_message


def build_formatter(log_format: str, include_trace_context: bool) -> logging.Formatter:
    """Pick the formatter for a log format and trace-context preference."""
    if log_format.lower() == "json":
        formatter_class = TraceContextFormatter if include_trace_context else JsonFormatter
        return formatter_class(JSON_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")

    formatter_class = (
        TraceContextTextFormatter if include_trace_context else logging.Formatter
    )
    return formatter_class(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(
    log_format: str = "text",
    log_level: str = "INFO",
    include_trace_context: bool = True,
) -> None:
    """
    Configure logging for applications embedding the WebDAV client.

    Args:
        log_format: "json" for JSON logging, "text" for human-readable text (default: "text")
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL) (default: "INFO")
        include_trace_context: Whether to include trace context in logs (default: True)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(build_formatter(log_format, include_trace_context))
    root_logger.addHandler(console_handler)

    configure_component_loggers(log_level)

    root_logger.info(
        f"Logging configured: format={log_format}, level={log_level}, "
        f"trace_context={include_trace_context}"
    )


def configure_component_loggers(default_level: str = "INFO") -> None:
    """
    Configure log levels for specific components.

    Args:
        default_level: Default log level for the client's own loggers
    """
    logger_levels = {
        "nextcloud_webdav": default_level,
        "nextcloud_webdav.cache": default_level,
        "nextcloud_webdav.client": default_level,
        # HTTP client loggers (less verbose by default)
        "httpx": "WARNING",
        "httpcore": "WARNING",
        # OpenTelemetry (less verbose)
        "opentelemetry": "WARNING",
    }

    for logger_name, level in logger_levels.items():
        logger = logging.getLogger(logger_name)
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))
