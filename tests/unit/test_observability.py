"""Tests for logging, metrics and tracing setup."""

import json
import logging

import pytest
from prometheus_client import REGISTRY
from pythonjsonlogger.json import JsonFormatter

from nextcloud_webdav.config import Settings
from nextcloud_webdav.observability import setup_observability
from nextcloud_webdav.observability.logging_config import (
    TraceContextFormatter,
    TraceContextTextFormatter,
    build_formatter,
    configure_component_loggers,
)
from nextcloud_webdav.observability.metrics import record_cache_lookup
from nextcloud_webdav.observability.tracing import get_trace_context, trace_operation

pytestmark = pytest.mark.unit


def make_record(message: str) -> logging.LogRecord:
    return logging.LogRecord("nextcloud_webdav.cache", logging.INFO, __file__, 1, message, None, None)


class TestFormatters:
    def test_json_formatter(self):
        formatter = build_formatter("json", include_trace_context=True)
        assert isinstance(formatter, TraceContextFormatter)

        output = json.loads(formatter.format(make_record("cache hit")))
        assert output["message"] == "cache hit"
        assert output["level"] == "INFO"
        assert output["logger"] == "nextcloud_webdav.cache"

    def test_json_formatter_without_trace_context(self):
        formatter = build_formatter("JSON", include_trace_context=False)
        assert type(formatter) is JsonFormatter

    def test_text_formatter(self):
        formatter = build_formatter("text", include_trace_context=True)
        assert isinstance(formatter, TraceContextTextFormatter)
        assert "cache hit" in formatter.format(make_record("cache hit"))

    def test_component_loggers(self):
        configure_component_loggers("DEBUG")
        assert logging.getLogger("nextcloud_webdav").level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING


class TestTracingDisabled:
    def test_trace_operation_is_a_no_op(self):
        with trace_operation("webdav.test") as span:
            assert span is None

    def test_no_trace_context(self):
        assert get_trace_context() == {}


def test_cache_lookup_metric():
    labels = {"table": "data", "result": "memory_hit"}
    before = REGISTRY.get_sample_value("webdav_cache_lookups_total", labels) or 0

    record_cache_lookup("data", "memory_hit")

    assert REGISTRY.get_sample_value("webdav_cache_lookups_total", labels) == before + 1


def test_setup_observability(mocker):
    setup_logging = mocker.patch("nextcloud_webdav.observability.setup_logging")
    setup_metrics = mocker.patch("nextcloud_webdav.observability.setup_metrics")
    setup_tracing = mocker.patch("nextcloud_webdav.observability.setup_tracing")

    setup_observability(
        Settings(
            metrics_enabled=True,
            metrics_port=9200,
            otel_exporter_otlp_endpoint="http://collector:4317",
            log_format="json",
        )
    )

    setup_logging.assert_called_once_with(
        log_format="json", log_level="INFO", include_trace_context=True
    )
    setup_metrics.assert_called_once_with(9200)
    assert setup_tracing.call_args.kwargs["otlp_endpoint"] == "http://collector:4317"


def test_setup_observability_defaults(mocker):
    mocker.patch("nextcloud_webdav.observability.setup_logging")
    setup_metrics = mocker.patch("nextcloud_webdav.observability.setup_metrics")
    setup_tracing = mocker.patch("nextcloud_webdav.observability.setup_tracing")

    setup_observability(Settings())

    setup_metrics.assert_not_called()
    setup_tracing.assert_not_called()
