import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_CACHE_DIR = Path.home() / ".cache" / "nextcloud-webdav"


@dataclass
class Settings:
    """Client settings from environment variables."""

    # Disk cache root; every account gets its own directory below it
    cache_dir: Optional[str] = None

    # Memory cache bounds
    listing_cache_max_entries: int = 10000
    data_cache_max_bytes: int = 64 * 1024 * 1024
    image_cache_max_bytes: int = 128 * 1024 * 1024
    thumbnail_cache_max_entries: int = 1000

    # HTTP settings
    request_timeout: float = 30.0
    connect_timeout: float = 5.0
    max_retries: int = 5
    retry_delay: float = 5.0  # seconds to wait after a 429

    # Observability settings
    metrics_enabled: bool = False
    metrics_port: int = 9090
    otel_exporter_otlp_endpoint: Optional[str] = None
    otel_exporter_verify_ssl: bool = False
    otel_service_name: str = "nextcloud-webdav"
    otel_traces_sampler_arg: float = 1.0
    log_format: str = "text"  # "json" or "text"
    log_level: str = "INFO"
    log_include_trace_context: bool = True

    def __post_init__(self):
        logger = logging.getLogger(__name__)

        for name in (
            "listing_cache_max_entries",
            "data_cache_max_bytes",
            "image_cache_max_bytes",
            "thumbnail_cache_max_entries",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name.upper()} must be positive")

        if self.max_retries < 1:
            raise ValueError(f"WEBDAV_MAX_RETRIES ({self.max_retries}) must be at least 1")

        if self.retry_delay < 0:
            raise ValueError(
                f"WEBDAV_RETRY_DELAY ({self.retry_delay}) cannot be negative"
            )

        if self.log_format.lower() not in ("json", "text"):
            raise ValueError(
                f"LOG_FORMAT must be 'json' or 'text', got '{self.log_format}'"
            )

        if self.cache_dir is None:
            self.cache_dir = str(DEFAULT_CACHE_DIR)
            logger.debug(f"Using default cache directory: {self.cache_dir}")

    @property
    def cache_path(self) -> Path:
        return Path(self.cache_dir).expanduser()


def get_settings() -> Settings:
    """Get client settings from environment variables.

    Returns:
        Settings object with configuration values
    """
    return Settings(
        cache_dir=os.getenv("WEBDAV_CACHE_DIR"),
        listing_cache_max_entries=int(
            os.getenv("WEBDAV_LISTING_CACHE_MAX_ENTRIES", "10000")
        ),
        data_cache_max_bytes=int(
            os.getenv("WEBDAV_DATA_CACHE_MAX_BYTES", str(64 * 1024 * 1024))
        ),
        image_cache_max_bytes=int(
            os.getenv("WEBDAV_IMAGE_CACHE_MAX_BYTES", str(128 * 1024 * 1024))
        ),
        thumbnail_cache_max_entries=int(
            os.getenv("WEBDAV_THUMBNAIL_CACHE_MAX_ENTRIES", "1000")
        ),
        request_timeout=float(os.getenv("WEBDAV_REQUEST_TIMEOUT", "30")),
        connect_timeout=float(os.getenv("WEBDAV_CONNECT_TIMEOUT", "5")),
        max_retries=int(os.getenv("WEBDAV_MAX_RETRIES", "5")),
        retry_delay=float(os.getenv("WEBDAV_RETRY_DELAY", "5")),
        # Observability settings
        metrics_enabled=os.getenv("METRICS_ENABLED", "false").lower() == "true",
        metrics_port=int(os.getenv("METRICS_PORT", "9090")),
        otel_exporter_otlp_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"),
        otel_exporter_verify_ssl=os.getenv("OTEL_EXPORTER_VERIFY_SSL", "false").lower()
        == "true",
        otel_service_name=os.getenv("OTEL_SERVICE_NAME", "nextcloud-webdav"),
        otel_traces_sampler_arg=float(os.getenv("OTEL_TRACES_SAMPLER_ARG", "1.0")),
        log_format=os.getenv("LOG_FORMAT", "text"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_include_trace_context=os.getenv("LOG_INCLUDE_TRACE_CONTEXT", "true").lower()
        == "true",
    )
