"""WebDAV client with two-tier caching."""

import logging
from pathlib import Path
from typing import Optional, Union

from httpx import AsyncClient

from nextcloud_webdav.cache.context import CacheContext
from nextcloud_webdav.config import Settings, get_settings

from .base import BaseWebDAVClient
from .files import FilesMixin
from .images import ANY_THUMBNAIL, ImagesMixin
from .ocs import OCSMixin

logger = logging.getLogger(__name__)


class WebDAV(FilesMixin, ImagesMixin, OCSMixin):
    """Main client for a WebDAV server, including Nextcloud extensions.

    Accounts and passwords are passed per call, so one instance can serve any number
    of accounts. All cache tables and the disk cache are owned by `cache`.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        cache_dir: Optional[Union[str, Path]] = None,
        http_client: Optional[AsyncClient] = None,
    ):
        """Initialize the client.

        Args:
            settings: Client settings; read from the environment if omitted
            cache_dir: Disk cache root, overriding `settings.cache_dir`
            http_client: AsyncClient to send requests with; one is created if omitted
        """
        settings = settings or get_settings()
        super().__init__(settings, http_client)
        self.cache = CacheContext(settings, Path(cache_dir) if cache_dir else None)
        logger.debug(f"WebDAV client using cache directory {self.cache.disk.root}")

    async def __aenter__(self) -> "WebDAV":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


__all__ = ["ANY_THUMBNAIL", "BaseWebDAVClient", "WebDAV"]
