"""Image downloads and Nextcloud server-rendered thumbnails."""

import logging
from typing import AsyncIterator, Literal, Optional, Union
from urllib.parse import urlencode

from PIL import Image

from nextcloud_webdav.cache.codecs import decode_image
from nextcloud_webdav.cache.context import CacheContext
from nextcloud_webdav.cache.options import CacheOptions
from nextcloud_webdav.cache.orchestrator import CachedResult, cached_request
from nextcloud_webdav.cache.slots import ImageSlot, ThumbnailSlot
from nextcloud_webdav.models.account import WebDAVAccount, normalize_account, trim_path
from nextcloud_webdav.models.thumbnail import DEFAULT, ThumbnailProperties

from .base import BaseWebDAVClient, nextcloud_base_url

logger = logging.getLogger(__name__)

PREVIEW_PATH = "index.php/core/preview.png"

#: Any cached thumbnail of the image may serve as its preview.
ANY_THUMBNAIL = "any"

Preview = Union[ThumbnailProperties, Literal["any"]]


class ImagesMixin(BaseWebDAVClient):
    """Decoded images and thumbnails, cached in memory and on disk."""

    cache: CacheContext

    def download_image(
        self,
        path: str,
        account: WebDAVAccount,
        password: str,
        preview: Optional[Preview] = None,
        options: CacheOptions = CacheOptions.NONE,
    ) -> AsyncIterator[CachedResult[Image.Image]]:
        """Download and decode an image.

        Args:
            path: Image path relative to the account base URL
            account: The WebDAV account
            password: The account's password
            preview: When the full image is not cached, a cached thumbnail with these
                properties (or any cached thumbnail, for "any") is yielded first along
                with a PlaceholderError
            options: Cache policy for this call

        Returns:
            Async iterator of at most two results
        """
        key = self.cache.key(path, account)

        def placeholder() -> Optional[Image.Image]:
            if key is None or preview is None:
                return None
            if preview == ANY_THUMBNAIL:
                thumbnails = self.cache.memory.thumbnails.get(key)
                return next(iter(thumbnails.values()), None) if thumbnails else None
            return self.cache.lookup_thumbnail(key, preview)

        return cached_request(
            ImageSlot(self.cache, key),
            options,
            lambda: self._build_request("GET", path, account, password),
            self._send,
            decode_image,
            placeholder=placeholder,
        )

    def download_thumbnail(
        self,
        path: str,
        account: WebDAVAccount,
        password: str,
        properties: ThumbnailProperties = DEFAULT,
        options: CacheOptions = CacheOptions.NONE,
    ) -> AsyncIterator[CachedResult[Image.Image]]:
        """Download a thumbnail rendered by Nextcloud's preview endpoint.

        Only works with Nextcloud or servers using the same preview URL structure;
        for any other base URL the result carries an UnsupportedError and no request
        is made.
        """
        key = self.cache.key(path, account)

        def build_request():
            unwrapped = normalize_account(account)
            return self._build_request(
                "GET",
                path,
                unwrapped,
                password,
                url=self.preview_url(unwrapped, path, properties),
            )

        return cached_request(
            ThumbnailSlot(self.cache, key, properties),
            options,
            build_request,
            self._send,
            decode_image,
        )

    @staticmethod
    def preview_url(
        account: WebDAVAccount, path: str, properties: ThumbnailProperties = DEFAULT
    ) -> str:
        """Nextcloud preview URL for a file.

        Raises:
            InvalidCredentialsError: If the account cannot be normalized
            UnsupportedError: If the base URL has no `remote.php` component
        """
        server = nextcloud_base_url(normalize_account(account))
        query = urlencode(
            [("file", trim_path(path))] + properties.query_items(), safe="/"
        )
        return f"{server}/{PREVIEW_PATH}?{query}"
