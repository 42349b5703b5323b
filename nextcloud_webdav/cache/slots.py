"""CacheSlot implementations binding one key of a CacheContext table.

A slot built for an account that cannot be normalized has no key: lookups miss and
writes are dropped, and the request itself fails with InvalidCredentialsError.
"""

from typing import Optional

from PIL import Image

from nextcloud_webdav.cache.context import CacheContext
from nextcloud_webdav.models.account import AccountPath
from nextcloud_webdav.models.file import WebDAVFile
from nextcloud_webdav.models.thumbnail import ThumbnailProperties


class _ContextSlot:
    def __init__(self, context: CacheContext, key: Optional[AccountPath]):
        self.context = context
        self.key = key


class ListingSlot(_ContextSlot):
    def lookup(self) -> Optional[list[WebDAVFile]]:
        return self.context.lookup_files(self.key) if self.key else None

    def store(self, value: list[WebDAVFile], data: bytes) -> None:
        if self.key:
            self.context.store_files(self.key, value)

    def purge(self) -> None:
        if self.key:
            self.context.remove_files(self.key)


class DataSlot(_ContextSlot):
    def lookup(self) -> Optional[bytes]:
        return self.context.lookup_data(self.key) if self.key else None

    def store(self, value: bytes, data: bytes) -> None:
        if self.key:
            self.context.store_data(self.key, value)

    def purge(self) -> None:
        if self.key:
            self.context.remove_data(self.key)


class ImageSlot(_ContextSlot):
    def lookup(self) -> Optional[Image.Image]:
        return self.context.lookup_image(self.key) if self.key else None

    def store(self, value: Image.Image, data: bytes) -> None:
        if self.key:
            self.context.store_image(self.key, value, data)

    def purge(self) -> None:
        if self.key:
            self.context.remove_data(self.key)


class ThumbnailSlot(_ContextSlot):
    def __init__(
        self,
        context: CacheContext,
        key: Optional[AccountPath],
        properties: ThumbnailProperties,
    ):
        super().__init__(context, key)
        self.properties = properties

    def lookup(self) -> Optional[Image.Image]:
        if not self.key:
            return None
        return self.context.lookup_thumbnail(self.key, self.properties)

    def store(self, value: Image.Image, data: bytes) -> None:
        if self.key:
            self.context.store_thumbnail(self.key, self.properties, value, data)

    def purge(self) -> None:
        if self.key:
            self.context.remove_thumbnail(self.key, self.properties)
