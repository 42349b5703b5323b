"""Memory tier of the cache: four KeyedCache tables keyed by AccountPath."""

import logging
from pathlib import Path
from typing import Callable, Optional, TypeVar

from PIL import Image

from nextcloud_webdav.cache.disk import DiskCacheStore
from nextcloud_webdav.cache.keyed import KeyedCache
from nextcloud_webdav.cache.options import CacheCategory
from nextcloud_webdav.config import Settings
from nextcloud_webdav.errors import DiskIOError
from nextcloud_webdav.models.account import AccountPath
from nextcloud_webdav.models.file import WebDAVFile
from nextcloud_webdav.models.thumbnail import ThumbnailProperties
from nextcloud_webdav.observability.metrics import record_cache_lookup

logger = logging.getLogger(__name__)

V = TypeVar("V")

ThumbnailSet = dict[ThumbnailProperties, Image.Image]


def image_size(image: Image.Image) -> int:
    """Approximate decoded size of an image in bytes."""
    width, height = image.size
    return max(width * height * len(image.getbands()), 1)


class MemoryCacheLayer:
    """Holds the listing, data, image and thumbnail tables."""

    def __init__(self, settings: Settings):
        self.files: KeyedCache[AccountPath, list[WebDAVFile]] = KeyedCache(
            settings.listing_cache_max_entries
        )
        self.data: KeyedCache[AccountPath, bytes] = KeyedCache(
            settings.data_cache_max_bytes, getsizeof=lambda value: max(len(value), 1)
        )
        self.images: KeyedCache[AccountPath, Image.Image] = KeyedCache(
            settings.image_cache_max_bytes, getsizeof=image_size
        )
        self.thumbnails: KeyedCache[AccountPath, ThumbnailSet] = KeyedCache(
            settings.thumbnail_cache_max_entries
        )

    def table(self, category: CacheCategory) -> KeyedCache:
        return {
            CacheCategory.FILES: self.files,
            CacheCategory.DATA: self.data,
            CacheCategory.IMAGE: self.images,
            CacheCategory.THUMBNAIL: self.thumbnails,
        }[category]

    def clear(self, category: Optional[CacheCategory] = None) -> None:
        categories = [category] if category else list(CacheCategory)
        for item in categories:
            self.table(item).remove_all()

    # Lookups

    def get_cached_value(
        self, table: KeyedCache[AccountPath, V], account_path: AccountPath
    ) -> Optional[V]:
        return table.get(account_path)

    def get_cached_value_or_load_from_disk(
        self,
        table: KeyedCache[AccountPath, V],
        account_path: AccountPath,
        disk: DiskCacheStore,
        decode: Callable[[bytes], Optional[V]],
        table_name: str,
        location: Optional[Path] = None,
    ) -> Optional[V]:
        """Memory lookup that falls back to the disk tier.

        A value decoded from disk is put back into memory before it is returned.
        """
        value = table.get(account_path)
        if value is not None:
            record_cache_lookup(table_name, "memory_hit")
            return value

        value = self._load_from_disk(
            account_path, disk, decode, location or disk.data_path(account_path)
        )
        if value is None:
            record_cache_lookup(table_name, "miss")
            return None

        table.set(account_path, value)
        record_cache_lookup(table_name, "disk_hit")
        logger.debug(f"Promoted {table_name} cache entry from disk: {account_path.path}")
        return value

    def get_thumbnail(
        self,
        account_path: AccountPath,
        properties: ThumbnailProperties,
        disk: Optional[DiskCacheStore] = None,
        decode: Optional[Callable[[bytes], Optional[Image.Image]]] = None,
    ) -> Optional[Image.Image]:
        """Thumbnail lookup; with `disk` and `decode`, falls back to and promotes from disk."""
        thumbnails = self.thumbnails.get(account_path)
        if thumbnails and properties in thumbnails:
            record_cache_lookup("thumbnail", "memory_hit")
            return thumbnails[properties]

        if disk is None or decode is None:
            record_cache_lookup("thumbnail", "miss")
            return None

        image = self._load_from_disk(
            account_path, disk, decode, disk.thumbnail_path(account_path, properties)
        )
        if image is None:
            record_cache_lookup("thumbnail", "miss")
            return None

        self.set_thumbnail(account_path, properties, image)
        record_cache_lookup("thumbnail", "disk_hit")
        return image

    def set_thumbnail(
        self,
        account_path: AccountPath,
        properties: ThumbnailProperties,
        image: Image.Image,
    ) -> None:
        def add(current: Optional[ThumbnailSet]) -> ThumbnailSet:
            updated = dict(current or {})
            updated[properties] = image
            return updated

        self.thumbnails.update(account_path, add)

    def remove_thumbnail(
        self, account_path: AccountPath, properties: ThumbnailProperties
    ) -> None:
        def discard(current: Optional[ThumbnailSet]) -> Optional[ThumbnailSet]:
            if not current:
                return None
            updated = {k: v for k, v in current.items() if k != properties}
            return updated or None

        self.thumbnails.update(account_path, discard)

    @staticmethod
    def _load_from_disk(
        account_path: AccountPath,
        disk: DiskCacheStore,
        decode: Callable[[bytes], Optional[V]],
        location: Path,
    ) -> Optional[V]:
        try:
            data = disk.read(location)
        except DiskIOError as e:
            logger.warning(f"Ignoring unreadable cache file for '{account_path.path}': {e}")
            return None
        if data is None:
            return None
        return decode(data)
