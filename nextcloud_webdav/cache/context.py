"""CacheContext: the memory and disk tiers plus the persisted listing index."""

import logging
import threading
from pathlib import Path
from typing import Optional

from PIL import Image
from pydantic import ValidationError

from nextcloud_webdav.cache.codecs import (
    decode_image,
    decode_listing_index,
    encode_listing_index,
)
from nextcloud_webdav.cache.disk import DiskCacheStore, is_thumbnail_file
from nextcloud_webdav.cache.memory import MemoryCacheLayer, ThumbnailSet
from nextcloud_webdav.cache.options import CacheCategory
from nextcloud_webdav.cache.reconciler import CacheReconciler
from nextcloud_webdav.config import Settings
from nextcloud_webdav.errors import DiskIOError, InvalidCredentialsError
from nextcloud_webdav.models.account import AccountPath, WebDAVAccount
from nextcloud_webdav.models.file import WebDAVFile, sorted_files
from nextcloud_webdav.models.thumbnail import DEFAULT, ThumbnailProperties
from nextcloud_webdav.observability.metrics import (
    record_cache_disk_error,
    record_cache_lookup,
    record_cache_write,
)

logger = logging.getLogger(__name__)

_BYTE_UNITS = ("KB", "MB", "GB", "TB", "PB")


def format_byte_count(byte_count: int) -> str:
    """Human-readable size using decimal units, e.g. "1.5 MB"."""
    if byte_count < 1000:
        return "1 byte" if byte_count == 1 else f"{byte_count} bytes"

    value = float(byte_count)
    for unit in _BYTE_UNITS:
        value /= 1000
        if value < 1000 or unit == _BYTE_UNITS[-1]:
            text = f"{value:.1f}".rstrip("0").rstrip(".")
            return f"{text} {unit}"
    raise AssertionError("unreachable")


class CacheContext:
    """Owns every cache table and the on-disk cache tree for one client.

    Lookups keyed on an invalid account return None and deletions are no-ops,
    since caching is always best-effort relative to the network.
    """

    def __init__(self, settings: Optional[Settings] = None, root: Optional[Path] = None):
        self.settings = settings or Settings()
        self.disk = DiskCacheStore(root or self.settings.cache_path)
        self.memory = MemoryCacheLayer(self.settings)
        self.reconciler = CacheReconciler(self)
        self._index_lock = threading.Lock()
        self.load_files_cache_from_disk()

    @staticmethod
    def key(path: str, account: WebDAVAccount) -> Optional[AccountPath]:
        try:
            return AccountPath.of(account, path)
        except InvalidCredentialsError as e:
            logger.debug(f"No cache key for '{path}': {e}")
            return None

    # Directory listings

    def get_cached_files(
        self,
        path: str,
        account: WebDAVAccount,
        folders_first: bool = True,
        include_self: bool = False,
    ) -> Optional[list[WebDAVFile]]:
        """Cached listing view for a directory (memory only)."""
        key = self.key(path, account)
        files = self.lookup_files(key) if key else None
        if files is None:
            return None
        return sorted_files(files, folders_first=folders_first, include_self=include_self)

    def lookup_files(self, key: AccountPath) -> Optional[list[WebDAVFile]]:
        files = self.memory.files.get(key)
        record_cache_lookup("files", "memory_hit" if files is not None else "miss")
        return files

    def store_files(self, key: AccountPath, files: list[WebDAVFile]) -> None:
        self.memory.files.set(key, list(files))
        record_cache_write("files")
        self.save_files_cache_to_disk()

    def remove_files(self, key: AccountPath) -> None:
        if key in self.memory.files:
            self.memory.files.remove(key)
            self.save_files_cache_to_disk()

    def save_files_cache_to_disk(self) -> None:
        """Persist the listing table; failures are logged, never raised."""
        with self._index_lock:
            try:
                blob = encode_listing_index(dict(self.memory.files.items()))
                self.disk.write(blob, self.disk.index_path)
            except DiskIOError as e:
                record_cache_disk_error("index")
                logger.error(f"Error saving files cache: {e}")

    def load_files_cache_from_disk(self) -> None:
        """Merge the persisted listing index into memory; memory entries win."""
        with self._index_lock:
            try:
                blob = self.disk.read(self.disk.index_path)
            except DiskIOError as e:
                logger.error(f"Error loading files cache: {e}")
                return
            if blob is None:
                return
            try:
                listings = decode_listing_index(blob)
            except ValidationError as e:
                record_cache_disk_error("index")
                logger.error(f"Error decoding files cache: {e}")
                return

        for key, files in listings.items():
            self.memory.files.update(
                key, lambda current, files=files: current if current is not None else files
            )
        logger.debug(f"Loaded {len(listings)} cached listings from disk")

    def clear_files_memory_cache(self) -> None:
        self.memory.files.remove_all()

    def clear_files_disk_cache(self) -> None:
        with self._index_lock:
            try:
                self.disk.delete(self.disk.index_path)
            except DiskIOError as e:
                logger.error(f"Error removing files disk cache: {e}")

    def clear_files_cache(self) -> None:
        self.clear_files_memory_cache()
        self.clear_files_disk_cache()

    # Data and images

    def cached_data_path(self, path: str, account: WebDAVAccount) -> Optional[Path]:
        key = self.key(path, account)
        return self.disk.data_path(key) if key else None

    def cached_data_path_if_exists(
        self, path: str, account: WebDAVAccount
    ) -> Optional[Path]:
        location = self.cached_data_path(path, account)
        return location if location is not None and location.exists() else None

    def get_cached_data(self, path: str, account: WebDAVAccount) -> Optional[bytes]:
        key = self.key(path, account)
        return self.lookup_data(key) if key else None

    def lookup_data(self, key: AccountPath) -> Optional[bytes]:
        return self.memory.get_cached_value_or_load_from_disk(
            self.memory.data, key, self.disk, lambda data: data, "data"
        )

    def store_data(self, key: AccountPath, data: bytes) -> None:
        """Cache downloaded bytes in memory and on disk.

        Raises:
            DiskIOError: If the disk write fails (the memory entry is kept)
        """
        self.memory.data.set(key, data)
        record_cache_write("data")
        self.disk.write(data, self.disk.data_path(key))

    def get_cached_image(
        self, path: str, account: WebDAVAccount
    ) -> Optional[Image.Image]:
        key = self.key(path, account)
        return self.lookup_image(key) if key else None

    def lookup_image(self, key: AccountPath) -> Optional[Image.Image]:
        return self.memory.get_cached_value_or_load_from_disk(
            self.memory.images, key, self.disk, decode_image, "image"
        )

    def store_image(self, key: AccountPath, image: Image.Image, data: bytes) -> None:
        """Cache a decoded image in memory and its bytes on disk.

        Raises:
            DiskIOError: If the disk write fails (the memory entry is kept)
        """
        self.memory.images.set(key, image)
        record_cache_write("image")
        self.disk.write(data, self.disk.data_path(key))

    def delete_cached_data(self, path: str, account: WebDAVAccount) -> None:
        """Remove data and image cache entries for a path from both tiers.

        Raises:
            DiskIOError: If the cached file exists but cannot be removed
        """
        key = self.key(path, account)
        if key is None:
            return
        self.remove_data(key)

    def remove_data(self, key: AccountPath) -> None:
        self.memory.data.remove(key)
        self.memory.images.remove(key)
        self.disk.delete(self.disk.data_path(key))

    # Thumbnails

    def cached_thumbnail_path(
        self,
        path: str,
        account: WebDAVAccount,
        properties: ThumbnailProperties = DEFAULT,
    ) -> Optional[Path]:
        key = self.key(path, account)
        return self.disk.thumbnail_path(key, properties) if key else None

    def get_cached_thumbnail(
        self,
        path: str,
        account: WebDAVAccount,
        properties: ThumbnailProperties = DEFAULT,
    ) -> Optional[Image.Image]:
        key = self.key(path, account)
        return self.lookup_thumbnail(key, properties) if key else None

    def lookup_thumbnail(
        self, key: AccountPath, properties: ThumbnailProperties
    ) -> Optional[Image.Image]:
        return self.memory.get_thumbnail(key, properties, self.disk, decode_image)

    def get_cached_thumbnails(
        self, path: str, account: WebDAVAccount
    ) -> Optional[ThumbnailSet]:
        """Every thumbnail variant of a path currently held in memory."""
        key = self.key(path, account)
        if key is None:
            return None
        thumbnails = self.memory.thumbnails.get(key)
        return dict(thumbnails) if thumbnails else None

    def store_thumbnail(
        self,
        key: AccountPath,
        properties: ThumbnailProperties,
        image: Image.Image,
        data: bytes,
    ) -> None:
        """Cache a decoded thumbnail in memory and its bytes on disk.

        Raises:
            DiskIOError: If the disk write fails (the memory entry is kept)
        """
        self.memory.set_thumbnail(key, properties, image)
        record_cache_write("thumbnail")
        self.disk.write(data, self.disk.thumbnail_path(key, properties))

    def delete_cached_thumbnail(
        self,
        path: str,
        account: WebDAVAccount,
        properties: ThumbnailProperties = DEFAULT,
    ) -> None:
        """Remove one thumbnail variant from both tiers.

        Raises:
            DiskIOError: If the cached file exists but cannot be removed
        """
        key = self.key(path, account)
        if key is None:
            return
        self.remove_thumbnail(key, properties)

    def remove_thumbnail(self, key: AccountPath, properties: ThumbnailProperties) -> None:
        self.memory.remove_thumbnail(key, properties)
        self.disk.delete(self.disk.thumbnail_path(key, properties))

    def delete_all_cached_thumbnails(self, path: str, account: WebDAVAccount) -> None:
        """Remove every thumbnail variant of a path from both tiers.

        Raises:
            DiskIOError: If a cached variant cannot be enumerated or removed
        """
        key = self.key(path, account)
        if key is None:
            return
        self.memory.thumbnails.remove(key)
        for location in self.disk.thumbnail_variants(key):
            self.disk.delete(location)

    # Bulk operations

    def clear_memory_cache(self, category: Optional[CacheCategory] = None) -> None:
        self.memory.clear(category)

    def delete_all_disk_cached_data(self) -> None:
        """Remove every cached file from disk, keeping the listing index.

        Raises:
            DiskIOError: If an item cannot be removed
        """
        self.disk.delete_all(keep_index=True)

    def delete_all_cached(self, category: Optional[CacheCategory] = None) -> None:
        """Remove a category (or everything) from both tiers.

        Data and images share their disk files, so deleting either removes the
        non-thumbnail files on disk.

        Raises:
            DiskIOError: If an item cannot be removed
        """
        if category is None:
            self.memory.clear()
            self.clear_files_disk_cache()
            self.delete_all_disk_cached_data()
            return

        self.memory.clear(category)
        if category is CacheCategory.FILES:
            self.clear_files_disk_cache()
            return

        want_thumbnails = category is CacheCategory.THUMBNAIL
        for location in list(self.disk.iter_files()):
            if is_thumbnail_file(location) == want_thumbnails:
                self.disk.delete(location)

    def cache_byte_count(self) -> int:
        return self.disk.byte_count()

    def cache_size_description(self) -> str:
        return format_byte_count(self.cache_byte_count())

    def reconcile(self, key: AccountPath, files: list[WebDAVFile]) -> None:
        self.reconciler.reconcile(key, files)
