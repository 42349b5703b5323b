"""Prunes cache entries that a fresh directory listing no longer accounts for."""

import logging
from typing import TYPE_CHECKING, Sequence

from nextcloud_webdav.cache.disk import THUMBNAIL_MARKER, is_thumbnail_file
from nextcloud_webdav.errors import DiskIOError
from nextcloud_webdav.models.account import AccountPath
from nextcloud_webdav.models.file import WebDAVFile
from nextcloud_webdav.observability.metrics import record_cache_pruned
from nextcloud_webdav.observability.tracing import trace_operation

if TYPE_CHECKING:
    from nextcloud_webdav.cache.context import CacheContext

logger = logging.getLogger(__name__)

TEMP_FILE_PREFIX = ".tmp-"


class CacheReconciler:
    """Best-effort cleanup run after every successful directory listing.

    Failures are logged and never propagated, so a listing is always delivered.
    """

    def __init__(self, context: "CacheContext"):
        self.context = context

    def reconcile(self, directory: AccountPath, files: Sequence[WebDAVFile]) -> None:
        with trace_operation(
            "webdav.cache.reconcile",
            {"webdav.path": directory.path, "webdav.files": len(files)},
        ):
            self.prune_listings(directory, files)
            self.prune_disk(directory, files)

    def prune_listings(
        self, directory: AccountPath, files: Sequence[WebDAVFile]
    ) -> int:
        """Drop cached listings below `directory` that the fresh listing no longer contains.

        Returns:
            Number of listings removed
        """
        children = [
            key
            for key in (AccountPath(directory.account, file.path) for file in files)
            if key.is_descendant_of(directory)
        ]

        removed = 0
        for key, _files in self.context.memory.files.items():
            if not key.is_descendant_of(directory):
                continue
            if any(key.is_within(child) for child in children):
                continue
            self.context.memory.files.remove(key)
            removed += 1
            logger.debug(f"Removed stale listing cache for '{key.path}'")

        if removed:
            record_cache_pruned("listing", removed)
            self.context.save_files_cache_to_disk()
        return removed

    def prune_disk(self, directory: AccountPath, files: Sequence[WebDAVFile]) -> int:
        """Delete cached files under `directory` that no fresh entry resolves to.

        Thumbnail variants of files that still exist are kept.

        Returns:
            Number of disk items removed
        """
        disk = self.context.disk
        directory_location = disk.data_path(directory)

        try:
            children = disk.list_children(directory_location)
        except DiskIOError as e:
            logger.warning(f"Skipping disk cache cleanup of '{directory.path}': {e}")
            return 0

        expected = {
            disk.data_path(AccountPath(directory.account, file.path)) for file in files
        }

        removed = 0
        for child in children:
            if child in expected or child == disk.index_path:
                continue
            if child.name.startswith(TEMP_FILE_PREFIX):
                continue
            if is_thumbnail_file(child):
                source_name = child.name.split(THUMBNAIL_MARKER, 1)[0]
                if child.with_name(source_name) in expected:
                    continue
            try:
                disk.delete(child)
            except DiskIOError as e:
                logger.warning(f"Could not remove orphaned cache item {child}: {e}")
                continue
            removed += 1
            logger.debug(f"Removed orphaned cache item {child}")

        record_cache_pruned("disk", removed)
        return removed
