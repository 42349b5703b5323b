"""Disk tier of the cache: deterministic file locations per account and path."""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterator, Optional

from nextcloud_webdav.errors import DiskIOError
from nextcloud_webdav.models.account import AccountPath
from nextcloud_webdav.models.thumbnail import ThumbnailProperties
from nextcloud_webdav.observability.metrics import record_cache_disk_error

logger = logging.getLogger(__name__)

LISTING_INDEX_NAME = "files.index"
THUMBNAIL_SEPARATOR = "?"
THUMBNAIL_MARKER = THUMBNAIL_SEPARATOR + "mode="


class DiskCacheStore:
    """Maps cache keys to files under a single cache root.

    Layout: `<root>/<username>@<encoded base URL>/<trimmed path>`; thumbnails live next to
    the file they belong to, with the rendering properties appended to the file name.
    The listing index is stored at `<root>/files.index`.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    @property
    def index_path(self) -> Path:
        return self.root / LISTING_INDEX_NAME

    # Pathing

    def data_path(self, account_path: AccountPath) -> Path:
        account_dir = self.root / account_path.account.encoded_description
        if not account_path.path:
            return account_dir
        return account_dir.joinpath(*map(disk_segment, account_path.segments))

    def thumbnail_path(
        self, account_path: AccountPath, properties: ThumbnailProperties
    ) -> Path:
        data_path = self.data_path(account_path)
        return data_path.with_name(data_path.name + properties.file_suffix)

    # Byte-level operations

    def write(self, data: bytes, location: Path) -> None:
        """Write bytes, creating parent directories and replacing existing content."""
        try:
            location.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=location.parent, prefix=".tmp-")
            try:
                with os.fdopen(fd, "wb") as tmp:
                    tmp.write(data)
                os.replace(tmp_name, location)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            record_cache_disk_error("write")
            raise DiskIOError(f"Failed to write cache file {location}: {e}") from e

    def read(self, location: Path) -> Optional[bytes]:
        """Read bytes; None if the file does not exist."""
        try:
            return location.read_bytes()
        except FileNotFoundError:
            return None
        except IsADirectoryError:
            return None
        except OSError as e:
            record_cache_disk_error("read")
            raise DiskIOError(f"Failed to read cache file {location}: {e}") from e

    def delete(self, location: Path) -> None:
        """Remove a file or directory tree; a missing location is a no-op."""
        try:
            if location.is_dir() and not location.is_symlink():
                shutil.rmtree(location)
            else:
                location.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            record_cache_disk_error("delete")
            raise DiskIOError(f"Failed to delete cache item {location}: {e}") from e

    def exists(self, location: Path) -> bool:
        return location.exists()

    # Enumeration

    def list_children(self, directory: Path) -> list[Path]:
        """Entries directly inside `directory`, never including the listing index."""
        try:
            children = list(directory.iterdir())
        except (FileNotFoundError, NotADirectoryError):
            return []
        except OSError as e:
            record_cache_disk_error("enumerate")
            raise DiskIOError(f"Failed to list cache directory {directory}: {e}") from e
        return [child for child in children if child != self.index_path]

    def list_siblings(self, location: Path, prefix: str) -> list[Path]:
        """Files next to `location` whose names start with `prefix`."""
        return [
            child
            for child in self.list_children(location.parent)
            if child.name.startswith(prefix)
        ]

    def thumbnail_variants(self, account_path: AccountPath) -> list[Path]:
        """Every cached thumbnail file for one source path."""
        data_path = self.data_path(account_path)
        return self.list_siblings(data_path, data_path.name + THUMBNAIL_MARKER)

    def iter_files(self) -> Iterator[Path]:
        """All regular files in the cache, excluding the listing index."""
        if not self.root.exists():
            return
        for dirpath, _dirnames, filenames in os.walk(self.root):
            for filename in filenames:
                path = Path(dirpath) / filename
                if path != self.index_path:
                    yield path

    def delete_all(self, keep_index: bool = True) -> None:
        """Remove every cached item under the root (the listing index optionally kept)."""
        for child in self.list_children(self.root):
            self.delete(child)
        if not keep_index:
            self.delete(self.index_path)

    def byte_count(self) -> int:
        total = 0
        if not self.root.exists():
            return 0
        for dirpath, _dirnames, filenames in os.walk(self.root):
            for filename in filenames:
                try:
                    total += (Path(dirpath) / filename).stat().st_size
                except FileNotFoundError:
                    continue
        return total


def disk_segment(segment: str) -> str:
    """File name for one path segment; `.` and `..` are escaped so they stay literal."""
    if segment in (".", ".."):
        return segment.replace(".", "%2E")
    return segment


def is_thumbnail_file(location: Path) -> bool:
    return THUMBNAIL_MARKER in location.name
