"""Directory listings, downloads and file operations."""

import logging
from pathlib import Path
from typing import AsyncIterator, Optional, Union

import anyio

from nextcloud_webdav.cache.context import CacheContext
from nextcloud_webdav.cache.options import CacheOptions
from nextcloud_webdav.cache.orchestrator import CachedResult, cached_request
from nextcloud_webdav.cache.slots import DataSlot, ListingSlot
from nextcloud_webdav.models.account import WebDAVAccount, normalize_account
from nextcloud_webdav.models.file import (
    PROPFIND_BODY,
    WebDAVFile,
    parse_propfind_response,
    sorted_files,
)

from .base import BaseWebDAVClient

logger = logging.getLogger(__name__)


class FilesMixin(BaseWebDAVClient):
    """WebDAV file operations. Listings and downloads go through the cache."""

    cache: CacheContext

    def list_files(
        self,
        path: str,
        account: WebDAVAccount,
        password: str,
        options: CacheOptions = CacheOptions.NONE,
        folders_first: bool = True,
        include_self: bool = False,
    ) -> AsyncIterator[CachedResult[list[WebDAVFile]]]:
        """List the contents of a directory with PROPFIND (Depth: 1).

        The cached listing (if any) is yielded first. After a successful fetch, cached
        listings and files below `path` that the server no longer reports are pruned.

        Args:
            path: Directory path relative to the account base URL
            account: The WebDAV account
            password: The account's password
            options: Cache policy for this call
            folders_first: Put directories ahead of files
            include_self: Keep the directory's own entry at the start of the listing

        Returns:
            Async iterator of at most two results
        """
        key = self.cache.key(path, account)

        def build_request():
            return self._build_request(
                "PROPFIND",
                path,
                account,
                password,
                headers={"Depth": "1", "Content-Type": "text/xml"},
                content=PROPFIND_BODY.encode("utf-8"),
            )

        def decode(data: bytes) -> Optional[list[WebDAVFile]]:
            # An empty body is not a listing
            if not data:
                return None
            return parse_propfind_response(data, key.account.base_path if key else "")

        def reconcile(files: list[WebDAVFile]) -> None:
            if key:
                self.cache.reconcile(key, files)

        return cached_request(
            ListingSlot(self.cache, key),
            options,
            build_request,
            self._send,
            decode,
            on_fetched=reconcile,
            present=lambda files: sorted_files(
                files, folders_first=folders_first, include_self=include_self
            ),
        )

    def download(
        self,
        path: str,
        account: WebDAVAccount,
        password: str,
        options: CacheOptions = CacheOptions.NONE,
    ) -> AsyncIterator[CachedResult[bytes]]:
        """Download the raw contents of a file, caching the bytes in memory and on disk."""
        return cached_request(
            DataSlot(self.cache, self.cache.key(path, account)),
            options,
            lambda: self._build_request("GET", path, account, password),
            self._send,
            lambda data: data,
        )

    # Non-cached operations

    async def upload(
        self, data: bytes, path: str, account: WebDAVAccount, password: str
    ) -> None:
        """Upload bytes to `path`, replacing any existing file.

        Raises:
            WebDAVError: If the request cannot be built or the server rejects it
        """
        request = self._build_request("PUT", path, account, password, content=data)
        await self._make_request(request)
        logger.debug(f"Uploaded {len(data)} bytes to '{path}'")

    async def upload_file(
        self,
        local_path: Union[str, Path],
        path: str,
        account: WebDAVAccount,
        password: str,
    ) -> None:
        """Upload the contents of a local file to `path`."""
        data = await anyio.Path(local_path).read_bytes()
        await self.upload(data, path, account, password)

    async def create_folder(
        self, path: str, account: WebDAVAccount, password: str
    ) -> None:
        """Create a collection with MKCOL.

        Raises:
            WebDAVError: If the request cannot be built or the server rejects it
        """
        request = self._build_request("MKCOL", path, account, password)
        await self._make_request(request)
        logger.debug(f"Created folder '{path}'")

    async def delete_file(
        self, path: str, account: WebDAVAccount, password: str
    ) -> None:
        """Delete a file or directory.

        Raises:
            WebDAVError: If the request cannot be built or the server rejects it
        """
        request = self._build_request("DELETE", path, account, password)
        await self._make_request(request)
        logger.debug(f"Deleted '{path}'")

    async def move_file(
        self,
        path: str,
        destination: str,
        account: WebDAVAccount,
        password: str,
        overwrite: bool = False,
    ) -> None:
        """Move or rename a file or directory.

        Raises:
            WebDAVError: If the request cannot be built or the server rejects it
        """
        await self._transfer("MOVE", path, destination, account, password, overwrite)

    async def copy_file(
        self,
        path: str,
        destination: str,
        account: WebDAVAccount,
        password: str,
        overwrite: bool = False,
    ) -> None:
        """Copy a file or directory.

        Raises:
            WebDAVError: If the request cannot be built or the server rejects it
        """
        await self._transfer("COPY", path, destination, account, password, overwrite)

    async def _transfer(
        self,
        method: str,
        path: str,
        destination: str,
        account: WebDAVAccount,
        password: str,
        overwrite: bool,
    ) -> None:
        unwrapped = normalize_account(account)
        headers = {
            "Destination": self._resource_url(unwrapped, destination),
            "Overwrite": "T" if overwrite else "F",
        }
        request = self._build_request(method, path, unwrapped, password, headers=headers)
        await self._make_request(request)
        logger.debug(f"{method} '{path}' -> '{destination}'")

