"""The cache-then-network state machine shared by every cacheable request.

A cacheable operation is an async iterator of CachedResult. A cached (or placeholder)
value is yielded before anything is awaited, and the fresh result follows once the
response has arrived, unless it equals the value already delivered.
"""

import logging
from dataclasses import dataclass
from typing import (
    AsyncIterator,
    Awaitable,
    Callable,
    Generic,
    Optional,
    Protocol,
    TypeVar,
)

import httpx

from nextcloud_webdav.cache.options import CacheOptions
from nextcloud_webdav.errors import (
    DiskIOError,
    InvalidCredentialsError,
    PlaceholderError,
    UnsupportedError,
    WebDAVError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
V = TypeVar("V")


@dataclass(frozen=True)
class CachedResult(Generic[T]):
    """One delivery of a cacheable operation.

    `value` and `error` may both be set: a DiskIOError next to a fresh value means it
    could not be persisted, a PlaceholderError next to a value means a better one may
    follow. Both are None only when a successful response could not be decoded.
    """

    value: Optional[T] = None
    error: Optional[WebDAVError] = None
    from_cache: bool = False


class CacheSlot(Protocol[V]):
    """Cache access for a single key, bound by the operation that owns it."""

    def lookup(self) -> Optional[V]:
        """Memory lookup with promotion from disk."""

    def store(self, value: V, data: bytes) -> None:
        """Write a fresh value to memory and its bytes to disk; may raise DiskIOError."""

    def purge(self) -> None:
        """Remove the entry from both tiers."""


def _identity(value):
    return value


def _purge(slot: CacheSlot) -> None:
    try:
        slot.purge()
    except DiskIOError as e:
        logger.warning(f"Failed to purge cache entry: {e}")


async def cached_request(
    slot: CacheSlot[V],
    options: CacheOptions,
    build_request: Callable[[], httpx.Request],
    send: Callable[[httpx.Request], Awaitable[httpx.Response]],
    decode: Callable[[bytes], Optional[V]],
    placeholder: Optional[Callable[[], Optional[T]]] = None,
    on_fetched: Optional[Callable[[V], None]] = None,
    present: Callable[[V], T] = _identity,
) -> AsyncIterator[CachedResult[T]]:
    """Serve a request from cache and/or the network according to `options`.

    Args:
        slot: Cache access for the requested key
        options: Cache policy for this call
        build_request: Builds the request; raises a WebDAVError if it cannot be built
        send: Sends a request and returns the response; raises httpx.RequestError
        decode: Turns a response body into the cached value, None if it cannot
        placeholder: Lower-fidelity stand-in yielded with PlaceholderError on a miss
        on_fetched: Called with every successfully decoded fresh value
        present: Maps the cached value to what the caller receives

    Yields:
        At most two CachedResult items: a cached or placeholder one, then a fresh one
    """
    prior: Optional[T] = None

    if CacheOptions.DO_NOT_RETURN_CACHED_RESULT not in options:
        cached = slot.lookup()
        if cached is not None:
            prior = present(cached)
            yield CachedResult(prior, from_cache=True)
            if CacheOptions.REQUEST_EVEN_IF_CACHED not in options:
                if CacheOptions.REMOVE_EXISTING_CACHE in options:
                    _purge(slot)
                return
        elif placeholder is not None:
            stand_in = placeholder()
            if stand_in is not None:
                yield CachedResult(
                    stand_in,
                    error=PlaceholderError("Showing a cached preview while loading"),
                    from_cache=True,
                )

    if CacheOptions.REMOVE_EXISTING_CACHE in options:
        _purge(slot)

    try:
        request = build_request()
    except (InvalidCredentialsError, UnsupportedError) as e:
        yield CachedResult(error=e)
        return

    try:
        response = await send(request)
    except httpx.RequestError as e:
        yield CachedResult(error=WebDAVError.from_status(None, e))
        return

    error = WebDAVError.from_status(response.status_code)
    if error is not None:
        logger.debug(f"{request.method} {request.url} failed: {error}")
        yield CachedResult(error=error)
        return

    data = response.content
    value = decode(data)
    if value is None:
        logger.debug(f"Could not decode response from {request.url}")
        yield CachedResult()
        return

    disk_error: Optional[DiskIOError] = None
    if not options & (
        CacheOptions.DO_NOT_CACHE_RESULT | CacheOptions.REMOVE_EXISTING_CACHE
    ):
        try:
            slot.store(value, data)
        except DiskIOError as e:
            logger.warning(f"Fetched value could not be written to the disk cache: {e}")
            disk_error = e

    if on_fetched is not None:
        on_fetched(value)

    fresh = present(value)
    if prior is not None and disk_error is None and fresh == prior:
        logger.debug(f"Fresh result for {request.url} matches the cached one")
        return
    yield CachedResult(fresh, error=disk_error)
