"""Base client for WebDAV operations with shared transport and authentication."""

import base64
import logging
import time
from abc import ABC
from functools import wraps
from typing import Optional
from urllib.parse import quote

import anyio
from httpx import AsyncClient, Request, RequestError, Response, Timeout, codes

from nextcloud_webdav.config import Settings
from nextcloud_webdav.errors import (
    InvalidCredentialsError,
    UnsupportedError,
    WebDAVError,
)
from nextcloud_webdav.models.account import (
    UnwrappedAccount,
    WebDAVAccount,
    normalize_account,
    trim_path,
)
from nextcloud_webdav.observability.metrics import (
    record_webdav_api_call,
    record_webdav_api_retry,
)
from nextcloud_webdav.observability.tracing import trace_webdav_request

logger = logging.getLogger(__name__)

NEXTCLOUD_REMOTE_MARKER = "remote.php"


def basic_auth_header(username: str, password: str) -> str:
    """Build a Basic authorization header value.

    Raises:
        InvalidCredentialsError: If the credentials cannot be encoded as UTF-8
    """
    try:
        credentials = f"{username}:{password}".encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidCredentialsError(f"Credentials cannot be encoded: {e}") from e
    return "Basic " + base64.b64encode(credentials).decode("ascii")


def nextcloud_base_url(account: UnwrappedAccount) -> str:
    """Server root of a Nextcloud WebDAV base URL (everything before `remote.php`).

    Raises:
        UnsupportedError: If the base URL does not look like a Nextcloud WebDAV URL
    """
    base_url = account.base_url
    index = base_url.find(NEXTCLOUD_REMOTE_MARKER)
    if index < 0:
        raise UnsupportedError(
            f"'{base_url}' is not a Nextcloud WebDAV URL (no {NEXTCLOUD_REMOTE_MARKER})"
        )
    return base_url[:index].rstrip("/")


def retry_on_429(func):
    """This decorator handles the 429 response from the server

    The `func` is assumed to be a client method that sends an `httpx.Request` and
    returns the `httpx.Response`. In the case of a `Too Many Requests` response the
    request is sent again after `settings.retry_delay` seconds, up to
    `settings.max_retries` attempts. The last response is returned either way.
    """

    @wraps(func)
    async def wrapper(self, request: Request, *args, **kwargs):
        max_retries = self.settings.max_retries
        retries = 0

        while True:
            retries += 1
            response = await func(self, request, *args, **kwargs)
            if response.status_code != codes.TOO_MANY_REQUESTS:
                return response
            if retries >= max_retries:
                logger.warning("All API call retries failed")
                return response

            logger.warning(
                f"429 Client Error: Too Many Requests, Number of attempts: {retries}"
            )
            record_webdav_api_retry(method=request.method, reason="429")
            await anyio.sleep(self.settings.retry_delay)

    return wrapper


class BaseWebDAVClient(ABC):
    """Transport, authentication and request classification shared by all operations."""

    def __init__(self, settings: Settings, http_client: Optional[AsyncClient] = None):
        """Initialize with settings and an optional shared HTTP client.

        Args:
            settings: Client settings (timeouts and retry policy are read from here)
            http_client: AsyncClient to send requests with; one is created if omitted
        """
        self.settings = settings
        self._owns_client = http_client is None
        self._client = http_client or AsyncClient(
            timeout=Timeout(settings.request_timeout, connect=settings.connect_timeout)
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # Request construction

    def _resource_url(self, account: UnwrappedAccount, path: str) -> str:
        trimmed = trim_path(path)
        if not trimmed:
            return account.base_url
        return f"{account.base_url}/{quote(trimmed, safe='/')}"

    def _build_request(
        self,
        method: str,
        path: str,
        account: WebDAVAccount,
        password: str,
        url: Optional[str] = None,
        headers: Optional[dict] = None,
        **kwargs,
    ) -> Request:
        """Build an authorized request for `path` relative to the account's base URL.

        Raises:
            InvalidCredentialsError: If the account or credentials are unusable
        """
        unwrapped = normalize_account(account)
        request_headers = {"Authorization": basic_auth_header(unwrapped.username, password)}
        request_headers.update(headers or {})
        return self._client.build_request(
            method,
            url or self._resource_url(unwrapped, path),
            headers=request_headers,
            **kwargs,
        )

    # Sending

    @retry_on_429
    async def _send(self, request: Request) -> Response:
        """Send a request with logging, tracing and metrics.

        Raises:
            httpx.RequestError: On transport failure
        """
        method = request.method
        logger.debug(f"Making {method} request to {request.url}")

        start_time = time.time()
        try:
            with trace_webdav_request(method=method, path=request.url.path):
                response = await self._client.send(request)
        except RequestError as e:
            logger.warning(f"RequestError {request.url}: {e}")
            record_webdav_api_call(
                method=method, status_code=0, duration=time.time() - start_time
            )
            raise

        record_webdav_api_call(
            method=method,
            status_code=response.status_code,
            duration=time.time() - start_time,
        )
        return response

    async def _make_request(self, request: Request) -> Response:
        """Send a request and raise the classified error for any non-2xx response.

        Raises:
            WebDAVError: UnauthorizedError, InsufficientStorageError or TransportError
        """
        try:
            response = await self._send(request)
        except RequestError as e:
            raise WebDAVError.from_status(None, e) from e

        error = WebDAVError.from_status(response.status_code)
        if error is not None:
            logger.debug(
                f"{request.method} {request.url} failed with {response.status_code}: {error}"
            )
            raise error
        return response
