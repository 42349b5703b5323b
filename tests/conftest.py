import io
import logging
from typing import Callable, Optional

import httpx
import pytest
from PIL import Image

from nextcloud_webdav.cache.context import CacheContext
from nextcloud_webdav.client import WebDAV
from nextcloud_webdav.config import Settings
from nextcloud_webdav.models.account import AccountPath, SimpleAccount

logger = logging.getLogger(__name__)

BASE_PATH = "/remote.php/dav/files/user"


class FakeServer:
    """Answers requests from canned responses and records every request it sees.

    Responses are keyed on (method, URL path). When several responses are queued for
    the same key they are returned in order, the last one repeating.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._responses: dict[tuple[str, str], list[httpx.Response]] = {}
        self.errors: dict[tuple[str, str], Exception] = {}

    def add(
        self,
        method: str,
        path: str,
        status_code: int = 200,
        content: bytes = b"",
        headers: Optional[dict] = None,
    ) -> None:
        response = httpx.Response(status_code, content=content, headers=headers)
        self._responses.setdefault((method, path), []).append(response)

    def fail(self, method: str, path: str, error: Exception) -> None:
        self.errors[(method, path)] = error

    def calls(self, method: Optional[str] = None) -> list[httpx.Request]:
        return [r for r in self.requests if method is None or r.method == method]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key in self.errors:
            raise self.errors[key]
        queue = self._responses.get(key)
        if not queue:
            logger.debug(f"No canned response for {key}")
            return httpx.Response(404)
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        return httpx.Response(
            response.status_code,
            content=response.content,
            headers=response.headers,
        )


@pytest.fixture
def account():
    return SimpleAccount(username="user", base_url="cloud.example.com/remote.php/dav/files/user")


@pytest.fixture
def key(account) -> Callable[[str], AccountPath]:
    return lambda path: AccountPath.of(account, path)


@pytest.fixture
def settings(tmp_path):
    return Settings(cache_dir=str(tmp_path / "cache"), retry_delay=0, max_retries=3)


@pytest.fixture
def cache(settings):
    return CacheContext(settings)


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
async def webdav(settings, server):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(server.handler))
    client = WebDAV(settings=settings, http_client=http_client)
    yield client
    await client.aclose()
    await http_client.aclose()


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    """PNG bytes of a solid-color image."""

    def _make(color: str = "red", size: tuple[int, int] = (8, 8)) -> bytes:
        buffer = io.BytesIO()
        Image.new("RGB", size, color).save(buffer, format="PNG")
        return buffer.getvalue()

    return _make


@pytest.fixture
def propfind() -> Callable[..., bytes]:
    """Multistatus body for a listing.

    Entries are (path, is_directory) pairs or (path, is_directory, etag) triples; paths
    are relative to the account base URL.
    """

    def _response(path: str, is_directory: bool, etag: str, file_id: int) -> str:
        href = f"{BASE_PATH}/{path}" + ("/" if is_directory else "")
        content_type = "" if is_directory else "<d:getcontenttype>text/plain</d:getcontenttype>"
        return f"""
        <d:response>
            <d:href>{href}</d:href>
            <d:propstat>
                <d:prop>
                    <d:getlastmodified>Wed, 01 Jan 2025 10:00:00 GMT</d:getlastmodified>
                    <d:getetag>&quot;{etag}&quot;</d:getetag>
                    {content_type}
                    <oc:fileid>{file_id}</oc:fileid>
                    <oc:size>{0 if is_directory else 42}</oc:size>
                </d:prop>
                <d:status>HTTP/1.1 200 OK</d:status>
            </d:propstat>
        </d:response>"""

    def _build(*entries) -> bytes:
        responses = []
        for file_id, entry in enumerate(entries, start=1):
            path, is_directory = entry[0], entry[1]
            etag = entry[2] if len(entry) > 2 else f"etag-{file_id}"
            responses.append(_response(path, is_directory, etag, file_id))
        body = (
            '<?xml version="1.0"?>\n'
            '<d:multistatus xmlns:d="DAV:" xmlns:oc="http://owncloud.org/ns" '
            'xmlns:nc="http://nextcloud.org/ns">'
            + "".join(responses)
            + "</d:multistatus>"
        )
        return body.encode("utf-8")

    return _build


@pytest.fixture
def collect():
    """Drain an async iterator of CachedResult into a list."""

    async def _collect(results):
        return [result async for result in results]

    return _collect
