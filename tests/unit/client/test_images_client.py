"""Unit tests for image and thumbnail downloads."""

import pytest
from PIL import Image

from nextcloud_webdav.cache.options import CacheOptions
from nextcloud_webdav.client import ANY_THUMBNAIL
from nextcloud_webdav.client.images import ImagesMixin
from nextcloud_webdav.errors import PlaceholderError, UnsupportedError
from nextcloud_webdav.models.account import SimpleAccount
from nextcloud_webdav.models.thumbnail import FILL, FIT, ContentMode, ThumbnailProperties

pytestmark = pytest.mark.unit

ROOT = "/remote.php/dav/files/user"
PREVIEW = "/index.php/core/preview.png"
PASSWORD = "secret"


class TestDownloadImage:
    async def test_image_decoded_and_cached(self, webdav, server, account, key, make_image, collect):
        server.add("GET", f"{ROOT}/pics/a.png", 200, make_image("red", (5, 4)))

        results = await collect(webdav.download_image("pics/a.png", account, PASSWORD))

        assert len(results) == 1
        assert results[0].value.size == (5, 4)
        assert webdav.cache.memory.images.get(key("pics/a.png")) is not None
        assert webdav.cache.disk.data_path(key("pics/a.png")).exists()

    async def test_non_image_body_is_a_silent_miss(self, webdav, server, account, key, collect):
        server.add("GET", f"{ROOT}/a.png", 200, b"<html>not an image</html>")

        results = await collect(webdav.download_image("a.png", account, PASSWORD))

        assert len(results) == 1
        assert results[0].value is None
        assert results[0].error is None
        assert webdav.cache.memory.images.get(key("a.png")) is None
        assert not webdav.cache.disk.data_path(key("a.png")).exists()

    async def test_image_promoted_from_disk(self, webdav, server, account, key, make_image, collect):
        webdav.cache.disk.write(make_image(), webdav.cache.disk.data_path(key("a.png")))

        results = await collect(webdav.download_image("a.png", account, PASSWORD))

        assert results[0].from_cache
        assert server.calls() == []
        assert webdav.cache.memory.images.get(key("a.png")) is results[0].value

    async def test_cached_thumbnail_as_placeholder(
        self, webdav, server, account, key, make_image, collect
    ):
        thumbnail = Image.new("RGB", (2, 2), "blue")
        webdav.cache.memory.set_thumbnail(key("a.png"), FIT, thumbnail)
        server.add("GET", f"{ROOT}/a.png", 200, make_image())

        results = await collect(
            webdav.download_image("a.png", account, PASSWORD, preview=FIT)
        )

        assert len(results) == 2
        assert results[0].value is thumbnail
        assert isinstance(results[0].error, PlaceholderError)
        assert results[1].error is None
        assert results[1].value.size == (8, 8)

    async def test_any_thumbnail_as_placeholder(
        self, webdav, server, account, key, make_image, collect
    ):
        thumbnail = Image.new("RGB", (2, 2))
        webdav.cache.memory.set_thumbnail(key("a.png"), ThumbnailProperties(2, 2), thumbnail)
        server.add("GET", f"{ROOT}/a.png", 200, make_image())

        results = await collect(
            webdav.download_image("a.png", account, PASSWORD, preview=ANY_THUMBNAIL)
        )

        assert results[0].value is thumbnail
        assert isinstance(results[0].error, PlaceholderError)

    async def test_no_placeholder_without_matching_thumbnail(
        self, webdav, server, account, key, make_image, collect
    ):
        webdav.cache.memory.set_thumbnail(key("a.png"), FILL, Image.new("RGB", (2, 2)))
        server.add("GET", f"{ROOT}/a.png", 200, make_image())

        results = await collect(webdav.download_image("a.png", account, PASSWORD, preview=FIT))

        assert len(results) == 1
        assert results[0].error is None


class TestDownloadThumbnail:
    async def test_preview_request(self, webdav, server, account, make_image, collect):
        server.add("GET", PREVIEW, 200, make_image("red", (4, 4)))

        results = await collect(
            webdav.download_thumbnail(
                "pics/a.png", account, PASSWORD, ThumbnailProperties(64, 32)
            )
        )

        assert results[0].value.size == (4, 4)
        request = server.calls()[0]
        assert request.url.host == "cloud.example.com"
        assert dict(request.url.params) == {
            "file": "pics/a.png",
            "mode": "cover",
            "x": "64",
            "y": "32",
            "a": "1",
        }
        assert request.headers["Authorization"].startswith("Basic ")

    async def test_fit_omits_fill_parameter(self, webdav, server, account, make_image, collect):
        server.add("GET", PREVIEW, 200, make_image())

        await collect(webdav.download_thumbnail("a.png", account, PASSWORD, FIT))

        assert "a" not in server.calls()[0].url.params

    async def test_content_modes_cached_separately(
        self, webdav, server, account, key, make_image, collect
    ):
        server.add("GET", PREVIEW, 200, make_image("red"))
        server.add("GET", PREVIEW, 200, make_image("blue"))
        fill = ThumbnailProperties(16, 16, ContentMode.FILL)
        fit = ThumbnailProperties(16, 16, ContentMode.FIT)

        await collect(webdav.download_thumbnail("a.png", account, PASSWORD, fill))
        await collect(webdav.download_thumbnail("a.png", account, PASSWORD, fit))

        cache = webdav.cache
        assert cache.get_cached_thumbnail("a.png", account, fill).getpixel((0, 0)) == (255, 0, 0)
        assert cache.get_cached_thumbnail("a.png", account, fit).getpixel((0, 0)) == (0, 0, 255)
        assert cache.disk.thumbnail_path(key("a.png"), fill).exists()
        assert cache.disk.thumbnail_path(key("a.png"), fit).exists()

        cache.delete_cached_thumbnail("a.png", account, fill)

        assert cache.get_cached_thumbnail("a.png", account, fill) is None
        assert cache.get_cached_thumbnail("a.png", account, fit) is not None

        results = await collect(webdav.download_thumbnail("a.png", account, PASSWORD, fit))
        assert results[0].from_cache
        assert len(server.calls()) == 2

    async def test_thumbnail_refresh(self, webdav, server, account, make_image, collect):
        server.add("GET", PREVIEW, 200, make_image("red"))
        server.add("GET", PREVIEW, 200, make_image("red"))
        server.add("GET", PREVIEW, 200, make_image("green"))
        refresh = CacheOptions.REQUEST_EVEN_IF_CACHED

        await collect(webdav.download_thumbnail("a.png", account, PASSWORD))
        unchanged = await collect(
            webdav.download_thumbnail("a.png", account, PASSWORD, options=refresh)
        )
        changed = await collect(
            webdav.download_thumbnail("a.png", account, PASSWORD, options=refresh)
        )

        assert len(unchanged) == 1
        assert [r.from_cache for r in changed] == [True, False]

    async def test_non_nextcloud_server_is_unsupported(self, webdav, server, collect):
        account = SimpleAccount("user", "dav.example.com/webdav")

        results = await collect(webdav.download_thumbnail("a.png", account, PASSWORD))

        assert len(results) == 1
        assert isinstance(results[0].error, UnsupportedError)
        assert server.calls() == []


def test_preview_url():
    account = SimpleAccount("user", "https://cloud.example.com/nc/remote.php/dav/files/user")

    url = ImagesMixin.preview_url(account, "/My Photos/a.png", FILL)

    assert url == (
        "https://cloud.example.com/nc/index.php/core/preview.png"
        "?file=My+Photos/a.png&mode=cover&a=1"
    )
