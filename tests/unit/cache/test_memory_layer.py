"""Unit tests for the memory cache tier."""

import pytest
from PIL import Image

from nextcloud_webdav.cache.codecs import decode_image
from nextcloud_webdav.cache.disk import DiskCacheStore
from nextcloud_webdav.cache.memory import MemoryCacheLayer, image_size
from nextcloud_webdav.cache.options import CacheCategory
from nextcloud_webdav.errors import DiskIOError
from nextcloud_webdav.models.thumbnail import FILL, FIT

pytestmark = pytest.mark.unit


@pytest.fixture
def memory(settings):
    return MemoryCacheLayer(settings)


@pytest.fixture
def disk(settings):
    return DiskCacheStore(settings.cache_path)


def test_disk_value_is_promoted_to_memory(memory, disk, key):
    disk.write(b"payload", disk.data_path(key("a.txt")))

    value = memory.get_cached_value_or_load_from_disk(
        memory.data, key("a.txt"), disk, lambda data: data, "data"
    )

    assert value == b"payload"
    assert memory.get_cached_value(memory.data, key("a.txt")) == b"payload"


def test_undecodable_disk_value_is_a_miss(memory, disk, key):
    disk.write(b"not an image", disk.data_path(key("a.png")))

    value = memory.get_cached_value_or_load_from_disk(
        memory.images, key("a.png"), disk, decode_image, "image"
    )

    assert value is None
    assert memory.images.get(key("a.png")) is None


def test_unreadable_disk_value_is_a_miss(memory, disk, key, mocker):
    mocker.patch.object(disk, "read", side_effect=DiskIOError("boom"))

    assert (
        memory.get_cached_value_or_load_from_disk(
            memory.data, key("a.txt"), disk, lambda data: data, "data"
        )
        is None
    )


def test_thumbnail_variants_share_one_entry(memory, key):
    red = Image.new("RGB", (4, 4), "red")
    blue = Image.new("RGB", (4, 4), "blue")

    memory.set_thumbnail(key("a.jpg"), FILL, red)
    memory.set_thumbnail(key("a.jpg"), FIT, blue)

    assert memory.get_thumbnail(key("a.jpg"), FILL) is red
    assert memory.get_thumbnail(key("a.jpg"), FIT) is blue

    memory.remove_thumbnail(key("a.jpg"), FILL)
    assert memory.get_thumbnail(key("a.jpg"), FILL) is None
    assert memory.get_thumbnail(key("a.jpg"), FIT) is blue

    memory.remove_thumbnail(key("a.jpg"), FIT)
    assert key("a.jpg") not in memory.thumbnails


def test_thumbnail_promoted_from_disk(memory, disk, key, make_image):
    disk.write(make_image("green"), disk.thumbnail_path(key("a.jpg"), FIT))

    image = memory.get_thumbnail(key("a.jpg"), FIT, disk, decode_image)

    assert image is not None
    assert memory.get_thumbnail(key("a.jpg"), FIT) is image
    assert memory.get_thumbnail(key("a.jpg"), FILL) is None


def test_clear_single_category(memory, key):
    memory.data.set(key("a"), b"a")
    memory.files.set(key("dir"), [])

    memory.clear(CacheCategory.DATA)
    assert memory.data.get(key("a")) is None
    assert memory.files.get(key("dir")) == []

    memory.clear()
    assert memory.files.get(key("dir")) is None


def test_image_size():
    assert image_size(Image.new("RGB", (10, 5))) == 150
    assert image_size(Image.new("L", (10, 5))) == 50
