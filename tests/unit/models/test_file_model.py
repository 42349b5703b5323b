"""Unit tests for PROPFIND parsing and listing views."""

from datetime import datetime, timezone

import pytest

from nextcloud_webdav.models.file import (
    WebDAVFile,
    parse_propfind_response,
    relative_path,
    sorted_files,
)

pytestmark = pytest.mark.unit

BASE_PATH = "remote.php/dav/files/user"


def make_file(path: str, is_directory: bool = False) -> WebDAVFile:
    return WebDAVFile(
        path=path,
        id=path,
        is_directory=is_directory,
        last_modified=datetime(2025, 1, 1, tzinfo=timezone.utc),
        size=0,
        etag="etag",
    )


def test_parse_listing(propfind):
    content = propfind(("A", True), ("A/x.txt", False, "abc"), ("A/sub", True))

    files = parse_propfind_response(content, BASE_PATH)

    assert [f.path for f in files] == ["A", "A/x.txt", "A/sub"]
    assert [f.is_directory for f in files] == [True, False, True]
    text_file = files[1]
    assert text_file.etag == "abc"
    assert text_file.size == 42
    assert text_file.id == "2"
    assert text_file.last_modified == datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)
    assert text_file.name == "x.txt"
    assert text_file.extension == "txt"


def test_parse_skips_responses_missing_required_properties():
    content = b"""<?xml version="1.0"?>
    <d:multistatus xmlns:d="DAV:" xmlns:oc="http://owncloud.org/ns">
        <d:response>
            <d:href>/remote.php/dav/files/user/no-size.txt</d:href>
            <d:propstat>
                <d:prop>
                    <d:getlastmodified>Wed, 01 Jan 2025 10:00:00 GMT</d:getlastmodified>
                    <d:getetag>"e"</d:getetag>
                    <oc:fileid>7</oc:fileid>
                </d:prop>
            </d:propstat>
        </d:response>
        <d:response>
            <d:href>/remote.php/dav/files/user/bad-date.txt</d:href>
            <d:propstat>
                <d:prop>
                    <d:getlastmodified>yesterday</d:getlastmodified>
                    <d:getetag>"e"</d:getetag>
                    <oc:fileid>8</oc:fileid>
                    <oc:size>1</oc:size>
                </d:prop>
            </d:propstat>
        </d:response>
    </d:multistatus>"""

    assert parse_propfind_response(content, BASE_PATH) == []


def test_parse_failure_gives_empty_listing():
    assert parse_propfind_response(b"<not xml", BASE_PATH) == []


def test_relative_path_decodes_percent_escapes():
    href = "/remote.php/dav/files/user/My%20Photos/a%2Bb.jpg"
    assert relative_path(href, BASE_PATH) == "My Photos/a+b.jpg"


def test_relative_path_keeps_paths_outside_base():
    assert relative_path("/other/file.txt", BASE_PATH) == "other/file.txt"


def test_equality_covers_every_field():
    assert make_file("a") == make_file("a")
    assert make_file("a") != make_file("a").model_copy(update={"etag": "changed"})


def test_sorted_view_drops_self_and_puts_folders_first():
    listing = [
        make_file("dir", True),
        make_file("dir/file1"),
        make_file("dir/dir1", True),
        make_file("dir/file2"),
        make_file("dir/dir2", True),
    ]

    view = sorted_files(listing, folders_first=True, include_self=False)

    assert [f.path for f in view] == ["dir/dir1", "dir/dir2", "dir/file1", "dir/file2"]


def test_sorted_view_keeps_order_when_not_folders_first():
    listing = [make_file("dir", True), make_file("dir/b"), make_file("dir/a", True)]

    assert sorted_files(listing, folders_first=False, include_self=True) == listing
    assert [f.path for f in sorted_files(listing, folders_first=False)] == [
        "dir/b",
        "dir/a",
    ]


def test_sorted_view_of_empty_listing():
    assert sorted_files([]) == []
