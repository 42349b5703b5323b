"""Pydantic model for a file or directory reported by PROPFIND."""

import logging
import xml.etree.ElementTree as ET
from datetime import datetime
from email.utils import format_datetime, parsedate_to_datetime
from typing import List, Optional
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DAV_NS = "{DAV:}"
OC_NS = "{http://owncloud.org/ns}"
NC_NS = "{http://nextcloud.org/ns}"

PROPFIND_BODY = """<?xml version="1.0"?>
<d:propfind xmlns:d="DAV:" xmlns:oc="http://owncloud.org/ns" xmlns:nc="http://nextcloud.org/ns">
    <d:prop>
        <d:getlastmodified/>
        <d:getetag/>
        <d:getcontenttype/>
        <oc:fileid/>
        <oc:permissions/>
        <oc:size/>
        <nc:has-preview/>
        <oc:favorite/>
    </d:prop>
</d:propfind>"""


class WebDAVFile(BaseModel):
    """A file or directory on the WebDAV server.

    Equality compares every field, which is how an unchanged listing is detected.
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Path relative to the account base URL")
    id: str = Field(description="Server file ID")
    is_directory: bool = Field(description="True when no content type was reported")
    last_modified: datetime = Field(description="Last modification time")
    size: int = Field(description="Size in bytes")
    etag: str = Field(description="Opaque change token")

    @property
    def name(self) -> str:
        return self.path.rstrip("/").rsplit("/", 1)[-1]

    @property
    def extension(self) -> str:
        name = self.name
        return name.rsplit(".", 1)[-1].lower() if "." in name else ""

    def __str__(self) -> str:
        kind = "Directory" if self.is_directory else "File"
        return (
            f"{self.path}\t{kind}\tLast modified {format_datetime(self.last_modified)}"
            f"\tID: {self.id}\tSize: {self.size}"
        )

    @classmethod
    def from_response_element(
        cls, element: ET.Element, base_path: str = ""
    ) -> Optional["WebDAVFile"]:
        """Build a file from one `<d:response>` element.

        Returns None if any required property is missing or malformed.
        """
        href = element.findtext(f"{DAV_NS}href")
        prop = element.find(f"{DAV_NS}propstat/{DAV_NS}prop")
        if href is None or prop is None:
            return None

        date_string = prop.findtext(f"{DAV_NS}getlastmodified")
        file_id = prop.findtext(f"{OC_NS}fileid")
        size_string = prop.findtext(f"{OC_NS}size")
        etag = prop.findtext(f"{DAV_NS}getetag")
        if date_string is None or file_id is None or size_string is None or etag is None:
            return None

        try:
            last_modified = parsedate_to_datetime(date_string)
            size = int(size_string)
        except (TypeError, ValueError):
            logger.debug(f"Skipping response with malformed properties: {href}")
            return None

        content_type = prop.find(f"{DAV_NS}getcontenttype")
        is_directory = content_type is None or content_type.text is None

        return cls(
            path=relative_path(href, base_path),
            id=file_id,
            is_directory=is_directory,
            last_modified=last_modified,
            size=size,
            etag=etag.strip('"'),
        )


def relative_path(href: str, base_path: str) -> str:
    """Percent-decode an href and make it relative to the account base path."""
    path = unquote(href).strip("/")
    base = base_path.strip("/")
    if base and (path == base or path.startswith(f"{base}/")):
        path = path[len(base) :]
    return path.strip("/")


def parse_propfind_response(content: bytes, base_path: str = "") -> List[WebDAVFile]:
    """Parse a PROPFIND multistatus body.

    Parse failures yield an empty list rather than an error.
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        logger.warning(f"Could not parse PROPFIND response: {e}")
        return []

    files = []
    for response_elem in root.findall(f"{DAV_NS}response"):
        file = WebDAVFile.from_response_element(response_elem, base_path)
        if file is not None:
            files.append(file)
    return files


def sorted_files(
    files: List[WebDAVFile], folders_first: bool = True, include_self: bool = False
) -> List[WebDAVFile]:
    """View of a listing as presented to callers.

    Without `include_self` the leading self-entry is dropped. With `folders_first`
    directories move ahead of files, each group keeping its original order.
    """
    view = list(files)
    if not include_self and view:
        view = view[1:]
    if folders_first:
        view = [f for f in view if f.is_directory] + [f for f in view if not f.is_directory]
    return view
