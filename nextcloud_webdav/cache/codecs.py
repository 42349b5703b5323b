"""Value codecs: the persisted listing index and decoded images."""

import io
import logging
from typing import Optional

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, Field, TypeAdapter

from nextcloud_webdav.models.account import AccountPath, UnwrappedAccount
from nextcloud_webdav.models.file import WebDAVFile

logger = logging.getLogger(__name__)


class ListingIndexEntry(BaseModel):
    """One directory listing in the persisted index."""

    username: str
    base_url: str
    path: str
    files: list[WebDAVFile] = Field(default_factory=list)


_index_adapter = TypeAdapter(list[ListingIndexEntry])


def encode_listing_index(listings: dict[AccountPath, list[WebDAVFile]]) -> bytes:
    entries = [
        ListingIndexEntry(
            username=key.account.username,
            base_url=key.account.base_url,
            path=key.path,
            files=files,
        )
        for key, files in listings.items()
    ]
    return _index_adapter.dump_json(entries)


def decode_listing_index(data: bytes) -> dict[AccountPath, list[WebDAVFile]]:
    """Decode the persisted index.

    Raises:
        ValidationError: If the blob is not a valid index
    """
    entries = _index_adapter.validate_json(data)
    return {
        AccountPath(UnwrappedAccount(entry.username, entry.base_url), entry.path): entry.files
        for entry in entries
    }


def decode_image(data: bytes) -> Optional[Image.Image]:
    """Decode image bytes; None if the payload is not an image Pillow understands."""
    if not data:
        return None
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.debug(f"Payload is not a decodable image: {e}")
        return None
    return image


__all__ = [
    "ListingIndexEntry",
    "decode_image",
    "decode_listing_index",
    "encode_listing_index",
]
