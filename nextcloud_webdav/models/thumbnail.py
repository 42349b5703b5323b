"""Thumbnail rendering properties used as a cache sub-key."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ContentMode(Enum):
    """How the thumbnail fills the requested dimensions."""

    FILL = "fill"
    FIT = "fit"


@dataclass(frozen=True)
class ThumbnailProperties:
    """Dimensions and content mode of a server-rendered thumbnail.

    Dimensions of None use the server's default size. Width and height are set together.
    """

    width: Optional[int] = None
    height: Optional[int] = None
    content_mode: ContentMode = ContentMode.FILL

    def __post_init__(self):
        if (self.width is None) != (self.height is None):
            raise ValueError("Thumbnail width and height must be set together")
        if self.width is not None and (self.width <= 0 or self.height <= 0):
            raise ValueError("Thumbnail dimensions must be positive")

    @property
    def has_dimensions(self) -> bool:
        return self.width is not None

    def query_items(self) -> list[tuple[str, str]]:
        """Preview endpoint query parameters, excluding the file parameter."""
        items = [("mode", "cover")]
        if self.has_dimensions:
            items.append(("x", str(self.width)))
            items.append(("y", str(self.height)))
        if self.content_mode is ContentMode.FILL:
            items.append(("a", "1"))
        return items

    @property
    def file_suffix(self) -> str:
        """Suffix appended to the cached file name, e.g. `?mode=cover&x=64&y=64&a=1`."""
        return "?" + "&".join(f"{name}={value}" for name, value in self.query_items())


FILL = ThumbnailProperties(content_mode=ContentMode.FILL)
FIT = ThumbnailProperties(content_mode=ContentMode.FIT)
DEFAULT = FILL
