from nextcloud_webdav.cache import CacheCategory, CachedResult, CacheOptions
from nextcloud_webdav.client import ANY_THUMBNAIL, WebDAV
from nextcloud_webdav.config import Settings, get_settings
from nextcloud_webdav.errors import (
    DiskIOError,
    InsufficientStorageError,
    InvalidCredentialsError,
    PlaceholderError,
    TransportError,
    UnauthorizedError,
    UnsupportedError,
    WebDAVError,
)
from nextcloud_webdav.models import (
    AccountPath,
    ContentMode,
    OCSTheme,
    SimpleAccount,
    ThumbnailProperties,
    WebDAVAccount,
    WebDAVFile,
)

__all__ = [
    "ANY_THUMBNAIL",
    "AccountPath",
    "CacheCategory",
    "CacheOptions",
    "CachedResult",
    "ContentMode",
    "DiskIOError",
    "InsufficientStorageError",
    "InvalidCredentialsError",
    "OCSTheme",
    "PlaceholderError",
    "Settings",
    "SimpleAccount",
    "ThumbnailProperties",
    "TransportError",
    "UnauthorizedError",
    "UnsupportedError",
    "WebDAV",
    "WebDAVAccount",
    "WebDAVError",
    "WebDAVFile",
    "get_settings",
]
