from .account import (
    AccountPath,
    SimpleAccount,
    UnwrappedAccount,
    WebDAVAccount,
    normalize_account,
)
from .file import WebDAVFile, parse_propfind_response, sorted_files
from .theme import OCSTheme
from .thumbnail import ContentMode, ThumbnailProperties

__all__ = [
    "AccountPath",
    "ContentMode",
    "OCSTheme",
    "SimpleAccount",
    "ThumbnailProperties",
    "UnwrappedAccount",
    "WebDAVAccount",
    "WebDAVFile",
    "normalize_account",
    "parse_propfind_response",
    "sorted_files",
]
