"""Account identity and the AccountPath cache key."""

from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable
from urllib.parse import quote, urlsplit, urlunsplit

from nextcloud_webdav.errors import InvalidCredentialsError

# Characters Foundation's urlHostAllowed leaves unescaped (besides alphanumerics)
_HOST_SAFE = "!$&'()*+,;=:-._~[]"


@runtime_checkable
class WebDAVAccount(Protocol):
    """Anything exposing an optional username and base URL can be used as an account."""

    @property
    def username(self) -> Optional[str]: ...

    @property
    def base_url(self) -> Optional[str]: ...


@dataclass(frozen=True)
class SimpleAccount:
    """Minimal WebDAVAccount implementation."""

    username: Optional[str] = None
    base_url: Optional[str] = None


@dataclass(frozen=True)
class UnwrappedAccount:
    """Normalized account identity: a username and an https base URL."""

    username: str
    base_url: str

    def __str__(self) -> str:
        return f"{self.username}@{self.base_url}"

    @property
    def encoded_description(self) -> str:
        """`username@baseURL` with the base URL percent-encoded and slashes as colons."""
        encoded = quote(self.base_url, safe=_HOST_SAFE)
        return f"{self.username}@{encoded.replace('%2F', ':')}"

    @property
    def base_path(self) -> str:
        """Path component of the base URL without surrounding slashes."""
        return urlsplit(self.base_url).path.strip("/")


def normalize_account(account: WebDAVAccount) -> UnwrappedAccount:
    """Normalize an account-like value into an UnwrappedAccount.

    A missing scheme becomes https, any other scheme is replaced with https and a
    trailing slash is dropped, so "host.com" and "https://host.com/" are equal.

    Raises:
        InvalidCredentialsError: If the username is missing or the URL is unusable
    """
    username = getattr(account, "username", None)
    base_url = getattr(account, "base_url", None)
    if not username or not base_url:
        raise InvalidCredentialsError("Account is missing a username or base URL")

    base_url = base_url.strip()
    if "://" not in base_url:
        base_url = f"https://{base_url}"

    try:
        parts = urlsplit(base_url)
    except ValueError as e:
        raise InvalidCredentialsError(f"Invalid base URL '{base_url}': {e}") from e

    if not parts.netloc:
        raise InvalidCredentialsError(f"Invalid base URL '{base_url}'")

    normalized = urlunsplit(
        ("https", parts.netloc, parts.path.rstrip("/"), parts.query, parts.fragment)
    )
    return UnwrappedAccount(username=username, base_url=normalized)


def trim_path(path: str) -> str:
    return path.strip("/")


@dataclass(frozen=True)
class AccountPath:
    """Universal cache key: a normalized account identity plus a trimmed path."""

    account: UnwrappedAccount
    path: str = field(default="")

    def __post_init__(self):
        object.__setattr__(self, "path", trim_path(self.path))

    @classmethod
    def of(cls, account: WebDAVAccount, path: str) -> "AccountPath":
        """Build the key for any account-like value.

        Raises:
            InvalidCredentialsError: If the account cannot be normalized
        """
        if isinstance(account, UnwrappedAccount):
            return cls(account, path)
        return cls(normalize_account(account), path)

    @property
    def segments(self) -> list[str]:
        return self.path.split("/") if self.path else []

    def is_descendant_of(self, other: "AccountPath") -> bool:
        """True if this path lies strictly below `other`, comparing whole segments."""
        if self.account != other.account:
            return False
        ancestor = other.segments
        mine = self.segments
        return len(mine) > len(ancestor) and mine[: len(ancestor)] == ancestor

    def is_within(self, other: "AccountPath") -> bool:
        """True if this path equals `other` or lies below it."""
        return self == other or self.is_descendant_of(other)
