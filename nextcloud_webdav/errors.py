"""Error taxonomy for WebDAV requests and cache operations."""

from typing import Optional

from httpx import RequestError


class WebDAVError(Exception):
    """Base class for every error surfaced by the WebDAV client."""

    @classmethod
    def from_status(
        cls, status_code: Optional[int], cause: Optional[BaseException] = None
    ) -> Optional["WebDAVError"]:
        """Classify an HTTP status code and/or transport failure.

        Args:
            status_code: HTTP status code of the response, if one was received
            cause: Underlying transport exception, if any

        Returns:
            None for a 2xx response, otherwise the matching WebDAVError instance
        """
        if status_code is not None:
            if 200 <= status_code <= 299:
                return None
            if 401 <= status_code <= 403:
                return UnauthorizedError(f"Server rejected credentials ({status_code})")
            if status_code == 507:
                return InsufficientStorageError("Server has insufficient storage")

        if isinstance(cause, RequestError):
            return TransportError(str(cause) or type(cause).__name__, cause=cause)
        if status_code is not None:
            return TransportError(
                f"Unexpected status code {status_code}", status_code=status_code
            )
        if cause is not None:
            return TransportError(str(cause), cause=cause)
        return None


class InvalidCredentialsError(WebDAVError):
    """The account was missing fields or the credentials could not be encoded.

    No network request was made.
    """


class UnauthorizedError(WebDAVError):
    """The server answered 401, 402 or 403."""


class InsufficientStorageError(WebDAVError):
    """The server was unable to store the data provided (507)."""


class UnsupportedError(WebDAVError):
    """The account's server does not expose the capability required."""


class PlaceholderError(WebDAVError):
    """The delivered value is a lower-fidelity stand-in; a full result may follow."""


class DiskIOError(WebDAVError):
    """A filesystem operation on the disk cache failed."""


class TransportError(WebDAVError):
    """Any other network-layer or unexpected HTTP failure."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.cause = cause
