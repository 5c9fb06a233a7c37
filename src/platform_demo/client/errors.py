"""Exceptions raised by the platform HTTP client."""
from __future__ import annotations


class PlatformAPIError(Exception):
    """Base exception for platform API errors.

    Attributes
    ----------
    status_code:
        HTTP status of the failed response, or ``0`` when no response
        was received.
    message:
        Error message extracted from the response body.
    response_body:
        Raw response text.
    """

    def __init__(
        self,
        status_code: int,
        message: str = "",
        *,
        response_body: str = "",
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.response_body = response_body
        super().__init__(f"Platform API error {status_code}: {message}")


class PlatformAuthError(PlatformAPIError):
    """The token was rejected (401/403)."""


class PlatformNotFoundError(PlatformAPIError):
    """Requested resource does not exist (404, or an empty lookup)."""

    def __init__(self, message: str = "Resource not found", **kwargs: str) -> None:
        super().__init__(404, message, **kwargs)


class PlatformConflictError(PlatformAPIError):
    """Resource already exists (409)."""


class PlatformTimeoutError(PlatformAPIError):
    """Request to the platform timed out."""

    def __init__(self, message: str = "Request timed out") -> None:
        super().__init__(0, message)
