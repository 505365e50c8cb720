"""Custom error classes for the Steam Web API client."""

from typing import Optional, Dict, Any


class SteamAPIError(Exception):
    """Base exception for Steam Web API errors with status code tracking."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[Dict[str, Any]] = None,
        retry_after: Optional[float] = None,
    ) -> None:
        """
        Initialize SteamAPIError.

        Args:
            message: Error message
            status_code: HTTP status code (400, 401, 403, 404, 429, 503, etc.)
            response_data: Raw response data from API
            retry_after: Seconds to wait before retry (for 429 errors)
        """
        super().__init__(message)
        self.status_code: Optional[int] = status_code
        self.response_data: Dict[str, Any] = response_data or {}
        self.retry_after: Optional[float] = retry_after
        self.message: str = message

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.status_code == 429 and self.retry_after:
            return f"Rate Limit Error {self.status_code}: {self.message} (Retry after: {self.retry_after}s)"
        if self.status_code:
            return f"Steam API Error {self.status_code}: {self.message}"
        return f"Steam API Error: {self.message}"


class RateLimitError(SteamAPIError):
    """Rate limit error (429)."""


class AuthenticationError(SteamAPIError):
    """Unauthorized (401).

    GetFriendList answers 401 for profiles whose friend list is private.
    """


class ForbiddenError(SteamAPIError):
    """Forbidden error (403) - invalid API key."""


class NotFoundError(SteamAPIError):
    """Not found error (404)."""


class ServiceUnavailableError(SteamAPIError):
    """Service unavailable (503) - Steam servers down."""


class BadRequestError(SteamAPIError):
    """Bad request (400) - invalid parameters."""


class MalformedResponseError(SteamAPIError):
    """Response body did not have the expected shape."""
