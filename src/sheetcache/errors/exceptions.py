"""Exception hierarchy and HTTP error mapping for sheetcache."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class SheetCacheError(Exception):
    """
    Base exception for sheetcache.

    Attributes:
        details: Optional structured information (e.g., HTTP status, action).
        cause: Optional original exception that triggered this error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause


class ConfigurationError(SheetCacheError):
    """Raised when the configuration itself is malformed."""


class NotConfiguredError(SheetCacheError):
    """Raised when a remote endpoint is absent or not a valid web app URL."""


class InvalidArgumentError(SheetCacheError):
    """Raised when arguments are invalid (HTTP 400, bad config values, etc.)."""


class InvalidStateError(SheetCacheError):
    """Raised when the library is used in an invalid state (e.g., open not called)."""


class AuthError(SheetCacheError):
    """Raised when OAuth authentication/refresh fails (HTTP 401)."""


class PermissionError(SheetCacheError):
    """Raised when access to the script or Drive is denied (HTTP 403)."""


class NotFoundError(SheetCacheError):
    """Raised when the endpoint or resource is not found (HTTP 404)."""


class RateLimitError(SheetCacheError):
    """Raised when rate-limited (HTTP 429)."""


class NetworkError(SheetCacheError):
    """Raised when network/timeout issues prevent the request."""


class ApiError(SheetCacheError):
    """Raised for unclassified remote errors (5xx, unknown 4xx, etc.)."""


class ResponseFormatError(SheetCacheError):
    """Raised when the response body is not the expected JSON envelope."""


class RemoteActionError(SheetCacheError):
    """Raised when the script answers with success=false."""


class SubmissionError(SheetCacheError):
    """Raised when a user-initiated submit or upload fails."""


@dataclass(frozen=True)
class HttpErrorInfo:
    """Lightweight HTTP error information for mapping to sheetcache exceptions."""

    status_code: int
    reason: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> SheetCacheError:
    """
    Map an HTTP error to a sheetcache exception.

    Policy:
        - 400 -> InvalidArgumentError
        - 401 -> AuthError
        - 403 -> PermissionError
        - 404 -> NotFoundError
        - 429 -> RateLimitError
        - otherwise (5xx included) -> ApiError
    """
    details: dict[str, Any] = {
        "status_code": info.status_code,
        "reason": info.reason,
    }
    if info.details:
        details.update(info.details)

    message = info.message or f"HTTP error {info.status_code}"

    if info.status_code == 400:
        return InvalidArgumentError(message, details=details, cause=cause)
    if info.status_code == 401:
        return AuthError(message, details=details, cause=cause)
    if info.status_code == 403:
        return PermissionError(message, details=details, cause=cause)
    if info.status_code == 404:
        return NotFoundError(message, details=details, cause=cause)
    if info.status_code == 429:
        return RateLimitError(message, details=details, cause=cause)

    return ApiError(message, details=details, cause=cause)
