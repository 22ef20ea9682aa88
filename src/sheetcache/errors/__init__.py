"""Public error exports for sheetcache."""

from __future__ import annotations

from .exceptions import (
    ApiError,
    AuthError,
    ConfigurationError,
    HttpErrorInfo,
    InvalidArgumentError,
    InvalidStateError,
    NetworkError,
    NotConfiguredError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    RemoteActionError,
    ResponseFormatError,
    SheetCacheError,
    SubmissionError,
    map_http_error,
)

__all__ = [
    "SheetCacheError",
    "ConfigurationError",
    "NotConfiguredError",
    "InvalidArgumentError",
    "InvalidStateError",
    "AuthError",
    "PermissionError",
    "NotFoundError",
    "RateLimitError",
    "NetworkError",
    "ApiError",
    "ResponseFormatError",
    "RemoteActionError",
    "SubmissionError",
    "HttpErrorInfo",
    "map_http_error",
]
