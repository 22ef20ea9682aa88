"""sheetcache public API."""

from __future__ import annotations

from sheetcache.auth import AuthInfo, OAuthClient
from sheetcache.config import SheetsConfig, is_valid_script_url
from sheetcache.dashboard import DashboardManager, EventPlanner, MajorTodos, QuarterlyReports, SheetUpdateWatcher
from sheetcache.errors import (
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
from sheetcache.local import JsonFileStore, KeyValueStore, MemoryStore
from sheetcache.models import CollectionSpec, FetchResult, RefreshResult, WriteResult
from sheetcache.remote import RemoteGateway
from sheetcache.sync import AggregateCache, Synchronizer, TombstoneSet, WriteTicket, merge_collections

__all__ = [
    # High-level
    "DashboardManager",
    "MajorTodos",
    "EventPlanner",
    "QuarterlyReports",
    "SheetUpdateWatcher",
    # Core
    "Synchronizer",
    "AggregateCache",
    "TombstoneSet",
    "WriteTicket",
    "merge_collections",
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "RemoteGateway",
    # Config / Auth
    "SheetsConfig",
    "is_valid_script_url",
    "AuthInfo",
    "OAuthClient",
    # Models
    "CollectionSpec",
    "FetchResult",
    "WriteResult",
    "RefreshResult",
    # Errors
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
