"""Public model exports for sheetcache."""

from __future__ import annotations

from .collection import CollectionSpec
from .results import (
    FetchResult,
    FetchStatus,
    RefreshResult,
    RefreshStatus,
    WriteAction,
    WriteResult,
    WriteStatus,
)

__all__ = [
    "CollectionSpec",
    "FetchStatus",
    "WriteStatus",
    "WriteAction",
    "RefreshStatus",
    "FetchResult",
    "WriteResult",
    "RefreshResult",
]
