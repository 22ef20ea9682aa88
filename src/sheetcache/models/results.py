"""Result models for remote reads, remote writes and refreshes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional

FetchStatus = Literal["ok", "failed", "not_configured"]
WriteStatus = Literal["confirmed", "failed", "skipped"]
WriteAction = Literal["upsert", "delete"]
RefreshStatus = Literal["merged", "unchanged"]


@dataclass(slots=True)
class FetchResult:
    """
    Outcome of a remote read.

    status="ok" with an empty value means the sheet really is empty;
    "failed" and "not_configured" mean "keep showing the cache".
    """

    status: FetchStatus
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @classmethod
    def success(cls, value: Any) -> "FetchResult":
        return cls(status="ok", value=value)

    @classmethod
    def failure(cls, error: str) -> "FetchResult":
        return cls(status="failed", error=error)

    @classmethod
    def not_configured(cls) -> "FetchResult":
        return cls(status="not_configured", error="Remote endpoint is not configured")


@dataclass(slots=True)
class WriteResult:
    """Outcome of one remote upsert/delete."""

    status: WriteStatus
    action: WriteAction
    item_id: str

    value: Any = None
    error: Optional[str] = None

    @property
    def confirmed(self) -> bool:
        return self.status == "confirmed"


@dataclass(slots=True)
class RefreshResult:
    """Outcome of Synchronizer.refresh()."""

    status: RefreshStatus
    fetch_status: FetchStatus
    count: int = 0
    added: int = 0
    dropped: int = 0
