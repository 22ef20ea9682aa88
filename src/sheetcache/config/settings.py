"""Configuration object injected into the gateway, synchronizers and manager."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from sheetcache.auth import AuthInfo
from sheetcache.errors import ConfigurationError, InvalidArgumentError

_SCRIPT_URL_RE = re.compile(r"^https://script\.google\.com/macros/s/[^/]+/exec$", re.IGNORECASE)


def is_valid_script_url(url: Optional[str]) -> bool:
    """True only for an Apps Script web app URL ending in /exec."""
    return bool(_SCRIPT_URL_RE.match(str(url or "").strip()))


@dataclass(slots=True, frozen=True)
class SheetsConfig:
    """
    Settings for one dashboard instance.

    Notes:
        - blob_url defaults to script_url (uploads go through the same web app).
        - calendar_script_url defaults to script_url (events, marketing
          calendar and bookings may live in a second web app).
        - use_remote=False disables every remote call; the Local Store still works.
        - tombstone_ttl_sec=None keeps tombstones for the whole session.
    """

    script_url: Optional[str] = None
    calendar_script_url: Optional[str] = None
    blob_url: Optional[str] = None
    use_remote: bool = True
    cache_dir: Optional[str] = None
    timeout_sec: float = 30.0
    max_retries: int = 2
    sheet_poll_interval_sec: float = 60 * 60
    watched_sheets: dict[str, str] = field(default_factory=dict)
    auth_info: Optional[AuthInfo] = None
    drive_folder_id: Optional[str] = None
    tombstone_ttl_sec: Optional[float] = None

    def __post_init__(self) -> None:
        if self.timeout_sec <= 0:
            raise InvalidArgumentError("timeout_sec must be positive")
        if self.max_retries < 0:
            raise InvalidArgumentError("max_retries must be >= 0")
        if self.sheet_poll_interval_sec <= 0:
            raise InvalidArgumentError("sheet_poll_interval_sec must be positive")
        if self.tombstone_ttl_sec is not None and self.tombstone_ttl_sec <= 0:
            raise InvalidArgumentError("tombstone_ttl_sec must be positive when set")

    @property
    def effective_calendar_url(self) -> Optional[str]:
        return self.calendar_script_url if self.calendar_script_url is not None else self.script_url

    @property
    def effective_blob_url(self) -> Optional[str]:
        return self.blob_url if self.blob_url is not None else self.script_url

    def is_remote_configured(self) -> bool:
        return self.use_remote and is_valid_script_url(self.script_url)

    def warning(self) -> str:
        """Banner text for a misconfigured endpoint ('' when nothing to show)."""
        if not self.use_remote:
            return ""
        if not self.script_url:
            return "Google Sheets URL is missing."
        raw = str(self.script_url).strip()
        if "/macros/library/" in raw:
            return "Google Sheets URL is a library link. Use the Web App /exec URL instead."
        if not is_valid_script_url(raw):
            return "Google Sheets URL must be the Web App /exec link."
        return ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SheetsConfig":
        """
        Build config from a plain mapping (e.g., parsed JSON).

        Raises:
            InvalidArgumentError: unknown keys or wrong value types.
        """
        if not isinstance(data, Mapping):
            raise InvalidArgumentError("config must be a mapping")

        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidArgumentError("Unknown config keys", details={"keys": unknown})

        kwargs = dict(data)
        auth = kwargs.get("auth_info")
        if isinstance(auth, Mapping):
            try:
                kwargs["auth_info"] = AuthInfo(kind=auth.get("kind", "oauth"), data=dict(auth.get("data", {})))
            except (TypeError, ValueError) as exc:
                raise InvalidArgumentError("Invalid auth_info", cause=exc) from exc

        watched = kwargs.get("watched_sheets", {})
        if not isinstance(watched, Mapping) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in watched.items()
        ):
            raise InvalidArgumentError("watched_sheets must map names to sheet ids")
        kwargs["watched_sheets"] = dict(watched)

        try:
            return cls(**kwargs)
        except TypeError as exc:
            raise InvalidArgumentError("Invalid config values", cause=exc) from exc

    @classmethod
    def from_json_file(cls, path: str) -> "SheetsConfig":
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(
                "Failed to read config file",
                details={"path": path},
                cause=exc,
            ) from exc
        return cls.from_dict(data)
