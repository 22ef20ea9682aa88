"""Polls watched spreadsheets for edits and keeps unread flags."""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Optional

from sheetcache.config.keys import SHEET_LAST_SEEN_KEY
from sheetcache.local import KeyValueStore
from sheetcache.remote import RemoteGateway
from sheetcache.util.time import now_rfc3339, parse_rfc3339

logger = logging.getLogger(__name__)

LAST_UPDATED_ACTION = "getSheetLastUpdated"


class SheetUpdateWatcher:
    """
    Tracks "last updated" timestamps of watched sheets (name -> sheet id).

    A sheet is unread when its remote timestamp is newer than the last-seen
    timestamp persisted in the Local Store. run() checks, then sleeps, so a
    slow check delays the next one instead of overlapping it.
    """

    def __init__(
        self,
        gateway: RemoteGateway,
        store: KeyValueStore,
        sheets: Mapping[str, str],
        *,
        interval_sec: float = 60 * 60,
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._sheets = dict(sheets)
        self._interval_sec = interval_sec
        self._task: Optional[asyncio.Task[None]] = None
        self.last_updated: dict[str, Optional[str]] = {name: None for name in self._sheets}
        self.unread: dict[str, bool] = {name: False for name in self._sheets}

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def check(self) -> bool:
        """Fetch timestamps once. Returns False when nothing could be fetched."""
        if not self._sheets:
            return False
        result = await self._gateway.fetch(
            LAST_UPDATED_ACTION,
            "updated",
            {"ids": ",".join(self._sheets.values())},
            require_success=True,
        )
        if not result.ok or not isinstance(result.value, dict):
            logger.warning("Failed to check sheet updates: %s", result.error or result.status)
            return False

        last_seen = self._last_seen()
        for name, sheet_id in self._sheets.items():
            updated = result.value.get(sheet_id) or None
            self.last_updated[name] = updated
            self.unread[name] = _is_newer(updated, last_seen.get(name))
        return True

    def mark_seen(self, name: str, updated_at: Optional[str] = None) -> None:
        last_seen = self._last_seen()
        last_seen[name] = updated_at or self.last_updated.get(name) or now_rfc3339()
        self._store.write(SHEET_LAST_SEEN_KEY, last_seen)
        self.unread[name] = False

    def start(self) -> asyncio.Task[None]:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run(), name="sheet-watcher")
        return self._task

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def run(self) -> None:
        while True:
            await self.check()
            await asyncio.sleep(self._interval_sec)

    def _last_seen(self) -> dict[str, str]:
        value = self._store.read(SHEET_LAST_SEEN_KEY)
        return dict(value) if isinstance(value, dict) else {}


def _is_newer(updated: Optional[str], seen: Optional[str]) -> bool:
    if not updated:
        return False
    if not seen:
        return True
    try:
        return parse_rfc3339(updated) > parse_rfc3339(seen)
    except ValueError:
        return updated != seen
