"""Cache for single remote objects (metrics, section snapshots, drafts)."""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any, Awaitable, Callable, Optional

from sheetcache.errors import SheetCacheError
from sheetcache.local import KeyValueStore
from sheetcache.models import FetchResult

from .tasks import BackgroundTasks

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[FetchResult]]


class AggregateCache:
    """
    Cache-first holder of one JSON value.

    refresh() overwrites the value only when the fetch succeeds and `accept`
    approves the fetched value; there is no merge and no tombstoning.
    Without a loader the value is local-only (e.g., next-quarter suggestions).
    """

    def __init__(
        self,
        key: str,
        store: KeyValueStore,
        loader: Optional[Loader] = None,
        *,
        accept: Optional[Callable[[Any], bool]] = None,
        name: Optional[str] = None,
    ) -> None:
        self.key = key
        self.name = name or key
        self._store = store
        self._loader = loader
        self._accept = accept or (lambda value: value is not None)
        self._value: Any = None
        self._tasks = BackgroundTasks()
        self._listeners: list[Callable[[Any], None]] = []

    @property
    def value(self) -> Any:
        return copy.deepcopy(self._value)

    def on_change(self, listener: Callable[[Any], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def initialize(self, *, refresh: bool = True) -> Optional[asyncio.Task[bool]]:
        cached = self._store.read(self.key)
        if cached is not None and self._accept(cached):
            self._value = cached
            self._notify()
        elif cached is not None:
            logger.warning("Ignoring cached %s: unexpected shape", self.name)

        if not refresh or self._loader is None:
            return None
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return None
        return self._tasks.spawn(self.refresh(), name=f"refresh:{self.name}")

    async def refresh(self) -> bool:
        """Returns True when the value was replaced by a fresh remote value."""
        if self._loader is None:
            return False
        try:
            fetched = await self._loader()
        except SheetCacheError as exc:
            logger.error("Refresh of %s failed: %s", self.name, exc)
            return False
        if not fetched.ok or not self._accept(fetched.value):
            logger.info("Keeping cached %s (%s)", self.name, fetched.status)
            return False
        self.set(fetched.value)
        return True

    def set(self, value: Any) -> None:
        """Replace the value locally and persist it."""
        self._value = copy.deepcopy(value)
        if not self._store.write(self.key, self._value):
            logger.warning("%s kept in memory only; cache write failed", self.name)
        self._notify()

    async def drain(self) -> None:
        await self._tasks.drain()

    def _notify(self) -> None:
        snapshot = self.value
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Change listener failed for %s", self.name)
