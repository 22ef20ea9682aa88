"""DashboardManager: wires store, gateways and caches for the whole dashboard."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from sheetcache.config import SheetsConfig, keys
from sheetcache.errors import InvalidArgumentError
from sheetcache.local import JsonFileStore, KeyValueStore, MemoryStore
from sheetcache.models import CollectionSpec
from sheetcache.remote import RemoteGateway
from sheetcache.remote.catalog import (
    CALENDAR_COLLECTIONS,
    EVENTS,
    MAIN_COLLECTIONS,
    MAJOR_TODOS,
    NEWSLETTER,
    POSTING_SCHEDULE,
    PRESS_RELEASES,
)
from sheetcache.sync import AggregateCache, Synchronizer, TombstoneSet

from .events import (
    EventPlanner,
    decode_event,
    encode_event,
    event_conflicts,
    planning_checklist_lost,
)
from .marketing import decode_month_entry
from .quarterly import QuarterlyReports
from .todos import MajorTodos
from .watcher import SheetUpdateWatcher

logger = logging.getLogger(__name__)


class DashboardManager:
    """
    High-level entry point: cache-first open, then background refresh.

    Usage:
        manager = DashboardManager(SheetsConfig(script_url=..., cache_dir=...))
        manager.open()               # paint from the Local Store
        await manager.load_data()    # refresh everything from the sheets
    """

    def __init__(
        self,
        config: SheetsConfig,
        *,
        store: Optional[KeyValueStore] = None,
        gateway: Optional[RemoteGateway] = None,
        calendar_gateway: Optional[RemoteGateway] = None,
    ) -> None:
        self._config = config
        self._store = store if store is not None else _default_store(config)
        self._gateway = gateway if gateway is not None else RemoteGateway(config)
        if calendar_gateway is not None:
            self._calendar_gateway = calendar_gateway
        elif config.effective_calendar_url == config.script_url:
            self._calendar_gateway = self._gateway
        else:
            self._calendar_gateway = RemoteGateway.for_calendar(config)

        self._collections: dict[str, Synchronizer] = {}
        for spec in MAIN_COLLECTIONS:
            self._collections[spec.name] = self._make_sync(spec, self._gateway)
        for spec in CALENDAR_COLLECTIONS:
            self._collections[spec.name] = self._make_sync(spec, self._calendar_gateway)

        gw = self._gateway
        self.metrics = AggregateCache(
            keys.METRICS_CACHE_KEY,
            self._store,
            lambda: gw.fetch("getMetrics", "metrics"),
            accept=lambda v: isinstance(v, dict),
            name="metrics",
        )
        self.section_snapshots = AggregateCache(
            keys.SNAPSHOTS_CACHE_KEY,
            self._store,
            lambda: gw.fetch("getSectionSnapshots", "sections"),
            accept=lambda v: isinstance(v, (dict, list)),
            name="section_snapshots",
        )
        quarterly_updates = AggregateCache(
            keys.QUARTERLY_CACHE_KEY,
            self._store,
            lambda: gw.fetch("getQuarterlyUpdates", "updates"),
            accept=lambda v: isinstance(v, list),
            name="quarterly_updates",
        )
        self._flyers = AggregateCache(
            keys.FLYERS_CACHE_KEY,
            self._store,
            accept=lambda v: isinstance(v, dict),
            name="event_flyers",
        )

        self.todos = MajorTodos(self._collections[MAJOR_TODOS.name])
        self.events = EventPlanner(self._collections[EVENTS.name], self._flyers)
        self.quarterly = QuarterlyReports(quarterly_updates, self._gateway, self._store)
        self.sheet_watcher = SheetUpdateWatcher(
            self._gateway,
            self._store,
            config.watched_sheets,
            interval_sec=config.sheet_poll_interval_sec,
        )

    @classmethod
    def from_config_file(cls, path: str) -> "DashboardManager":
        return cls(SheetsConfig.from_json_file(path))

    # ----------------------------
    # Accessors
    # ----------------------------
    @property
    def config(self) -> SheetsConfig:
        return self._config

    @property
    def store(self) -> KeyValueStore:
        return self._store

    @property
    def gateway(self) -> RemoteGateway:
        return self._gateway

    @property
    def calendar_gateway(self) -> RemoteGateway:
        return self._calendar_gateway

    @property
    def config_warning(self) -> str:
        """Persistent banner text; '' when the endpoint looks fine."""
        return self._config.warning()

    @property
    def collections(self) -> dict[str, Synchronizer]:
        return dict(self._collections)

    def collection(self, name: str) -> Synchronizer:
        try:
            return self._collections[name]
        except KeyError:
            raise InvalidArgumentError(
                "Unknown collection",
                details={"name": name, "known": sorted(self._collections)},
            ) from None

    # ----------------------------
    # Lifecycle
    # ----------------------------
    def open(self, *, refresh: bool = True) -> None:
        """
        Load every cache synchronously; with refresh=True (and a running
        loop) each one also schedules its own background refresh.
        """
        warning = self.config_warning
        if warning:
            logger.warning("Remote disabled: %s", warning)

        for sync in self._collections.values():
            sync.initialize(refresh=refresh)
        for cache in self._aggregates():
            cache.initialize(refresh=refresh)

    async def load_data(self) -> dict[str, Any]:
        """
        Refresh every collection and aggregate concurrently.

        One failing refresh never blocks the others; the returned mapping
        holds each name's result (or the exception it raised).
        """
        names: list[str] = []
        calls = []
        for name, sync in self._collections.items():
            names.append(name)
            calls.append(sync.refresh())
        for cache in self._aggregates():
            if cache is self._flyers:
                continue
            names.append(cache.name)
            calls.append(cache.refresh())

        outcomes = await asyncio.gather(*calls, return_exceptions=True)
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("Failed to load %s: %s", name, outcome)
        return dict(zip(names, outcomes))

    async def drain(self) -> None:
        """Wait for all outstanding background refreshes and writes."""
        await asyncio.gather(
            *(sync.drain() for sync in self._collections.values()),
            *(cache.drain() for cache in self._aggregates()),
        )

    async def close(self) -> None:
        """Stop polling, flush pending writes and release HTTP sessions."""
        self.sheet_watcher.stop()
        await self.drain()
        self._gateway.close()
        if self._calendar_gateway is not self._gateway:
            self._calendar_gateway.close()

    # ----------------------------
    # Internals
    # ----------------------------
    def _make_sync(self, spec: CollectionSpec, gateway: RemoteGateway) -> Synchronizer:
        kwargs: dict[str, Any] = {}
        if spec is EVENTS:
            kwargs = {
                "decode": decode_event,
                "encode": encode_event,
                "prefer_local": event_conflicts,
                "resave": planning_checklist_lost,
            }
        elif spec in _MONTHLY:
            kwargs = {"decode": decode_month_entry}
        return Synchronizer(
            spec,
            self._store,
            gateway,
            tombstones=TombstoneSet(ttl_sec=self._config.tombstone_ttl_sec),
            **kwargs,
        )

    def _aggregates(self) -> tuple[AggregateCache, ...]:
        return (self.metrics, self.section_snapshots, self.quarterly.updates, self._flyers)


_MONTHLY: tuple[CollectionSpec, ...] = (NEWSLETTER, POSTING_SCHEDULE, PRESS_RELEASES)


def _default_store(config: SheetsConfig) -> KeyValueStore:
    if config.cache_dir:
        return JsonFileStore(config.cache_dir)
    return MemoryStore()
