"""Synchronizer: optimistic local collection reconciled with the remote sheet."""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from sheetcache.errors import SheetCacheError
from sheetcache.local import KeyValueStore
from sheetcache.models import CollectionSpec, RefreshResult, WriteAction, WriteResult
from sheetcache.remote import RemoteGateway
from sheetcache.util.ids import new_item_id

from .merge import Item, KeyFunc, PreferLocal, fields_differ, key_by_field, merge_collections
from .tasks import BackgroundTasks, WriteTicket, running_loop
from .tombstones import TombstoneSet

logger = logging.getLogger(__name__)

Patch = Union[Mapping[str, Any], Callable[[Item], Mapping[str, Any]]]
ChangeListener = Callable[[tuple[Item, ...]], None]
WriteListener = Callable[[WriteResult], None]


class Synchronizer:
    """
    One managed collection: Local Store first, remote refresh in the background.

    Lifecycle:
        - initialize(): load the cached envelope synchronously, then schedule
          refresh() on the running loop.
        - add/update/remove: mutate memory and the Local Store immediately,
          then send the remote write without waiting for it.
        - refresh(): merge a fresh remote read into the current state.

    decode/encode translate between sheet rows and local items (e.g., JSON
    strings in a cell); they apply to remote reads and upsert payloads only.
    decode may return None to drop a row. resave(local, remote) marks kept
    local items whose remote row lost data; they are upserted again after
    the merge.

    All methods must run on the event loop thread. Snapshots handed out by
    `items` / `get` are copies; mutate only through this class.
    """

    def __init__(
        self,
        collection: CollectionSpec,
        store: KeyValueStore,
        gateway: RemoteGateway,
        *,
        key_of: Optional[KeyFunc] = None,
        prefer_local: Optional[PreferLocal] = None,
        tombstones: Optional[TombstoneSet] = None,
        expire_tombstone_on_confirm: bool = False,
        decode: Optional[Callable[[Mapping[str, Any]], Optional[Item]]] = None,
        encode: Optional[Callable[[Item], Item]] = None,
        resave: Optional[PreferLocal] = None,
    ) -> None:
        self._collection = collection
        self._store = store
        self._gateway = gateway
        self._key_of = key_of or key_by_field(collection.id_field)
        self._prefer_local = prefer_local or fields_differ(collection.conflict_fields)
        self._tombstones = tombstones if tombstones is not None else TombstoneSet()
        self._expire_on_confirm = expire_tombstone_on_confirm
        self._decode = decode
        self._encode = encode
        self._resave = resave

        self._items: list[Item] = []
        self._initialized = False
        self._tasks = BackgroundTasks()
        self._change_listeners: list[ChangeListener] = []
        self._write_listeners: list[WriteListener] = []

    # ----------------------------
    # Read APIs
    # ----------------------------
    @property
    def collection(self) -> CollectionSpec:
        return self._collection

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def items(self) -> tuple[Item, ...]:
        """Read-only snapshot of the collection, in display order."""
        return tuple(copy.deepcopy(item) for item in self._items)

    @property
    def tombstones(self) -> TombstoneSet:
        return self._tombstones

    @property
    def pending_tasks(self) -> int:
        """Remote writes/refreshes still in flight."""
        return len(self._tasks)

    def get(self, item_id: str) -> Optional[Item]:
        index = self._index_of(str(item_id))
        return None if index is None else copy.deepcopy(self._items[index])

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return self._index_of(str(item_id)) is not None

    # ----------------------------
    # Listeners
    # ----------------------------
    def on_change(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a state-change listener. Returns an unsubscribe callable."""
        self._change_listeners.append(listener)
        return lambda: _remove(self._change_listeners, listener)

    def subscribe(self, listener: WriteListener) -> Callable[[], None]:
        """Register a listener for every settled remote write (confirmation channel)."""
        self._write_listeners.append(listener)
        return lambda: _remove(self._write_listeners, listener)

    # ----------------------------
    # Lifecycle
    # ----------------------------
    def initialize(self, *, refresh: bool = True) -> Optional[asyncio.Task[RefreshResult]]:
        """
        Load the cached collection (no network wait) and schedule a refresh.

        Returns:
            The scheduled refresh task, or None when refresh=False or when no
            event loop is running.
        """
        cached = self._store.read(self._collection.cache_key)
        if isinstance(cached, list):
            self._items = self._dedupe(item for item in cached if isinstance(item, Mapping))
        elif cached is not None:
            logger.warning(
                "Ignoring cached %s: expected a list, got %s",
                self._collection.name,
                type(cached).__name__,
            )
        self._initialized = True
        self._notify_change()

        if not refresh:
            return None
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop; %s refresh not scheduled", self._collection.name)
            return None
        return self._tasks.spawn(self.refresh(), name=f"refresh:{self._collection.name}")

    async def refresh(self) -> RefreshResult:
        """
        Merge a fresh remote read into the collection.

        On any failure (or when the remote is not configured) the collection
        and the Local Store are left untouched.
        """
        try:
            fetched = await self._gateway.list(self._collection)
        except SheetCacheError as exc:
            logger.error("Refresh of %s failed: %s", self._collection.name, exc)
            return RefreshResult(status="unchanged", fetch_status="failed", count=len(self._items))

        if not fetched.ok:
            logger.info(
                "Keeping cached %s (%s): %s",
                self._collection.name,
                fetched.status,
                fetched.error,
            )
            return RefreshResult(status="unchanged", fetch_status=fetched.status, count=len(self._items))

        self._tombstones.expire()
        rows = self._decoded(fetched.value)
        stale = self._stale_locals(rows)
        before = self._keys()
        self._items = merge_collections(
            self._items,
            rows,
            key_of=self._key_of,
            tombstones=self._tombstones,
            prefer_local=self._prefer_local,
        )
        after = self._keys()
        self._persist()
        self._notify_change()

        for item in stale:
            key = self._key_of(item)
            logger.info("Re-saving %s %r: remote row lost local data",
                        self._collection.name, key)
            payload = self._payload(item)
            self._submit("upsert", key, lambda p=payload: self._gateway.upsert(self._collection, p))

        return RefreshResult(
            status="merged",
            fetch_status="ok",
            count=len(self._items),
            added=len(after - before),
            dropped=len(before - after),
        )

    async def drain(self) -> None:
        """Wait for every outstanding remote call of this collection."""
        await self._tasks.drain()

    def close(self) -> None:
        """Cancel outstanding remote calls (local state is kept)."""
        self._tasks.cancel()

    # ----------------------------
    # Optimistic mutations
    # ----------------------------
    def add(self, item: Mapping[str, Any]) -> WriteTicket:
        """
        Append an item (assigning an id if it has none) and upsert it remotely.

        Adding an id that already exists replaces that item in place.
        """
        running_loop("Synchronizer.add")
        record: Item = copy.deepcopy(dict(item))
        key = self._key_of(record)
        if key is None:
            key = new_item_id()
            record[self._collection.id_field] = key

        self._tombstones.discard(key)
        index = self._index_of(key)
        if index is None:
            self._items.append(record)
        else:
            self._items[index] = record
        self._persist()
        self._notify_change()

        payload = self._payload(record)
        return self._submit("upsert", key, lambda: self._gateway.upsert(self._collection, payload))

    def update(self, item_id: str, patch: Patch) -> Optional[WriteTicket]:
        """
        Patch an existing item and upsert it remotely.

        patch is a mapping of fields, or a callable taking a copy of the
        current item and returning that mapping. Unknown ids are a no-op
        (returns None).
        """
        running_loop("Synchronizer.update")
        key = str(item_id)
        index = self._index_of(key)
        if index is None:
            logger.debug("Ignoring update of unknown %s id %r", self._collection.name, key)
            return None

        current = self._items[index]
        changes = patch(copy.deepcopy(current)) if callable(patch) else patch
        updated: Item = {**current, **copy.deepcopy(dict(changes))}
        updated[self._collection.id_field] = current[self._collection.id_field]
        self._items[index] = updated
        self._persist()
        self._notify_change()

        payload = self._payload(updated)
        return self._submit("upsert", key, lambda: self._gateway.upsert(self._collection, payload))

    def remove(self, item_id: str) -> WriteTicket:
        """
        Remove an item and delete it remotely.

        The id is tombstoned before the delete is sent, so a refresh that
        resolves in between cannot bring it back.
        """
        running_loop("Synchronizer.remove")
        key = str(item_id)
        self._tombstones.add(key)

        remote_id: Any = key
        index = self._index_of(key)
        if index is not None:
            remote_id = self._items[index].get(self._collection.id_field, key)
            del self._items[index]
            self._persist()
            self._notify_change()

        return self._submit("delete", key, lambda: self._gateway.delete(self._collection, remote_id))

    # ----------------------------
    # Internals
    # ----------------------------
    def _submit(
        self,
        action: WriteAction,
        key: str,
        call: Callable[[], Awaitable[WriteResult]],
    ) -> WriteTicket:
        task = self._tasks.spawn(
            self._run_write(action, key, call),
            name=f"{action}:{self._collection.name}:{key}",
        )
        return WriteTicket(action, key, task)

    async def _run_write(
        self,
        action: WriteAction,
        key: str,
        call: Callable[[], Awaitable[WriteResult]],
    ) -> WriteResult:
        try:
            result = await call()
        except SheetCacheError as exc:
            logger.error("Remote %s of %s %r failed: %s", action, self._collection.name, key, exc)
            result = WriteResult(status="failed", action=action, item_id=key, error=str(exc))

        if action == "delete" and result.confirmed and self._expire_on_confirm:
            self._tombstones.discard(key)

        for listener in list(self._write_listeners):
            try:
                listener(result)
            except Exception:
                logger.exception("Write listener failed for %s %r", self._collection.name, key)
        return result

    def _payload(self, item: Item) -> Item:
        payload = copy.deepcopy(item)
        return self._encode(payload) if self._encode else payload

    def _decoded(self, rows: list[Any]) -> list[Any]:
        if self._decode is None:
            return rows
        decoded: list[Any] = []
        for row in rows:
            if not isinstance(row, Mapping):
                decoded.append(row)
                continue
            try:
                item = self._decode(row)
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping undecodable %s row: %s", self._collection.name, exc)
                continue
            if item is not None:
                decoded.append(item)
        return decoded

    def _stale_locals(self, rows: list[Any]) -> list[Item]:
        if self._resave is None:
            return []
        stale: list[Item] = []
        for row in rows:
            if not isinstance(row, Mapping):
                continue
            key = self._key_of(row)
            if key is None or key in self._tombstones:
                continue
            index = self._index_of(key)
            if index is None:
                continue
            local = self._items[index]
            if self._prefer_local(local, row) and self._resave(local, row):
                stale.append(copy.deepcopy(local))
        return stale

    def _persist(self) -> None:
        if not self._store.write(self._collection.cache_key, self._items):
            logger.warning("%s kept in memory only; cache write failed", self._collection.name)

    def _notify_change(self) -> None:
        if not self._change_listeners:
            return
        snapshot = self.items
        for listener in list(self._change_listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Change listener failed for %s", self._collection.name)

    def _index_of(self, key: str) -> Optional[int]:
        for i, item in enumerate(self._items):
            if self._key_of(item) == key:
                return i
        return None

    def _keys(self) -> set[str]:
        return {k for k in (self._key_of(item) for item in self._items) if k is not None}

    def _dedupe(self, items: Any) -> list[Item]:
        result: list[Item] = []
        seen: set[str] = set()
        for item in items:
            key = self._key_of(item)
            if key is None or key in seen:
                continue
            seen.add(key)
            result.append(dict(item))
        return result


def _remove(listeners: list[Any], listener: Any) -> None:
    if listener in listeners:
        listeners.remove(listener)
