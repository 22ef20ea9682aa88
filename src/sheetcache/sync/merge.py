"""Merge rule for local and remote collection snapshots."""

from __future__ import annotations

import logging
from typing import Any, Callable, Container, Iterable, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

Item = dict[str, Any]
KeyFunc = Callable[[Mapping[str, Any]], Optional[str]]
PreferLocal = Callable[[Mapping[str, Any], Mapping[str, Any]], bool]


def key_by_field(field: str) -> KeyFunc:
    """Identifier extractor: str(item[field]), or None when missing/blank."""

    def key_of(item: Mapping[str, Any]) -> Optional[str]:
        value = item.get(field)
        if value is None:
            return None
        key = str(value)
        return key if key.strip() else None

    return key_of


def fields_differ(fields: Sequence[str]) -> PreferLocal:
    """Conflict check: local wins when any of the given fields differ."""
    names = tuple(fields)

    def prefer_local(local: Mapping[str, Any], remote: Mapping[str, Any]) -> bool:
        return any(local.get(name) != remote.get(name) for name in names)

    return prefer_local


def merge_collections(
    local: Sequence[Item],
    remote: Iterable[Item],
    *,
    key_of: KeyFunc,
    tombstones: Container[str],
    prefer_local: PreferLocal,
) -> list[Item]:
    """
    Combine local state and a fresh remote read.

    Rules:
        1. Remote items whose id is tombstoned are discarded.
        2. Ids in both: the local item is kept whole when prefer_local says so,
           otherwise the remote item.
        3. Remote-only ids are included.
        4. Local-only ids (not tombstoned) are kept.
        5. Order: remote order first, then local-only items in local order.

    Items without an id cannot be matched and are skipped; duplicate ids keep
    the first occurrence.
    """
    local_by_key: dict[str, Item] = {}
    for item in local:
        key = key_of(item)
        if key is not None and key not in local_by_key:
            local_by_key[key] = item

    merged: list[Item] = []
    seen: set[str] = set()
    for item in remote:
        if not isinstance(item, Mapping):
            logger.debug("Skipping non-object remote item: %r", item)
            continue
        key = key_of(item)
        if key is None:
            logger.debug("Skipping remote item without id: %r", item)
            continue
        if key in seen or key in tombstones:
            continue
        seen.add(key)

        local_item = local_by_key.get(key)
        if local_item is not None and prefer_local(local_item, item):
            merged.append(local_item)
        else:
            merged.append(dict(item))

    for key, item in local_by_key.items():
        if key not in seen and key not in tombstones:
            merged.append(item)

    return merged
