"""Ids deleted locally that a stale remote read must not bring back."""

from __future__ import annotations

import time
from typing import Callable, Iterator, Optional


class TombstoneSet:
    """
    Set of deleted ids.

    With ttl_sec=None (the default) entries live for the whole session: a
    delete can never be undone by a stale read, at the cost of unbounded
    growth. With a TTL, entries older than ttl_sec are dropped lazily.
    """

    def __init__(
        self,
        *,
        ttl_sec: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_sec is not None and ttl_sec <= 0:
            raise ValueError("ttl_sec must be positive when set")
        self._ttl_sec = ttl_sec
        self._clock = clock
        self._added_at: dict[str, float] = {}

    def add(self, item_id: str) -> None:
        self._added_at[item_id] = self._clock()

    def discard(self, item_id: str) -> None:
        self._added_at.pop(item_id, None)

    def expire(self) -> int:
        """Drop entries past their TTL. Returns the number dropped."""
        if self._ttl_sec is None:
            return 0
        cutoff = self._clock() - self._ttl_sec
        stale = [k for k, t in self._added_at.items() if t <= cutoff]
        for k in stale:
            del self._added_at[k]
        return len(stale)

    def __contains__(self, item_id: object) -> bool:
        if item_id not in self._added_at:
            return False
        if self._ttl_sec is None:
            return True
        return self._added_at[item_id] > self._clock() - self._ttl_sec  # type: ignore[index]

    def __len__(self) -> int:
        return len(self._added_at)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._added_at))
