"""Public sync exports for sheetcache."""

from __future__ import annotations

from .aggregate import AggregateCache
from .merge import fields_differ, key_by_field, merge_collections
from .synchronizer import Synchronizer
from .tasks import WriteTicket
from .tombstones import TombstoneSet

__all__ = [
    "Synchronizer",
    "AggregateCache",
    "TombstoneSet",
    "WriteTicket",
    "merge_collections",
    "key_by_field",
    "fields_differ",
]
