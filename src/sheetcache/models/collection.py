"""Description of one spreadsheet-backed collection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True, frozen=True)
class CollectionSpec:
    """
    Wire and cache names for one managed collection.

    Example (major todos):
        list:   GET  ?action=getMajorTodos        -> {"todos": [...]}
        upsert: POST {"action": "saveMajorTodo", "todo": {...}}
        delete: POST {"action": "deleteMajorTodo", "id": "..."}

    A collection without delete_action cannot be deleted remotely; a
    local remove is still tombstoned.
    """

    name: str
    cache_key: str
    list_action: str
    list_field: str
    upsert_action: Optional[str] = None
    upsert_field: Optional[str] = None
    delete_action: Optional[str] = None
    delete_id_field: str = "id"
    id_field: str = "id"
    conflict_fields: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for attr in ("name", "cache_key", "list_action", "list_field", "id_field"):
            value = getattr(self, attr)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"CollectionSpec.{attr} must be a non-empty string")
        if (self.upsert_action is None) != (self.upsert_field is None):
            raise ValueError("upsert_action and upsert_field must be set together")
