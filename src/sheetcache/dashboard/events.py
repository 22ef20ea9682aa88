"""Event planning: events collection plus locally stored flyer images."""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from sheetcache.sync import AggregateCache, Synchronizer, WriteTicket

_JSON_CELLS: tuple[str, ...] = ("checklist", "planningChecklist")
_LOCAL_ONLY: tuple[str, ...] = ("flyerImage",)
# A row with none of these filled in is an empty line in the sheet.
_CONTENT_FIELDS: tuple[str, ...] = (
    "name",
    "date",
    "createdAt",
    "targetAttendance",
    "currentRSVPs",
    "notes",
    "planningNotes",
)


def decode_event(row: Mapping[str, Any]) -> Optional[dict[str, Any]]:
    """Sheet row -> event: checklist cells hold JSON text. Blank rows give None."""
    event = dict(row)
    for cell in _JSON_CELLS:
        value = event.get(cell)
        if isinstance(value, str):
            parsed = json.loads(value) if value.strip() else {}
            event[cell] = parsed if isinstance(parsed, dict) else {}
        elif value is None:
            event[cell] = {}
    event.setdefault("planningNotes", "")
    if not _has_content(event):
        return None
    return event


def event_conflicts(local: Mapping[str, Any], remote: Mapping[str, Any]) -> bool:
    """Local wins when a checklist or the planning notes differ; missing counts as empty."""
    for cell in _JSON_CELLS:
        if (local.get(cell) or {}) != (remote.get(cell) or {}):
            return True
    return (local.get("planningNotes") or "") != (remote.get("planningNotes") or "")


def planning_checklist_lost(local: Mapping[str, Any], remote: Mapping[str, Any]) -> bool:
    """True when the sheet row came back with an empty planning checklist we still hold."""
    return bool(local.get("planningChecklist")) and not remote.get("planningChecklist")


def _has_content(event: Mapping[str, Any]) -> bool:
    if any(str(event.get(field) or "").strip() for field in _CONTENT_FIELDS):
        return True
    return any(event.get(cell) for cell in _JSON_CELLS)


def encode_event(event: dict[str, Any]) -> dict[str, Any]:
    """Event -> sheet row (flyer images never leave the machine)."""
    row = {k: v for k, v in event.items() if k not in _LOCAL_ONLY}
    for cell in _JSON_CELLS:
        value = row.get(cell)
        if not isinstance(value, str):
            row[cell] = json.dumps(value or {})
    row["planningNotes"] = row.get("planningNotes") or ""
    return row


class EventPlanner:
    """Events with their planning checklists; flyers live in the Local Store only."""

    def __init__(self, events: Synchronizer, flyers: AggregateCache) -> None:
        self._events = events
        self._flyers = flyers

    @property
    def sync(self) -> Synchronizer:
        return self._events

    @property
    def items(self) -> list[dict[str, Any]]:
        flyers = self._flyers.value or {}
        return [{**event, "flyerImage": flyers.get(str(event.get("id")))} for event in self._events.items]

    def add(self, event: Mapping[str, Any]) -> WriteTicket:
        flyer = event.get("flyerImage")
        record = {k: v for k, v in event.items() if k not in _LOCAL_ONLY}
        ticket = self._events.add(record)
        if flyer:
            self.set_flyer(ticket.item_id, flyer)
        return ticket

    def update(self, event_id: str, patch: Mapping[str, Any]) -> Optional[WriteTicket]:
        return self._events.update(event_id, patch)

    def toggle_checklist(self, event_id: str, item_key: str, *, planning: bool = False) -> Optional[WriteTicket]:
        cell = "planningChecklist" if planning else "checklist"

        def flip(event: dict[str, Any]) -> dict[str, Any]:
            checklist = dict(event.get(cell) or {})
            checklist[item_key] = not bool(checklist.get(item_key))
            return {cell: checklist}

        return self._events.update(event_id, flip)

    def delete(self, event_id: str) -> WriteTicket:
        self.remove_flyer(event_id)
        return self._events.remove(event_id)

    def set_flyer(self, event_id: str, image: Any) -> None:
        if not event_id or not image:
            return
        flyers = self._flyers.value or {}
        flyers[str(event_id)] = image
        self._flyers.set(flyers)

    def remove_flyer(self, event_id: str) -> None:
        flyers = self._flyers.value or {}
        if flyers.pop(str(event_id), None) is not None:
            self._flyers.set(flyers)
