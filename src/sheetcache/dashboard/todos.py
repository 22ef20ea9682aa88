"""Major todos: a thin layer over the todos Synchronizer."""

from __future__ import annotations

from typing import Optional

from sheetcache.errors import InvalidArgumentError
from sheetcache.sync import Synchronizer, WriteTicket
from sheetcache.util.ids import new_item_id
from sheetcache.util.time import now_rfc3339


class MajorTodos:
    """Add, toggle and delete dashboard todos (done is the conflict field)."""

    def __init__(self, sync: Synchronizer) -> None:
        self._sync = sync

    @property
    def sync(self) -> Synchronizer:
        return self._sync

    @property
    def items(self) -> tuple[dict, ...]:
        return self._sync.items

    def add(self, text: str) -> WriteTicket:
        if not isinstance(text, str) or not text.strip():
            raise InvalidArgumentError("todo text must be a non-empty string")
        todo = {
            "id": new_item_id(),
            "text": text.strip(),
            "done": False,
            "createdAt": now_rfc3339(),
            "completedAt": "",
        }
        return self._sync.add(todo)

    def toggle(self, todo_id: str) -> Optional[WriteTicket]:
        def flip(todo: dict) -> dict:
            done = not bool(todo.get("done"))
            return {"done": done, "completedAt": now_rfc3339() if done else ""}

        return self._sync.update(todo_id, flip)

    def delete(self, todo_id: str) -> WriteTicket:
        return self._sync.remove(todo_id)
