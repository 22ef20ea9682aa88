"""Fire-and-forget task bookkeeping and write tickets."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine, Optional, TypeVar

from sheetcache.errors import InvalidStateError
from sheetcache.models import WriteAction, WriteResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


def running_loop(owner: str) -> asyncio.AbstractEventLoop:
    """Return the running loop or raise InvalidStateError."""
    try:
        return asyncio.get_running_loop()
    except RuntimeError as exc:
        raise InvalidStateError(
            f"{owner} must be used from a running event loop",
            cause=exc,
        ) from exc


class BackgroundTasks:
    """Keeps strong references to spawned tasks until they finish."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def spawn(self, coro: Coroutine[Any, Any, T], *, name: Optional[str] = None) -> asyncio.Task[T]:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def __len__(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until every task (including ones spawned meanwhile) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel(self) -> None:
        for task in list(self._tasks):
            task.cancel()


class WriteTicket:
    """
    Handle for one optimistic remote write.

    status is "submitted" until the remote answers, then the WriteResult
    status ("confirmed", "failed" or "skipped").
    """

    def __init__(self, action: WriteAction, item_id: str, task: asyncio.Task[WriteResult]) -> None:
        self.action = action
        self.item_id = item_id
        self._task = task

    def __repr__(self) -> str:
        return f"WriteTicket(action={self.action!r}, item_id={self.item_id!r}, status={self.status!r})"

    @property
    def status(self) -> str:
        if not self._task.done():
            return "submitted"
        result = self.result()
        return result.status if result is not None else "failed"

    def done(self) -> bool:
        return self._task.done()

    def result(self) -> Optional[WriteResult]:
        if not self._task.done() or self._task.cancelled() or self._task.exception() is not None:
            return None
        return self._task.result()

    def add_done_callback(self, callback: Callable[[WriteResult], None]) -> None:
        """Call callback(result) once the write settles (not on cancellation)."""

        def _on_done(task: asyncio.Task[WriteResult]) -> None:
            if task.cancelled() or task.exception() is not None:
                return
            callback(task.result())

        self._task.add_done_callback(_on_done)

    async def wait(self) -> WriteResult:
        return await asyncio.shield(self._task)
