"""Local Store: synchronous key/value persistence of JSON values."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Any, Optional
from urllib.parse import quote

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """
    Base Local Store.

    read/write/clear never raise: a failed read is a cache miss and a failed
    write is dropped (the caller's in-memory state stays authoritative).
    Subclasses only move raw text.
    """

    @abstractmethod
    def _get_raw(self, key: str) -> Optional[str]:
        """Return stored text for key, or None if absent."""

    @abstractmethod
    def _set_raw(self, key: str, text: str) -> None:
        """Persist text under key."""

    @abstractmethod
    def _delete_raw(self, key: str) -> None:
        """Remove key if present."""

    def read(self, key: str) -> Any:
        try:
            raw = self._get_raw(key)
        except Exception as exc:
            logger.warning("Failed to read cache %r: %s", key, exc)
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            logger.warning("Ignoring corrupt cache %r: %s", key, exc)
            return None

    def write(self, key: str, value: Any) -> bool:
        """Persist value under key. Returns False when the write was dropped."""
        try:
            text = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            logger.warning("Failed to serialize cache %r: %s", key, exc)
            return False
        try:
            self._set_raw(key, text)
        except Exception as exc:
            logger.warning("Failed to write cache %r: %s", key, exc)
            return False
        return True

    def clear(self, key: str) -> None:
        try:
            self._delete_raw(key)
        except Exception as exc:
            logger.warning("Failed to clear cache %r: %s", key, exc)


class MemoryStore(KeyValueStore):
    """Process-local store (no durability)."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def _get_raw(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def _set_raw(self, key: str, text: str) -> None:
        self._data[key] = text

    def _delete_raw(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class JsonFileStore(KeyValueStore):
    """
    One JSON file per key under a directory.

    Writes go to a temp file in the same directory and are moved into place,
    so a crash mid-write leaves the previous envelope intact.
    """

    SUFFIX = ".json"

    def __init__(self, directory: str) -> None:
        if not directory or not isinstance(directory, str):
            raise ValueError("directory must be a non-empty string")
        self.directory = directory

    def path_for(self, key: str) -> str:
        return os.path.join(self.directory, quote(key, safe="") + self.SUFFIX)

    def _get_raw(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def _set_raw(self, key: str, text: str) -> None:
        os.makedirs(self.directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_path, self.path_for(key))
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def _delete_raw(self, key: str) -> None:
        path = self.path_for(key)
        if os.path.exists(path):
            os.remove(path)
