"""Durable storage strategies for the client graph store.

A persistence object maps a string key to a JSON-compatible dict:

    persistence.save("happy-note-map-storage", {...})
    persistence.load("happy-note-map-storage")  # -> dict | None
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from notemap.errors import ErrorCode, InternalError

logger = logging.getLogger(__name__)


class Persistence(ABC):
    """Key/value store for the persisted slice of client state."""

    @abstractmethod
    def load(self, key: str) -> Optional[dict[str, Any]]:
        """Return the stored value, or ``None`` when nothing was saved."""

    @abstractmethod
    def save(self, key: str, value: dict[str, Any]) -> None:
        """Replace the stored value for *key*."""


class MemoryPersistence(Persistence):
    """Process-local persistence; handy for tests and throwaway stores."""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}

    def load(self, key: str) -> Optional[dict[str, Any]]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    def save(self, key: str, value: dict[str, Any]) -> None:
        self._data[key] = copy.deepcopy(value)


class JsonFilePersistence(Persistence):
    """One ``<key>.json`` file per key inside *directory*.

    Writes go to a temporary file first and are moved into place, so a crash
    mid-write leaves the previous snapshot intact.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def load(self, key: str) -> Optional[dict[str, Any]]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Ignoring corrupt store file %s", path)
            return None
        return data if isinstance(data, dict) else None

    def save(self, key: str, value: dict[str, Any]) -> None:
        path = self._path(key)
        try:
            text = json.dumps(value, indent=2)
        except (TypeError, ValueError) as exc:
            raise InternalError(
                f"Store state for {key!r} is not JSON serialisable: {exc}",
                ErrorCode.STORAGE_FAILED,
            ) from exc

        tmp = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
            os.replace(tmp, path)
        except OSError as exc:
            if tmp is not None and os.path.exists(tmp):
                os.unlink(tmp)
            raise InternalError(
                f"Could not write {path}", ErrorCode.STORAGE_FAILED
            ) from exc
