"""Server storage package.

Public re-exports so callers can write::

    from notemap.db import create_storage, MemStorage, SqliteStorage
"""

from __future__ import annotations

from typing import Optional

from notemap.config import Settings, settings as default_settings
from notemap.db.base import NoteGraphStorage
from notemap.db.connection import get_connection
from notemap.db.memory import MemStorage
from notemap.db.migrations import init_db
from notemap.db.sqlite import SqliteStorage

__all__ = [
    "NoteGraphStorage",
    "MemStorage",
    "SqliteStorage",
    "create_storage",
    "get_connection",
    "init_db",
]


def create_storage(config: Optional[Settings] = None) -> NoteGraphStorage:
    """Build the backend named by ``settings.storage_backend``."""
    config = config or default_settings
    backend = config.storage_backend.lower()
    if backend == "memory":
        return MemStorage()
    if backend == "sqlite":
        return SqliteStorage(get_connection(config.db_path))
    raise ValueError(f"Unknown storage backend: {config.storage_backend!r}")
