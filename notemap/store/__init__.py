"""Client graph store package.

Public re-exports so callers can write::

    from notemap.store import NoteMapStore, JsonFilePersistence
"""

from notemap.store.ids import SequentialIds, prefixed_id
from notemap.store.persistence import JsonFilePersistence, MemoryPersistence, Persistence
from notemap.store.store import STORAGE_KEY, NoteMapStore

__all__ = [
    "NoteMapStore",
    "STORAGE_KEY",
    "Persistence",
    "JsonFilePersistence",
    "MemoryPersistence",
    "SequentialIds",
    "prefixed_id",
]
