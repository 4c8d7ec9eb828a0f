"""Client graph store.

Holds notes, tags and connections together with the transient UI state of a
canvas session (selection, editing pointer, viewport, search query, toast).
Every mutation of the persisted slice is written through the injected
:class:`~notemap.store.persistence.Persistence` before the call returns.

Usage::

    from notemap.store import NoteMapStore, JsonFilePersistence

    store = NoteMapStore(JsonFilePersistence(settings.store_dir))
    a = store.add_note("A", "first", (0, 0))
    b = store.add_note("B", "second", (10, 10))
    store.add_connection(a.id, b.id)
    store.graph()  # nodes + edges for rendering
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Iterator, Optional

from notemap.errors import ErrorCode, InternalError, NotFoundError, ValidationError
from notemap.search import filter_notes
from notemap.store import seed
from notemap.store.ids import CONNECTION_PREFIX, NOTE_PREFIX, TAG_PREFIX, prefixed_id
from notemap.store.models import (
    CanvasState,
    ConnectionData,
    GraphView,
    NoteData,
    Position,
    TagData,
    Toast,
)
from notemap.store.persistence import MemoryPersistence, Persistence

logger = logging.getLogger(__name__)

STORAGE_KEY = "happy-note-map-storage"
DEFAULT_THEME = "light"
TOAST_TTL = timedelta(seconds=3)
_ID_ATTEMPTS = 100

_NOTE_FIELDS = {"title", "content", "position", "tags", "color"}
_TAG_FIELDS = {"name", "color"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NoteMapStore:
    """In-process note graph with write-through persistence.

    Args:
        persistence: Where the persisted slice lives.  Defaults to an
            in-memory backend.
        id_factory: ``(prefix) -> str`` used for new note/tag/connection ids.
        clock: Returns the current aware datetime; injected for tests.
        seed: Start from the demo notes when nothing has been persisted yet.
    """

    def __init__(
        self,
        persistence: Optional[Persistence] = None,
        id_factory: Callable[[str], str] = prefixed_id,
        clock: Callable[[], datetime] = _utcnow,
        seed: bool = False,
    ) -> None:
        self._persistence = persistence or MemoryPersistence()
        self._new_id = id_factory
        self._clock = clock

        self._notes: dict[str, NoteData] = {}
        self._tags: dict[str, TagData] = {}
        self._connections: dict[str, ConnectionData] = {}
        self.theme = DEFAULT_THEME

        self.selected_note: Optional[str] = None
        self.editing_note: Optional[str] = None
        self.canvas_state = CanvasState()
        self.search_query = ""
        self._toast: Optional[Toast] = None

        self._hydrate(seed)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _hydrate(self, use_seed: bool) -> None:
        saved = self._persistence.load(STORAGE_KEY)
        if saved is not None:
            self._notes = {n["id"]: NoteData.from_dict(n) for n in saved.get("notes", [])}
            self._tags = {t["id"]: TagData.from_dict(t) for t in saved.get("tags", [])}
            self._connections = {
                c["id"]: ConnectionData.from_dict(c) for c in saved.get("connections", [])
            }
            self.theme = saved.get("theme", DEFAULT_THEME)
            logger.debug(
                "Loaded %d notes, %d tags, %d connections",
                len(self._notes), len(self._tags), len(self._connections),
            )
        elif use_seed:
            self._notes = {n.id: n for n in seed.initial_notes()}
            self._tags = {t.id: t for t in seed.default_tags()}
            self._connections = {c.id: c for c in seed.initial_connections()}

    def snapshot(self) -> dict[str, Any]:
        """The persisted slice of state as a JSON-compatible dict."""
        return {
            "notes": [n.to_dict() for n in self._notes.values()],
            "connections": [c.to_dict() for c in self._connections.values()],
            "tags": [t.to_dict() for t in self._tags.values()],
            "theme": self.theme,
        }

    def _commit(self) -> None:
        self._persistence.save(STORAGE_KEY, self.snapshot())

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """Apply a mutation and persist it, restoring the previous state if saving fails."""
        saved = (
            copy.deepcopy(self._notes),
            copy.deepcopy(self._tags),
            copy.deepcopy(self._connections),
            self.theme,
        )
        try:
            yield
            self._commit()
        except Exception:
            self._notes, self._tags, self._connections, self.theme = saved
            raise

    def _fresh_id(self, prefix: str, taken: dict[str, Any]) -> str:
        for _ in range(_ID_ATTEMPTS):
            candidate = self._new_id(prefix)
            if candidate not in taken:
                return candidate
        raise InternalError(
            f"Could not allocate an unused {prefix} id", ErrorCode.INTERNAL
        )

    def _touch(self, previous: Optional[datetime]) -> datetime:
        now = self._clock()
        if previous is not None and now <= previous:
            now = previous + timedelta(microseconds=1)
        return now

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def list_notes(self) -> list[NoteData]:
        return [copy.deepcopy(n) for n in self._notes.values()]

    def get_note(self, note_id: str) -> Optional[NoteData]:
        note = self._notes.get(note_id)
        return copy.deepcopy(note) if note else None

    def add_note(
        self,
        title: str,
        content: str,
        position: Any = (0, 0),
        tags: Optional[Iterable[str]] = None,
        color: Optional[str] = None,
    ) -> NoteData:
        """Create a note and return it."""
        now = self._clock()
        note = NoteData(
            id=self._fresh_id(NOTE_PREFIX, self._notes),
            title=title,
            content=content,
            position=Position.from_value(position),
            tags=list(tags or []),
            color=color,
            created_at=now,
            updated_at=now,
        )
        with self._transaction():
            self._notes[note.id] = note
        logger.debug("Added note %s", note.id)
        return copy.deepcopy(note)

    def update_note(self, note_id: str, **patch: Any) -> Optional[NoteData]:
        """Merge *patch* into a note.  Returns ``None`` if the note is absent.

        Allowed keys: ``title``, ``content``, ``position``, ``tags``, ``color``.
        ``updated_at`` is always refreshed.
        """
        unknown = set(patch) - _NOTE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update field {sorted(unknown)[0]!r}")

        note = self._notes.get(note_id)
        if note is None:
            return None

        changes = {}
        for key, value in patch.items():
            if key == "position":
                value = Position.from_value(value)
            elif key == "tags":
                value = list(value or [])
            changes[key] = value
        updated = replace(note, **changes, updated_at=self._touch(note.updated_at))
        with self._transaction():
            self._notes[note_id] = updated
        return copy.deepcopy(updated)

    def move_note(self, note_id: str, x: float, y: float) -> Optional[NoteData]:
        """Drag-stop handler: last write wins."""
        return self.update_note(note_id, position=Position(x, y))

    def delete_note(self, note_id: str) -> bool:
        """Delete a note, its connections, and any UI pointer at it."""
        if note_id not in self._notes:
            return False

        dropped = [
            cid for cid, c in self._connections.items()
            if c.source == note_id or c.target == note_id
        ]
        with self._transaction():
            del self._notes[note_id]
            for cid in dropped:
                del self._connections[cid]

        if self.selected_note == note_id:
            self.selected_note = None
        if self.editing_note == note_id:
            self.editing_note = None

        logger.debug("Deleted note %s (cascaded %d connections)", note_id, len(dropped))
        return True

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def list_tags(self) -> list[TagData]:
        return [copy.deepcopy(t) for t in self._tags.values()]

    def get_tag(self, tag_id: str) -> Optional[TagData]:
        tag = self._tags.get(tag_id)
        return copy.deepcopy(tag) if tag else None

    def find_tag_by_name(self, name: str) -> Optional[TagData]:
        """Case-insensitive name lookup; first match in insertion order."""
        wanted = name.strip().lower()
        for tag in self._tags.values():
            if tag.name.lower() == wanted:
                return copy.deepcopy(tag)
        return None

    def add_tag(self, name: str, color: str) -> TagData:
        tag = TagData(id=self._fresh_id(TAG_PREFIX, self._tags), name=name, color=color)
        with self._transaction():
            self._tags[tag.id] = tag
        return copy.deepcopy(tag)

    def update_tag(self, tag_id: str, **patch: Any) -> Optional[TagData]:
        unknown = set(patch) - _TAG_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update field {sorted(unknown)[0]!r}")
        tag = self._tags.get(tag_id)
        if tag is None:
            return None
        updated = replace(tag, **patch)
        with self._transaction():
            self._tags[tag_id] = updated
        return copy.deepcopy(updated)

    def delete_tag(self, tag_id: str) -> bool:
        """Delete a tag and strip it from every note carrying it."""
        if tag_id not in self._tags:
            return False
        with self._transaction():
            del self._tags[tag_id]
            for note in self._notes.values():
                if tag_id in note.tags:
                    note.tags = [t for t in note.tags if t != tag_id]
        return True

    def tags_for(self, note_id: str) -> list[TagData]:
        """Tag objects for a note, in the note's order, skipping unknown ids."""
        note = self._notes.get(note_id)
        if note is None:
            return []
        return [copy.deepcopy(self._tags[t]) for t in note.tags if t in self._tags]

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def list_connections(self) -> list[ConnectionData]:
        return [copy.deepcopy(c) for c in self._connections.values()]

    def get_connection(self, connection_id: str) -> Optional[ConnectionData]:
        conn = self._connections.get(connection_id)
        return copy.deepcopy(conn) if conn else None

    def connections_for(self, note_id: str) -> list[ConnectionData]:
        """Connections where *note_id* is the source or the target."""
        return [
            copy.deepcopy(c) for c in self._connections.values()
            if c.source == note_id or c.target == note_id
        ]

    def add_connection(self, source: str, target: str) -> Optional[ConnectionData]:
        """Connect *source* to *target*.

        Returns ``None`` without error for a self-loop or when the same
        ordered pair already exists.  The reverse direction is a distinct
        connection.
        """
        if source == target:
            logger.debug("Ignoring self-connection on %s", source)
            return None
        for missing in (source, target):
            if missing not in self._notes:
                raise NotFoundError("Note", missing)
        if any(c.source == source and c.target == target for c in self._connections.values()):
            logger.debug("Ignoring duplicate connection %s -> %s", source, target)
            return None

        conn = ConnectionData(
            id=self._fresh_id(CONNECTION_PREFIX, self._connections),
            source=source,
            target=target,
        )
        with self._transaction():
            self._connections[conn.id] = conn
        self.show_toast("Connection created!", "Your notes are now connected.")
        return copy.deepcopy(conn)

    def delete_connection(self, connection_id: str) -> bool:
        if connection_id not in self._connections:
            return False
        with self._transaction():
            del self._connections[connection_id]
        return True

    # ------------------------------------------------------------------
    # UI state (never persisted, except theme)
    # ------------------------------------------------------------------

    def select_note(self, note_id: Optional[str]) -> None:
        self.selected_note = note_id

    def set_editing_note(self, note_id: Optional[str]) -> None:
        self.editing_note = note_id

    def update_canvas_state(
        self,
        position: Any = None,
        scale: Optional[float] = None,
    ) -> CanvasState:
        """Merge a viewport change into the canvas state."""
        if position is not None:
            self.canvas_state.position = Position.from_value(position)
        if scale is not None:
            self.canvas_state.scale = scale
        return copy.deepcopy(self.canvas_state)

    def set_search_query(self, query: str) -> None:
        self.search_query = query

    def set_theme(self, theme: str) -> None:
        with self._transaction():
            self.theme = theme

    @property
    def toast(self) -> Optional[Toast]:
        """The current toast, or ``None`` once it has been up for ``TOAST_TTL``."""
        toast = self._toast
        if toast is not None and toast.shown_at is not None:
            if self._clock() - toast.shown_at >= TOAST_TTL:
                self._toast = None
        return self._toast

    def show_toast(self, title: str, message: str) -> None:
        self._toast = Toast(title, message, shown_at=self._clock())

    def clear_toast(self) -> None:
        self._toast = None

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def filtered_notes(self, query: Optional[str] = None) -> list[NoteData]:
        """Notes matching *query* (defaults to the current search query)."""
        q = self.search_query if query is None else query
        return filter_notes(self.list_notes(), q)

    def graph(self) -> GraphView:
        """Nodes for notes passing the search filter, edges for every connection."""
        nodes = []
        for note in self.filtered_notes():
            data = note.to_dict()
            data["isSelected"] = note.id == self.selected_note
            nodes.append({
                "id": note.id,
                "type": "noteNode",
                "position": note.position.to_dict(),
                "data": data,
            })
        edges = [
            {"id": c.id, "source": c.source, "target": c.target, "type": "smoothstep"}
            for c in self._connections.values()
        ]
        return GraphView(nodes=nodes, edges=edges)
