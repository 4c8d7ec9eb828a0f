"""Storage contract shared by every server-side backend.

Both :class:`~notemap.db.memory.MemStorage` and
:class:`~notemap.db.sqlite.SqliteStorage` implement this interface and are
run through the same contract tests.

Conventions
-----------
* ``get_*`` and ``update_*`` return ``None`` when the id is unknown;
  ``update_*`` never inserts.
* ``delete_*`` returns whether a row existed.
* ``list_*(user_id=None)`` returns every row; otherwise only the rows owned
  by that user.  Rows come back in insertion order.
* Deleting a note removes its connections and note-tag rows; deleting a
  tag removes its note-tag rows.
* Each instance owns a re-entrant lock; every public read and mutation
  holds it.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from notemap.db.models import Connection, GraphPayload, Note, NoteTag, Tag, User
from notemap.errors import ErrorCode, ValidationError

NOTE_FIELDS = frozenset({"title", "content", "position", "color", "user_id"})
TAG_FIELDS = frozenset({"name", "color", "user_id"})
CONNECTION_FIELDS = frozenset({"source_id", "target_id", "user_id"})


def check_fields(entity: str, patch: dict[str, Any], allowed: frozenset[str]) -> None:
    """Reject patch keys that are not updatable columns of *entity*."""
    for key in patch:
        if key not in allowed:
            raise ValidationError(f"Cannot update field {key!r} on {entity}")


def normalise_position(value: Any) -> dict[str, float]:
    """Coerce ``{x, y}`` mappings and ``(x, y)`` pairs into a plain dict."""
    if isinstance(value, dict):
        x, y = value.get("x"), value.get("y")
    else:
        try:
            x, y = value
        except (TypeError, ValueError) as exc:
            raise ValidationError("position must be {x, y}") from exc
    if not isinstance(x, (int, float)) or not isinstance(y, (int, float)):
        raise ValidationError("position must be {x, y}")
    return {"x": x, "y": y}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_timestamp(previous: Optional[datetime]) -> datetime:
    """Current time, nudged forward so it is strictly after *previous*."""
    now = utcnow()
    if previous is not None and now <= previous:
        now = previous + timedelta(microseconds=1)
    return now


def reject_self_connection(source_id: int, target_id: int) -> None:
    if source_id == target_id:
        raise ValidationError(
            "A connection cannot link a note to itself", ErrorCode.SELF_CONNECTION
        )


class NoteGraphStorage(ABC):
    """CRUD + query contract over users, notes, tags, connections and note-tags."""

    def __init__(self) -> None:
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    def create_user(self, username: str, password: str) -> User:
        """Insert a user.  Raises ``ValidationError`` if the username is taken."""

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    @abstractmethod
    def list_notes(self, user_id: Optional[int] = None) -> list[Note]: ...

    @abstractmethod
    def get_note(self, note_id: int) -> Optional[Note]: ...

    @abstractmethod
    def create_note(
        self,
        title: str,
        content: str,
        position: Any,
        color: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Note: ...

    @abstractmethod
    def update_note(self, note_id: int, **patch: Any) -> Optional[Note]: ...

    @abstractmethod
    def delete_note(self, note_id: int) -> bool: ...

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    @abstractmethod
    def list_tags(self, user_id: Optional[int] = None) -> list[Tag]: ...

    @abstractmethod
    def get_tag(self, tag_id: int) -> Optional[Tag]: ...

    @abstractmethod
    def create_tag(self, name: str, color: str, user_id: Optional[int] = None) -> Tag: ...

    @abstractmethod
    def update_tag(self, tag_id: int, **patch: Any) -> Optional[Tag]: ...

    @abstractmethod
    def delete_tag(self, tag_id: int) -> bool: ...

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    @abstractmethod
    def list_connections(self, user_id: Optional[int] = None) -> list[Connection]: ...

    @abstractmethod
    def get_connection(self, connection_id: int) -> Optional[Connection]: ...

    @abstractmethod
    def create_connection(
        self,
        source_id: int,
        target_id: int,
        user_id: Optional[int] = None,
    ) -> Optional[Connection]:
        """Connect two notes.

        Returns ``None`` for a self-loop or when the ordered pair already
        exists.  Raises ``NotFoundError`` if either note is missing.
        """

    @abstractmethod
    def update_connection(self, connection_id: int, **patch: Any) -> Optional[Connection]:
        """Re-point or re-own a connection.

        Raises ``ValidationError`` if the result would be a self-loop or a
        duplicate of another connection.
        """

    @abstractmethod
    def delete_connection(self, connection_id: int) -> bool: ...

    # ------------------------------------------------------------------
    # Note-tags
    # ------------------------------------------------------------------

    @abstractmethod
    def list_note_tags(
        self,
        note_id: Optional[int] = None,
        tag_id: Optional[int] = None,
    ) -> list[NoteTag]: ...

    @abstractmethod
    def create_note_tag(self, note_id: int, tag_id: int) -> NoteTag:
        """Attach a tag to a note; returns the existing row if already attached."""

    @abstractmethod
    def delete_note_tag(self, note_tag_id: int) -> bool: ...

    # ------------------------------------------------------------------
    # Derived queries
    # ------------------------------------------------------------------

    def find_connection(self, source_id: int, target_id: int) -> Optional[Connection]:
        """Return the connection with exactly this ordered pair, if any."""
        for conn in self.list_connections():
            if conn.source_id == source_id and conn.target_id == target_id:
                return conn
        return None

    def connections_for_note(self, note_id: int) -> list[Connection]:
        """Connections where *note_id* is the source or the target."""
        return [
            c for c in self.list_connections()
            if c.source_id == note_id or c.target_id == note_id
        ]

    def find_tag_by_name(self, name: str, user_id: Optional[int] = None) -> Optional[Tag]:
        """Case-insensitive name lookup.  Names are not unique; first wins."""
        wanted = name.strip().lower()
        for tag in self.list_tags(user_id):
            if tag.name.lower() == wanted:
                return tag
        return None

    def tags_for_note(self, note_id: int) -> list[Tag]:
        """Tags attached to a note, in attachment order."""
        tags = []
        with self._lock:
            for row in self.list_note_tags(note_id=note_id):
                tag = self.get_tag(row.tag_id)
                if tag is not None:
                    tags.append(tag)
        return tags

    def get_graph(self, user_id: Optional[int] = None) -> GraphPayload:
        """All notes and connections, for canvas rendering."""
        with self._lock:
            return GraphPayload(
                notes=self.list_notes(user_id),
                connections=self.list_connections(user_id),
            )

    def close(self) -> None:
        """Release any underlying resources."""
