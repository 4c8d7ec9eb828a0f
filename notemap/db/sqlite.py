"""Durable storage on an embedded SQLite database.

Same contract as :class:`~notemap.db.memory.MemStorage`; cascades are
delegated to ``ON DELETE CASCADE`` foreign keys and ids come from
``AUTOINCREMENT`` so they are never reused, even across restarts.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from typing import Any, Optional

from notemap.db.base import (
    CONNECTION_FIELDS,
    NOTE_FIELDS,
    TAG_FIELDS,
    NoteGraphStorage,
    check_fields,
    next_timestamp,
    normalise_position,
    reject_self_connection,
    utcnow,
)
from notemap.db.connection import get_connection
from notemap.db.migrations import init_db
from notemap.db.models import Connection, Note, NoteTag, Tag, User
from notemap.errors import ErrorCode, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------

def _row_to_note(row: sqlite3.Row) -> Note:
    return Note(
        id=row["id"],
        title=row["title"],
        content=row["content"],
        position=json.loads(row["position"]),
        color=row["color"],
        user_id=row["user_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _row_to_tag(row: sqlite3.Row) -> Tag:
    return Tag(id=row["id"], name=row["name"], color=row["color"], user_id=row["user_id"])


def _row_to_connection(row: sqlite3.Row) -> Connection:
    return Connection(
        id=row["id"],
        source_id=row["source_id"],
        target_id=row["target_id"],
        user_id=row["user_id"],
    )


def _row_to_note_tag(row: sqlite3.Row) -> NoteTag:
    return NoteTag(id=row["id"], note_id=row["note_id"], tag_id=row["tag_id"])


def _row_to_user(row: sqlite3.Row) -> User:
    return User(id=row["id"], username=row["username"], password=row["password"])


def _owned(table: str, user_id: Optional[int]) -> tuple[str, tuple[Any, ...]]:
    if user_id is None:
        return f"SELECT * FROM {table} ORDER BY id", ()  # noqa: S608
    return f"SELECT * FROM {table} WHERE user_id = ? ORDER BY id", (user_id,)  # noqa: S608


class SqliteStorage(NoteGraphStorage):
    """SQLite-backed implementation of :class:`NoteGraphStorage`.

    Args:
        conn: An open connection.  When omitted, one is opened on
            ``settings.db_path``.  The schema is initialised either way.
    """

    def __init__(self, conn: Optional[sqlite3.Connection] = None) -> None:
        super().__init__()
        self.conn = conn or get_connection()
        init_db(self.conn)

    def close(self) -> None:
        self.conn.close()

    def _one(self, sql: str, params: tuple[Any, ...]) -> Optional[sqlite3.Row]:
        return self.conn.execute(sql, params).fetchone()

    def _all(self, sql: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        return self.conn.execute(sql, params).fetchall()

    def _update(self, table: str, row_id: int, updates: dict[str, Any]) -> None:
        set_clause = ", ".join(f"{col} = ?" for col in updates)
        with self.conn:
            self.conn.execute(
                f"UPDATE {table} SET {set_clause} WHERE id = ?",  # noqa: S608
                [*updates.values(), row_id],
            )

    def _delete(self, table: str, row_id: int) -> bool:
        with self.conn:
            cur = self.conn.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))  # noqa: S608
        return cur.rowcount > 0

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_user(self, user_id: int) -> Optional[User]:
        with self._lock:
            row = self._one("SELECT * FROM users WHERE id = ?", (user_id,))
        return _row_to_user(row) if row else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            row = self._one("SELECT * FROM users WHERE username = ?", (username,))
        return _row_to_user(row) if row else None

    def create_user(self, username: str, password: str) -> User:
        with self._lock:
            try:
                with self.conn:
                    cur = self.conn.execute(
                        "INSERT INTO users (username, password) VALUES (?, ?)",
                        (username, password),
                    )
            except sqlite3.IntegrityError as exc:
                raise ValidationError(
                    f"Username already exists: {username!r}", ErrorCode.USERNAME_TAKEN
                ) from exc
            return self.get_user(cur.lastrowid)  # type: ignore[arg-type,return-value]

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def list_notes(self, user_id: Optional[int] = None) -> list[Note]:
        with self._lock:
            return [_row_to_note(r) for r in self._all(*_owned("notes", user_id))]

    def get_note(self, note_id: int) -> Optional[Note]:
        with self._lock:
            row = self._one("SELECT * FROM notes WHERE id = ?", (note_id,))
        return _row_to_note(row) if row else None

    def create_note(
        self,
        title: str,
        content: str,
        position: Any,
        color: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Note:
        now = utcnow().isoformat()
        pos_json = json.dumps(normalise_position(position))
        with self._lock:
            with self.conn:
                cur = self.conn.execute(
                    """
                    INSERT INTO notes (title, content, position, color, user_id, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (title, content, pos_json, color, user_id, now, now),
                )
            logger.debug("Created note %d", cur.lastrowid)
            return self.get_note(cur.lastrowid)  # type: ignore[arg-type,return-value]

    def update_note(self, note_id: int, **patch: Any) -> Optional[Note]:
        check_fields("Note", patch, NOTE_FIELDS)
        with self._lock:
            note = self.get_note(note_id)
            if note is None:
                return None
            updates = dict(patch)
            if "position" in updates:
                updates["position"] = json.dumps(normalise_position(updates["position"]))
            updates["updated_at"] = next_timestamp(note.updated_at).isoformat()
            self._update("notes", note_id, updates)
            return self.get_note(note_id)

    def delete_note(self, note_id: int) -> bool:
        with self._lock:
            return self._delete("notes", note_id)

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def list_tags(self, user_id: Optional[int] = None) -> list[Tag]:
        with self._lock:
            return [_row_to_tag(r) for r in self._all(*_owned("tags", user_id))]

    def get_tag(self, tag_id: int) -> Optional[Tag]:
        with self._lock:
            row = self._one("SELECT * FROM tags WHERE id = ?", (tag_id,))
        return _row_to_tag(row) if row else None

    def create_tag(self, name: str, color: str, user_id: Optional[int] = None) -> Tag:
        with self._lock:
            with self.conn:
                cur = self.conn.execute(
                    "INSERT INTO tags (name, color, user_id) VALUES (?, ?, ?)",
                    (name, color, user_id),
                )
            return self.get_tag(cur.lastrowid)  # type: ignore[arg-type,return-value]

    def update_tag(self, tag_id: int, **patch: Any) -> Optional[Tag]:
        check_fields("Tag", patch, TAG_FIELDS)
        with self._lock:
            if self.get_tag(tag_id) is None:
                return None
            if patch:
                self._update("tags", tag_id, patch)
            return self.get_tag(tag_id)

    def delete_tag(self, tag_id: int) -> bool:
        with self._lock:
            return self._delete("tags", tag_id)

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def list_connections(self, user_id: Optional[int] = None) -> list[Connection]:
        with self._lock:
            return [_row_to_connection(r) for r in self._all(*_owned("connections", user_id))]

    def get_connection(self, connection_id: int) -> Optional[Connection]:
        with self._lock:
            row = self._one("SELECT * FROM connections WHERE id = ?", (connection_id,))
        return _row_to_connection(row) if row else None

    def find_connection(self, source_id: int, target_id: int) -> Optional[Connection]:
        with self._lock:
            row = self._one(
                "SELECT * FROM connections WHERE source_id = ? AND target_id = ?",
                (source_id, target_id),
            )
        return _row_to_connection(row) if row else None

    def _require_notes(self, *note_ids: int) -> None:
        for note_id in note_ids:
            if self._one("SELECT 1 FROM notes WHERE id = ?", (note_id,)) is None:
                raise NotFoundError("Note", note_id)

    def create_connection(
        self,
        source_id: int,
        target_id: int,
        user_id: Optional[int] = None,
    ) -> Optional[Connection]:
        with self._lock:
            if source_id == target_id:
                return None
            self._require_notes(source_id, target_id)
            if self.find_connection(source_id, target_id) is not None:
                return None
            with self.conn:
                cur = self.conn.execute(
                    "INSERT INTO connections (source_id, target_id, user_id) VALUES (?, ?, ?)",
                    (source_id, target_id, user_id),
                )
            return self.get_connection(cur.lastrowid)  # type: ignore[arg-type]

    def update_connection(self, connection_id: int, **patch: Any) -> Optional[Connection]:
        check_fields("Connection", patch, CONNECTION_FIELDS)
        with self._lock:
            conn = self.get_connection(connection_id)
            if conn is None:
                return None
            source_id = patch.get("source_id", conn.source_id)
            target_id = patch.get("target_id", conn.target_id)
            reject_self_connection(source_id, target_id)
            self._require_notes(source_id, target_id)
            existing = self.find_connection(source_id, target_id)
            if existing is not None and existing.id != connection_id:
                raise ValidationError(
                    "Connection already exists", ErrorCode.DUPLICATE_CONNECTION
                )
            if patch:
                self._update("connections", connection_id, patch)
            return self.get_connection(connection_id)

    def delete_connection(self, connection_id: int) -> bool:
        with self._lock:
            return self._delete("connections", connection_id)

    # ------------------------------------------------------------------
    # Note-tags
    # ------------------------------------------------------------------

    def list_note_tags(
        self,
        note_id: Optional[int] = None,
        tag_id: Optional[int] = None,
    ) -> list[NoteTag]:
        clauses, params = [], []
        if note_id is not None:
            clauses.append("note_id = ?")
            params.append(note_id)
        if tag_id is not None:
            clauses.append("tag_id = ?")
            params.append(tag_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._lock:
            rows = self._all(f"SELECT * FROM note_tags {where} ORDER BY id", tuple(params))  # noqa: S608
        return [_row_to_note_tag(r) for r in rows]

    def create_note_tag(self, note_id: int, tag_id: int) -> NoteTag:
        with self._lock:
            self._require_notes(note_id)
            if self.get_tag(tag_id) is None:
                raise NotFoundError("Tag", tag_id)
            existing = self.list_note_tags(note_id=note_id, tag_id=tag_id)
            if existing:
                return existing[0]
            with self.conn:
                cur = self.conn.execute(
                    "INSERT INTO note_tags (note_id, tag_id) VALUES (?, ?)",
                    (note_id, tag_id),
                )
            row = self._one("SELECT * FROM note_tags WHERE id = ?", (cur.lastrowid,))
            return _row_to_note_tag(row)  # type: ignore[arg-type]

    def delete_note_tag(self, note_tag_id: int) -> bool:
        with self._lock:
            return self._delete("note_tags", note_tag_id)
