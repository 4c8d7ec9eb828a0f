"""Volatile in-process storage.

Each entity type lives in its own dict keyed by an integer id drawn from a
per-type counter seeded at 1.  Nothing survives a restart.
"""

from __future__ import annotations

import copy
import itertools
import logging
from dataclasses import replace
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
from notemap.db.models import Connection, Note, NoteTag, Tag, User
from notemap.errors import ErrorCode, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class MemStorage(NoteGraphStorage):
    """Dict-backed implementation of :class:`NoteGraphStorage`."""

    def __init__(self) -> None:
        super().__init__()
        self._users: dict[int, User] = {}
        self._notes: dict[int, Note] = {}
        self._tags: dict[int, Tag] = {}
        self._connections: dict[int, Connection] = {}
        self._note_tags: dict[int, NoteTag] = {}

        self._user_ids = itertools.count(1)
        self._note_ids = itertools.count(1)
        self._tag_ids = itertools.count(1)
        self._connection_ids = itertools.count(1)
        self._note_tag_ids = itertools.count(1)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_user(self, user_id: int) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return replace(user) if user else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            for user in self._users.values():
                if user.username == username:
                    return replace(user)
        return None

    def create_user(self, username: str, password: str) -> User:
        with self._lock:
            if self.get_user_by_username(username) is not None:
                raise ValidationError(
                    f"Username already exists: {username!r}", ErrorCode.USERNAME_TAKEN
                )
            user = User(id=next(self._user_ids), username=username, password=password)
            self._users[user.id] = user
            return replace(user)

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def list_notes(self, user_id: Optional[int] = None) -> list[Note]:
        with self._lock:
            return [
                copy.deepcopy(n) for n in self._notes.values()
                if user_id is None or n.user_id == user_id
            ]

    def get_note(self, note_id: int) -> Optional[Note]:
        with self._lock:
            note = self._notes.get(note_id)
            return copy.deepcopy(note) if note else None

    def create_note(
        self,
        title: str,
        content: str,
        position: Any,
        color: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Note:
        with self._lock:
            now = utcnow()
            note = Note(
                id=next(self._note_ids),
                title=title,
                content=content,
                position=normalise_position(position),
                color=color,
                user_id=user_id,
                created_at=now,
                updated_at=now,
            )
            self._notes[note.id] = note
            logger.debug("Created note %d", note.id)
            return copy.deepcopy(note)

    def update_note(self, note_id: int, **patch: Any) -> Optional[Note]:
        check_fields("Note", patch, NOTE_FIELDS)
        with self._lock:
            note = self._notes.get(note_id)
            if note is None:
                return None
            if "position" in patch:
                patch["position"] = normalise_position(patch["position"])
            updated = replace(note, **patch, updated_at=next_timestamp(note.updated_at))
            self._notes[note_id] = updated
            return copy.deepcopy(updated)

    def delete_note(self, note_id: int) -> bool:
        with self._lock:
            if self._notes.pop(note_id, None) is None:
                return False
            for cid in [
                cid for cid, c in self._connections.items()
                if c.source_id == note_id or c.target_id == note_id
            ]:
                del self._connections[cid]
            for ntid in [ntid for ntid, nt in self._note_tags.items() if nt.note_id == note_id]:
                del self._note_tags[ntid]
            logger.debug("Deleted note %d", note_id)
            return True

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def list_tags(self, user_id: Optional[int] = None) -> list[Tag]:
        with self._lock:
            return [
                replace(t) for t in self._tags.values()
                if user_id is None or t.user_id == user_id
            ]

    def get_tag(self, tag_id: int) -> Optional[Tag]:
        with self._lock:
            tag = self._tags.get(tag_id)
            return replace(tag) if tag else None

    def create_tag(self, name: str, color: str, user_id: Optional[int] = None) -> Tag:
        with self._lock:
            tag = Tag(id=next(self._tag_ids), name=name, color=color, user_id=user_id)
            self._tags[tag.id] = tag
            return replace(tag)

    def update_tag(self, tag_id: int, **patch: Any) -> Optional[Tag]:
        check_fields("Tag", patch, TAG_FIELDS)
        with self._lock:
            tag = self._tags.get(tag_id)
            if tag is None:
                return None
            updated = replace(tag, **patch)
            self._tags[tag_id] = updated
            return replace(updated)

    def delete_tag(self, tag_id: int) -> bool:
        with self._lock:
            if self._tags.pop(tag_id, None) is None:
                return False
            for ntid in [ntid for ntid, nt in self._note_tags.items() if nt.tag_id == tag_id]:
                del self._note_tags[ntid]
            return True

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def list_connections(self, user_id: Optional[int] = None) -> list[Connection]:
        with self._lock:
            return [
                replace(c) for c in self._connections.values()
                if user_id is None or c.user_id == user_id
            ]

    def get_connection(self, connection_id: int) -> Optional[Connection]:
        with self._lock:
            conn = self._connections.get(connection_id)
            return replace(conn) if conn else None

    def _require_notes(self, *note_ids: int) -> None:
        for note_id in note_ids:
            if note_id not in self._notes:
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
            conn = Connection(
                id=next(self._connection_ids),
                source_id=source_id,
                target_id=target_id,
                user_id=user_id,
            )
            self._connections[conn.id] = conn
            return replace(conn)

    def update_connection(self, connection_id: int, **patch: Any) -> Optional[Connection]:
        check_fields("Connection", patch, CONNECTION_FIELDS)
        with self._lock:
            conn = self._connections.get(connection_id)
            if conn is None:
                return None
            updated = replace(conn, **patch)
            reject_self_connection(updated.source_id, updated.target_id)
            self._require_notes(updated.source_id, updated.target_id)
            existing = self.find_connection(updated.source_id, updated.target_id)
            if existing is not None and existing.id != connection_id:
                raise ValidationError(
                    "Connection already exists", ErrorCode.DUPLICATE_CONNECTION
                )
            self._connections[connection_id] = updated
            return replace(updated)

    def delete_connection(self, connection_id: int) -> bool:
        with self._lock:
            return self._connections.pop(connection_id, None) is not None

    # ------------------------------------------------------------------
    # Note-tags
    # ------------------------------------------------------------------

    def list_note_tags(
        self,
        note_id: Optional[int] = None,
        tag_id: Optional[int] = None,
    ) -> list[NoteTag]:
        with self._lock:
            return [
                replace(nt) for nt in self._note_tags.values()
                if (note_id is None or nt.note_id == note_id)
                and (tag_id is None or nt.tag_id == tag_id)
            ]

    def create_note_tag(self, note_id: int, tag_id: int) -> NoteTag:
        with self._lock:
            self._require_notes(note_id)
            if tag_id not in self._tags:
                raise NotFoundError("Tag", tag_id)
            existing = self.list_note_tags(note_id=note_id, tag_id=tag_id)
            if existing:
                return existing[0]
            row = NoteTag(id=next(self._note_tag_ids), note_id=note_id, tag_id=tag_id)
            self._note_tags[row.id] = row
            return replace(row)

    def delete_note_tag(self, note_tag_id: int) -> bool:
        with self._lock:
            return self._note_tags.pop(note_tag_id, None) is not None
