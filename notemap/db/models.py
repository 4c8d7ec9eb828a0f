"""Dataclass models representing server-side rows.

These are plain Python objects, not ORM models.  Both storage engines
serialise / deserialise to and from these types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class User:
    id: int
    username: str
    password: str


@dataclass
class Note:
    id: int
    title: str
    content: str
    position: dict[str, float]
    color: Optional[str] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Tag:
    id: int
    name: str
    color: str
    user_id: Optional[int] = None


@dataclass
class Connection:
    id: int
    source_id: int
    target_id: int
    user_id: Optional[int] = None


@dataclass
class NoteTag:
    id: int
    note_id: int
    tag_id: int


@dataclass
class GraphPayload:
    notes: list[Note] = field(default_factory=list)
    connections: list[Connection] = field(default_factory=list)
