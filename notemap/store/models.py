"""Dataclass models held by the client graph store.

Plain Python objects; the store serialises them to and from the JSON shape
written by the persistence layer (camelCase keys, ISO-8601 timestamps).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_value(cls, value: Any) -> Position:
        """Accept a :class:`Position`, a ``{x, y}`` mapping or an ``(x, y)`` pair."""
        if isinstance(value, Position):
            return cls(value.x, value.y)
        if isinstance(value, dict):
            return cls(value.get("x", 0), value.get("y", 0))
        x, y = value
        return cls(x, y)


@dataclass
class CanvasState:
    position: Position = field(default_factory=Position)
    scale: float = 1.0


@dataclass
class NoteData:
    id: str
    title: str
    content: str
    position: Position
    tags: list[str] = field(default_factory=list)
    color: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "position": self.position.to_dict(),
            "tags": list(self.tags),
        }
        if self.color is not None:
            data["color"] = self.color
        if self.created_at is not None:
            data["createdAt"] = self.created_at.isoformat()
        if self.updated_at is not None:
            data["updatedAt"] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> NoteData:
        return cls(
            id=raw["id"],
            title=raw.get("title", ""),
            content=raw.get("content", ""),
            position=Position.from_value(raw.get("position") or {}),
            tags=list(raw.get("tags") or []),
            color=raw.get("color"),
            created_at=_parse_dt(raw.get("createdAt")),
            updated_at=_parse_dt(raw.get("updatedAt")),
        )


@dataclass
class TagData:
    id: str
    name: str
    color: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> TagData:
        return cls(id=raw["id"], name=raw.get("name", ""), color=raw.get("color", ""))


@dataclass
class ConnectionData:
    id: str
    source: str
    target: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "source": self.source, "target": self.target}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ConnectionData:
        return cls(id=raw["id"], source=raw["source"], target=raw["target"])


@dataclass
class Toast:
    title: str
    message: str
    shown_at: Optional[datetime] = None


@dataclass
class GraphView:
    """Node/edge lists in the shape a diagramming component consumes."""

    nodes: list[dict[str, Any]] = field(default_factory=list)
    edges: list[dict[str, Any]] = field(default_factory=list)


def _parse_dt(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)
