"""Pydantic request/response schemas for the HTTP layer.

Wire format is camelCase (``userId``, ``sourceId``, ``createdAt``...);
snake_case field names are accepted on input as well.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PositionModel(CamelModel):
    x: float
    y: float


def _reject_nulls(model: BaseModel, fields: tuple[str, ...]) -> None:
    for name in fields:
        if name in model.model_fields_set and getattr(model, name) is None:
            raise ValueError(f"{name} cannot be null")


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------

class NoteCreate(CamelModel):
    title: str
    content: str
    position: PositionModel
    color: Optional[str] = None
    user_id: Optional[int] = None


class NoteUpdate(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None
    position: Optional[PositionModel] = None
    color: Optional[str] = None
    user_id: Optional[int] = None

    @model_validator(mode="after")
    def _required_fields_not_null(self) -> NoteUpdate:
        _reject_nulls(self, ("title", "content", "position"))
        return self


class NoteResponse(CamelModel):
    id: int
    title: str
    content: str
    position: PositionModel
    color: Optional[str] = None
    user_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------

class TagCreate(CamelModel):
    name: str
    color: str
    user_id: Optional[int] = None


class TagUpdate(CamelModel):
    name: Optional[str] = None
    color: Optional[str] = None
    user_id: Optional[int] = None

    @model_validator(mode="after")
    def _required_fields_not_null(self) -> TagUpdate:
        _reject_nulls(self, ("name", "color"))
        return self


class TagResponse(CamelModel):
    id: int
    name: str
    color: str
    user_id: Optional[int] = None


class NoteTagCreate(CamelModel):
    tag_id: int


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------

class ConnectionCreate(CamelModel):
    source_id: int
    target_id: int
    user_id: Optional[int] = None

    @model_validator(mode="after")
    def _no_self_loop(self) -> ConnectionCreate:
        if self.source_id == self.target_id:
            raise ValueError("a connection cannot link a note to itself")
        return self


class ConnectionUpdate(CamelModel):
    source_id: Optional[int] = None
    target_id: Optional[int] = None
    user_id: Optional[int] = None

    @model_validator(mode="after")
    def _required_fields_not_null(self) -> ConnectionUpdate:
        _reject_nulls(self, ("source_id", "target_id"))
        return self


class ConnectionResponse(CamelModel):
    id: int
    source_id: int
    target_id: int
    user_id: Optional[int] = None


class GraphResponse(CamelModel):
    notes: list[NoteResponse]
    connections: list[ConnectionResponse]
