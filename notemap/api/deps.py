"""Small request helpers shared by the routers."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Optional

from fastapi import Request

from notemap.config import settings
from notemap.db.base import NoteGraphStorage


def storage_of(request: Request) -> NoteGraphStorage:
    """The storage engine opened by the app lifespan."""
    return request.app.state.storage


def scoped_user(user_id: Optional[int]) -> int:
    """No auth: fall back to the configured default user."""
    return settings.default_user_id if user_id is None else user_id


def row_dict(row: Any) -> dict[str, Any]:
    """Serialise a storage dataclass for a pydantic response model."""
    return asdict(row)
