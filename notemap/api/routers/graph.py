"""Whole-graph and liveness endpoints.

Routes
------
GET /api/graph    Every note and connection for the user (canvas payload)
GET /api/health   Liveness probe
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Query, Request

from notemap.api.deps import row_dict, scoped_user, storage_of
from notemap.api.schemas import GraphResponse

router = APIRouter()


@router.get("/graph", response_model=GraphResponse)
def full_graph(
    request: Request,
    user_id: Optional[int] = Query(None, alias="userId"),
) -> dict[str, Any]:
    """Return every note and connection for graph visualisation."""
    payload = storage_of(request).get_graph(scoped_user(user_id))
    return {
        "notes": [row_dict(n) for n in payload.notes],
        "connections": [row_dict(c) for c in payload.connections],
    }


@router.get("/health")
def health(request: Request) -> dict[str, str]:
    return {"status": "ok", "storage": type(storage_of(request)).__name__}
