"""CRUD endpoints for directed note connections.

Routes
------
GET    /api/connections                  List connections (?userId=)
POST   /api/connections                  Connect two notes
GET    /api/connections/{connection_id}  Fetch a single connection
PUT    /api/connections/{connection_id}  Re-point a connection
DELETE /api/connections/{connection_id}  Delete a connection

Posting an ordered pair that already exists returns the existing
connection with status 200 instead of creating a duplicate.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Query, Request, Response

from notemap.api.deps import row_dict, scoped_user, storage_of
from notemap.api.schemas import ConnectionCreate, ConnectionResponse, ConnectionUpdate
from notemap.errors import NotFoundError

router = APIRouter()


@router.get("", response_model=list[ConnectionResponse])
def list_all(
    request: Request,
    user_id: Optional[int] = Query(None, alias="userId"),
) -> list[dict[str, Any]]:
    return [row_dict(c) for c in storage_of(request).list_connections(scoped_user(user_id))]


@router.post("", response_model=ConnectionResponse, status_code=201)
def create(body: ConnectionCreate, request: Request, response: Response) -> dict[str, Any]:
    storage = storage_of(request)
    conn = storage.create_connection(
        body.source_id, body.target_id, user_id=scoped_user(body.user_id)
    )
    if conn is None:
        conn = storage.find_connection(body.source_id, body.target_id)
        response.status_code = 200
    return row_dict(conn)


@router.get("/{connection_id}", response_model=ConnectionResponse)
def get_one(connection_id: int, request: Request) -> dict[str, Any]:
    conn = storage_of(request).get_connection(connection_id)
    if conn is None:
        raise NotFoundError("Connection", connection_id)
    return row_dict(conn)


@router.put("/{connection_id}", response_model=ConnectionResponse)
def update(connection_id: int, body: ConnectionUpdate, request: Request) -> dict[str, Any]:
    conn = storage_of(request).update_connection(
        connection_id, **body.model_dump(exclude_unset=True)
    )
    if conn is None:
        raise NotFoundError("Connection", connection_id)
    return row_dict(conn)


@router.delete("/{connection_id}", status_code=204)
def remove(connection_id: int, request: Request) -> Response:
    if not storage_of(request).delete_connection(connection_id):
        raise NotFoundError("Connection", connection_id)
    return Response(status_code=204)
