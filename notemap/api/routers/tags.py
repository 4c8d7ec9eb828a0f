"""CRUD endpoints for tags.

Routes
------
GET    /api/tags            List tags (?userId=)
POST   /api/tags            Create a tag
GET    /api/tags/{tag_id}   Fetch a single tag
PUT    /api/tags/{tag_id}   Partial update
DELETE /api/tags/{tag_id}   Delete (note-tag links cascade)
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Query, Request, Response

from notemap.api.deps import row_dict, scoped_user, storage_of
from notemap.api.schemas import TagCreate, TagResponse, TagUpdate
from notemap.errors import NotFoundError

router = APIRouter()


@router.get("", response_model=list[TagResponse])
def list_all(
    request: Request,
    user_id: Optional[int] = Query(None, alias="userId"),
) -> list[dict[str, Any]]:
    return [row_dict(t) for t in storage_of(request).list_tags(scoped_user(user_id))]


@router.post("", response_model=TagResponse, status_code=201)
def create(body: TagCreate, request: Request) -> dict[str, Any]:
    tag = storage_of(request).create_tag(
        name=body.name, color=body.color, user_id=scoped_user(body.user_id)
    )
    return row_dict(tag)


@router.get("/{tag_id}", response_model=TagResponse)
def get_one(tag_id: int, request: Request) -> dict[str, Any]:
    tag = storage_of(request).get_tag(tag_id)
    if tag is None:
        raise NotFoundError("Tag", tag_id)
    return row_dict(tag)


@router.put("/{tag_id}", response_model=TagResponse)
def update(tag_id: int, body: TagUpdate, request: Request) -> dict[str, Any]:
    tag = storage_of(request).update_tag(tag_id, **body.model_dump(exclude_unset=True))
    if tag is None:
        raise NotFoundError("Tag", tag_id)
    return row_dict(tag)


@router.delete("/{tag_id}", status_code=204)
def remove(tag_id: int, request: Request) -> Response:
    """Delete a tag and detach it from every note."""
    if not storage_of(request).delete_tag(tag_id):
        raise NotFoundError("Tag", tag_id)
    return Response(status_code=204)
