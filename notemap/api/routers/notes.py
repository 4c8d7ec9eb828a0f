"""CRUD endpoints for notes and their tags.

Routes
------
GET    /api/notes                          List notes (?userId=, ?q= search)
POST   /api/notes                          Create a note
GET    /api/notes/{note_id}                Fetch a single note
PUT    /api/notes/{note_id}                Partial update
DELETE /api/notes/{note_id}                Delete (connections + note-tags cascade)
GET    /api/notes/{note_id}/connections    Connections touching the note
GET    /api/notes/{note_id}/tags           Tags attached to the note
POST   /api/notes/{note_id}/tags           Attach a tag ({"tagId": ...})
DELETE /api/notes/{note_id}/tags/{tag_id}  Detach a tag
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Query, Request, Response

from notemap.api.deps import row_dict, scoped_user, storage_of
from notemap.api.schemas import (
    ConnectionResponse,
    NoteCreate,
    NoteResponse,
    NoteTagCreate,
    NoteUpdate,
    TagResponse,
)
from notemap.errors import NotFoundError
from notemap.search import filter_notes

router = APIRouter()


@router.get("", response_model=list[NoteResponse])
def list_all(
    request: Request,
    user_id: Optional[int] = Query(None, alias="userId"),
    q: str = "",
) -> list[dict[str, Any]]:
    """Return the user's notes, optionally narrowed by a search query."""
    notes = storage_of(request).list_notes(scoped_user(user_id))
    return [row_dict(n) for n in filter_notes(notes, q)]


@router.post("", response_model=NoteResponse, status_code=201)
def create(body: NoteCreate, request: Request) -> dict[str, Any]:
    """Create a new note."""
    note = storage_of(request).create_note(
        title=body.title,
        content=body.content,
        position=body.position.model_dump(),
        color=body.color,
        user_id=scoped_user(body.user_id),
    )
    return row_dict(note)


@router.get("/{note_id}", response_model=NoteResponse)
def get_one(note_id: int, request: Request) -> dict[str, Any]:
    """Fetch a single note by id."""
    note = storage_of(request).get_note(note_id)
    if note is None:
        raise NotFoundError("Note", note_id)
    return row_dict(note)


@router.put("/{note_id}", response_model=NoteResponse)
def update(note_id: int, body: NoteUpdate, request: Request) -> dict[str, Any]:
    """Merge the provided fields into a note."""
    updates = body.model_dump(exclude_unset=True)
    note = storage_of(request).update_note(note_id, **updates)
    if note is None:
        raise NotFoundError("Note", note_id)
    return row_dict(note)


@router.delete("/{note_id}", status_code=204)
def remove(note_id: int, request: Request) -> Response:
    """Delete a note along with its connections and tag links."""
    if not storage_of(request).delete_note(note_id):
        raise NotFoundError("Note", note_id)
    return Response(status_code=204)


@router.get("/{note_id}/connections", response_model=list[ConnectionResponse])
def note_connections(note_id: int, request: Request) -> list[dict[str, Any]]:
    """Return every connection where the note is source or target."""
    return [row_dict(c) for c in storage_of(request).connections_for_note(note_id)]


@router.get("/{note_id}/tags", response_model=list[TagResponse])
def note_tags(note_id: int, request: Request) -> list[dict[str, Any]]:
    """Return the tags attached to a note."""
    return [row_dict(t) for t in storage_of(request).tags_for_note(note_id)]


@router.post("/{note_id}/tags", response_model=TagResponse, status_code=201)
def attach_tag(note_id: int, body: NoteTagCreate, request: Request) -> dict[str, Any]:
    """Attach an existing tag to a note and return the tag."""
    storage = storage_of(request)
    row = storage.create_note_tag(note_id, body.tag_id)
    tag = storage.get_tag(row.tag_id)
    if tag is None:
        raise NotFoundError("Tag", body.tag_id)
    return row_dict(tag)


@router.delete("/{note_id}/tags/{tag_id}", status_code=204)
def detach_tag(note_id: int, tag_id: int, request: Request) -> Response:
    """Remove a tag from a note."""
    storage = storage_of(request)
    rows = storage.list_note_tags(note_id=note_id, tag_id=tag_id)
    if not rows:
        raise NotFoundError("NoteTag", {"noteId": note_id, "tagId": tag_id})
    for row in rows:
        storage.delete_note_tag(row.id)
    return Response(status_code=204)
