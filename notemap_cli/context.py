"""Store access and note lookup for CLI commands.

The CLI works on the client graph store persisted as JSON under
``settings.store_dir``.
"""

from __future__ import annotations

import typer

from notemap.config import settings
from notemap.store import JsonFilePersistence, NoteMapStore
from notemap.store.models import NoteData, TagData


def open_store() -> NoteMapStore:
    """Load the workspace store (seeded with demo notes on first use)."""
    return NoteMapStore(
        JsonFilePersistence(settings.store_dir),
        seed=settings.seed_demo,
    )


def resolve_note(store: NoteMapStore, ref: str) -> NoteData:
    """Find a note by exact id, unique id prefix, or case-insensitive title.

    Exits with code 1 when nothing (or more than one note) matches.
    """
    note = store.get_note(ref)
    if note is not None:
        return note

    notes = store.list_notes()
    matches = [n for n in notes if n.id.startswith(ref)]
    if not matches:
        matches = [n for n in notes if n.title.lower() == ref.lower()]

    if len(matches) == 1:
        return matches[0]
    if not matches:
        typer.echo(f"❌ No note matches {ref!r}.")
    else:
        typer.echo(f"❌ {ref!r} is ambiguous ({len(matches)} notes match). Use the id.")
    raise typer.Exit(code=1)


def resolve_tag(store: NoteMapStore, ref: str) -> TagData:
    """Find a tag by id or case-insensitive name; exit 1 if unknown."""
    tag = store.get_tag(ref) or store.find_tag_by_name(ref)
    if tag is None:
        typer.echo(f"❌ Tag not found: {ref!r}")
        raise typer.Exit(code=1)
    return tag
