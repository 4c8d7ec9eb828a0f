"""Note commands."""

from typing import List, Optional

import typer

from notemap_cli.context import open_store, resolve_note, resolve_tag
from notemap_cli.rendering import render_note

note_app = typer.Typer(help="Create, edit and arrange notes.", no_args_is_help=True)

DEFAULT_COLOR = "#6366F1"


@note_app.command("add")
def note_add(
    title: str = typer.Argument("New Note", help="Note title."),
    content: str = typer.Option("Start typing here...", "--content", "-c", help="Note body."),
    x: float = typer.Option(0.0, "--x", help="Canvas x coordinate."),
    y: float = typer.Option(0.0, "--y", help="Canvas y coordinate."),
    color: str = typer.Option(DEFAULT_COLOR, "--color", help="Hex display color."),
    tags: Optional[List[str]] = typer.Option(None, "--tag", "-t", help="Tag name or id (repeatable)."),
) -> None:
    """Create a note."""
    store = open_store()
    tag_ids = [resolve_tag(store, t).id for t in tags or []]
    note = store.add_note(title, content, (x, y), tags=tag_ids, color=color)
    typer.echo(f"✅ Note created: {note.title} ({note.id})")


@note_app.command("list")
def note_list(
    tag: Optional[str] = typer.Option(None, "--tag", "-t", help="Only notes carrying this tag."),
) -> None:
    """List all notes."""
    store = open_store()
    notes = store.list_notes()
    if tag:
        tag_id = resolve_tag(store, tag).id
        notes = [n for n in notes if tag_id in n.tags]
    if not notes:
        typer.echo("No notes found.")
        return
    for n in notes:
        typer.echo(f"  {n.id}  {n.title!r}  ({n.position.x:g}, {n.position.y:g})")


@note_app.command("show")
def note_show(ref: str = typer.Argument(..., help="Note id, id prefix or title.")) -> None:
    """Print a note with its tags."""
    store = open_store()
    note = resolve_note(store, ref)
    typer.echo(render_note(note, store.tags_for(note.id)))


@note_app.command("edit")
def note_edit(
    ref: str = typer.Argument(..., help="Note id, id prefix or title."),
    title: Optional[str] = typer.Option(None, "--title", help="New title."),
    content: Optional[str] = typer.Option(None, "--content", "-c", help="New body."),
    color: Optional[str] = typer.Option(None, "--color", help="New hex color."),
) -> None:
    """Change a note's title, content or color."""
    store = open_store()
    note = resolve_note(store, ref)
    patch = {
        k: v for k, v in (("title", title), ("content", content), ("color", color))
        if v is not None
    }
    if not patch:
        typer.echo("Nothing to change. Pass --title, --content or --color.")
        raise typer.Exit(code=1)
    store.update_note(note.id, **patch)
    typer.echo(f"✅ Changes saved: {note.id}")


@note_app.command("move")
def note_move(
    ref: str = typer.Argument(..., help="Note id, id prefix or title."),
    x: float = typer.Argument(..., help="New x coordinate."),
    y: float = typer.Argument(..., help="New y coordinate."),
) -> None:
    """Move a note on the canvas."""
    store = open_store()
    note = resolve_note(store, ref)
    store.move_note(note.id, x, y)
    typer.echo(f"✅ Moved {note.title!r} to ({x:g}, {y:g})")


@note_app.command("rm")
def note_rm(ref: str = typer.Argument(..., help="Note id, id prefix or title.")) -> None:
    """Delete a note and its connections."""
    store = open_store()
    note = resolve_note(store, ref)
    store.delete_note(note.id)
    typer.echo(f"🗑️  Note deleted: {note.title}")


@note_app.command("tag")
def note_tag(
    ref: str = typer.Argument(..., help="Note id, id prefix or title."),
    tag: str = typer.Argument(..., help="Existing tag name or id."),
) -> None:
    """Attach an existing tag to a note."""
    store = open_store()
    note = resolve_note(store, ref)
    found = resolve_tag(store, tag)
    if found.id in note.tags:
        typer.echo(f"{note.title!r} already has #{found.name}.")
        return
    store.update_note(note.id, tags=[*note.tags, found.id])
    typer.echo(f"✅ Tagged {note.title!r} with #{found.name}")


@note_app.command("untag")
def note_untag(
    ref: str = typer.Argument(..., help="Note id, id prefix or title."),
    tag: str = typer.Argument(..., help="Tag name or id."),
) -> None:
    """Remove a tag from a note."""
    store = open_store()
    note = resolve_note(store, ref)
    found = resolve_tag(store, tag)
    store.update_note(note.id, tags=[t for t in note.tags if t != found.id])
    typer.echo(f"✅ Removed #{found.name} from {note.title!r}")
