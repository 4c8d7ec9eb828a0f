"""Connection commands."""

from typing import Optional

import typer

from notemap_cli.context import open_store, resolve_note

link_app = typer.Typer(help="Connect notes with directed links.", no_args_is_help=True)


@link_app.command("add")
def link_add(
    source: str = typer.Argument(..., help="Source note id, id prefix or title."),
    target: str = typer.Argument(..., help="Target note id, id prefix or title."),
) -> None:
    """Connect SOURCE to TARGET."""
    store = open_store()
    src = resolve_note(store, source)
    tgt = resolve_note(store, target)
    conn = store.add_connection(src.id, tgt.id)
    if conn is None:
        if src.id == tgt.id:
            typer.echo("⚠️  A note cannot be connected to itself.")
        else:
            typer.echo(f"⚠️  Already connected: {src.title} --> {tgt.title}")
        return
    typer.echo(f"✅ Connected: {src.title} --> {tgt.title} ({conn.id})")


@link_app.command("list")
def link_list(
    note: Optional[str] = typer.Option(None, "--note", "-n", help="Only links touching this note."),
) -> None:
    """List connections."""
    store = open_store()
    if note:
        conns = store.connections_for(resolve_note(store, note).id)
    else:
        conns = store.list_connections()
    if not conns:
        typer.echo("No connections found.")
        return
    titles = {n.id: n.title for n in store.list_notes()}
    for c in conns:
        typer.echo(
            f"  {c.id}  {titles.get(c.source, c.source)} --> {titles.get(c.target, c.target)}"
        )


@link_app.command("rm")
def link_rm(connection_id: str = typer.Argument(..., help="Connection id.")) -> None:
    """Delete a connection."""
    store = open_store()
    if not store.delete_connection(connection_id):
        typer.echo(f"❌ Connection not found: {connection_id}")
        raise typer.Exit(code=1)
    typer.echo(f"🗑️  Connection deleted: {connection_id}")
