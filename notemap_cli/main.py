"""notemap CLI: entry-point for working with the note graph.

Usage:
    notemap --help

Command groups:
    note      create, edit, move and tag notes
    tag       manage tags
    link      connect notes
    map       visualise the graph
    db        server database maintenance
"""

from __future__ import annotations

from typing import Optional

import typer

from notemap.config import settings
from notemap.logging_setup import configure_logging
from notemap_cli.commands.link import link_app
from notemap_cli.commands.map import map_app
from notemap_cli.commands.note import note_app
from notemap_cli.commands.tag import tag_app
from notemap_cli.context import open_store

app = typer.Typer(
    name="notemap",
    help="Visual note-mapping from the command line.",
    no_args_is_help=True,
)
app.add_typer(note_app, name="note")
app.add_typer(tag_app, name="tag")
app.add_typer(link_app, name="link")
app.add_typer(map_app, name="map")

db_app = typer.Typer(help="Server database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level (default: NOTEMAP_LOG_LEVEL or INFO)."
    ),
) -> None:
    configure_logging(log_level or settings.log_level)


@app.command("search")
def search(query: str = typer.Argument(..., help="Text to look for in titles and content.")) -> None:
    """List notes whose title or content contains QUERY (case-insensitive)."""
    store = open_store()
    results = store.filtered_notes(query)
    if not results:
        typer.echo(f"No results for {query!r}.")
        return
    for n in results:
        typer.echo(f"  {n.id}  {n.title!r}")


@app.command("theme")
def theme(name: Optional[str] = typer.Argument(None, help="Theme to switch to.")) -> None:
    """Show or set the canvas theme."""
    store = open_store()
    if name is None:
        typer.echo(store.theme)
        return
    store.set_theme(name)
    typer.echo(f"🎨 Theme set to {name!r}")


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address."),
    port: Optional[int] = typer.Option(None, help="Bind port."),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes."),
) -> None:
    """Run the REST API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "notemap.api:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables if they do not exist)."""
    from notemap.db import SqliteStorage, get_connection

    storage = SqliteStorage(get_connection(settings.db_path))
    storage.close()
    typer.echo(f"[db init] Database ready at {settings.db_path}")


if __name__ == "__main__":
    app()
