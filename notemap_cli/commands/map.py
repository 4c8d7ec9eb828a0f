"""Command for visualising the note graph."""

import json

import typer

from notemap_cli.context import open_store
from notemap_cli.rendering import render_tree

map_app = typer.Typer(help="Visualise the note graph.", no_args_is_help=True)


@map_app.command("show")
def map_show(
    format: str = typer.Option("tree", "--format", help="Output format: tree | list | json"),
    query: str = typer.Option("", "--query", "-q", help="Only show notes matching this text."),
) -> None:
    """Display the note graph as an ASCII tree, a flat list, or node/edge JSON."""
    store = open_store()
    store.set_search_query(query)
    notes = store.filtered_notes()

    if format == "json":
        graph = store.graph()
        typer.echo(json.dumps({"nodes": graph.nodes, "edges": graph.edges}, indent=2))
        return

    if not notes:
        typer.echo("No notes to show.")
        return

    if format == "list":
        for n in notes:
            typer.echo(f"  {n.title} ({n.id})")
        return
    if format != "tree":
        typer.echo(f"Unknown format {format!r}. Use: tree | list | json")
        raise typer.Exit(code=1)

    visible = {n.id for n in notes}
    conns = [
        c for c in store.list_connections()
        if c.source in visible and c.target in visible
    ]
    typer.echo(render_tree(notes, conns))
