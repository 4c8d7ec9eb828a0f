"""Tag commands."""

import typer

from notemap_cli.context import open_store, resolve_tag

tag_app = typer.Typer(help="Manage colored tags.", no_args_is_help=True)


@tag_app.command("add")
def tag_add(
    name: str = typer.Argument(..., help="Tag name."),
    color: str = typer.Option("#8B5CF6", "--color", help="Hex color."),
) -> None:
    """Create a tag.  Refuses names that already exist (case-insensitive)."""
    store = open_store()
    existing = store.find_tag_by_name(name)
    if existing is not None:
        typer.echo(f"❌ Tag already exists: #{existing.name} ({existing.id})")
        raise typer.Exit(code=1)
    tag = store.add_tag(name, color)
    typer.echo(f"✅ Tag created: #{tag.name} ({tag.id})")


@tag_app.command("list")
def tag_list() -> None:
    """List tags with the number of notes carrying each."""
    store = open_store()
    tags = store.list_tags()
    if not tags:
        typer.echo("No tags found.")
        return
    notes = store.list_notes()
    for t in tags:
        count = sum(1 for n in notes if t.id in n.tags)
        typer.echo(f"  {t.id}  #{t.name}  {t.color}  [{count} notes]")


@tag_app.command("rm")
def tag_rm(ref: str = typer.Argument(..., help="Tag name or id.")) -> None:
    """Delete a tag and remove it from every note."""
    store = open_store()
    tag = resolve_tag(store, ref)
    store.delete_tag(tag.id)
    typer.echo(f"🗑️  Tag deleted: #{tag.name}")
