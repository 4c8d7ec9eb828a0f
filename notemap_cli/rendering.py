"""Utilities for rendering the note graph in the CLI."""

from __future__ import annotations

from notemap.store.models import ConnectionData, NoteData, TagData


def render_tree(notes: list[NoteData], connections: list[ConnectionData]) -> str:
    """Render the note graph as an ASCII forest.

    Trees start at notes with no incoming connection.  A note reached a
    second time (multiple parents or a cycle) is printed once more as a
    ``↺`` back-reference and not expanded again.  Notes only reachable
    through a cycle are rendered as extra roots at the end.
    """
    node_map = {n.id: n for n in notes}
    adj: dict[str, list[str]] = {n.id: [] for n in notes}
    has_parent: set[str] = set()
    for c in connections:
        if c.source in node_map and c.target in node_map:
            adj[c.source].append(c.target)
            has_parent.add(c.target)

    lines: list[str] = []
    visited: set[str] = set()

    def _render(note_id: str, prefix: str, is_last: bool, is_root: bool) -> None:
        title = node_map[note_id].title
        connector = "" if is_root else ("└── " if is_last else "├── ")
        if note_id in visited:
            lines.append(f"{prefix}{connector}↺ {title}")
            return
        visited.add(note_id)
        lines.append(f"{prefix}{connector}{title}  ({note_id})")

        child_prefix = "  " if is_root else prefix + ("    " if is_last else "│   ")
        children = adj[note_id]
        for i, child_id in enumerate(children):
            _render(child_id, child_prefix, i == len(children) - 1, False)

    roots = [n.id for n in notes if n.id not in has_parent]
    for root in roots:
        _render(root, "", True, True)
    for n in notes:
        if n.id not in visited:
            _render(n.id, "", True, True)

    return "\n".join(lines)


def render_note(note: NoteData, tags: list[TagData]) -> str:
    """Multi-line detail view of a single note."""
    tag_names = ", ".join(f"#{t.name}" for t in tags) or "(none)"
    lines = [
        f"{note.title}  ({note.id})",
        f"  position: ({note.position.x:g}, {note.position.y:g})",
        f"  color:    {note.color or '(default)'}",
        f"  tags:     {tag_names}",
    ]
    if note.updated_at is not None:
        lines.append(f"  updated:  {note.updated_at.isoformat(timespec='seconds')}")
    lines.append("")
    lines.append(note.content)
    return "\n".join(lines)
