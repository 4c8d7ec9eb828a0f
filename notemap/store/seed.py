"""Demo content a fresh store starts with."""

from __future__ import annotations

from notemap.store.models import ConnectionData, NoteData, Position, TagData


def default_tags() -> list[TagData]:
    return [
        TagData(id="tag-1", name="Ideas", color="#8B5CF6"),
        TagData(id="tag-2", name="Projects", color="#10B981"),
        TagData(id="tag-3", name="Personal", color="#F59E0B"),
        TagData(id="tag-4", name="Work", color="#EC4899"),
    ]


def initial_notes() -> list[NoteData]:
    return [
        NoteData(
            id="note-1",
            title="Project Ideas",
            content=(
                "Need to brainstorm on these potential projects:\n"
                "- Mobile app redesign\n- Blog revamp\n- New landing page"
            ),
            position=Position(150, 300),
            tags=["tag-1", "tag-3"],
            color="#8B5CF6",
        ),
        NoteData(
            id="note-2",
            title="Mobile App Redesign",
            content="Focus on improving the user experience and modernizing the visual design",
            position=Position(400, 150),
            tags=["tag-2"],
            color="#10B981",
        ),
        NoteData(
            id="note-3",
            title="Blog Revamp Ideas",
            content=(
                "The blog needs a fresh look with:\n"
                "- New content categories\n- Better typography\n- Improved code snippets"
            ),
            position=Position(500, 250),
            tags=["tag-2", "tag-4"],
            color="#10B981",
        ),
        NoteData(
            id="note-4",
            title="UI Inspiration",
            content="Check out these sites:\n- Dribbble\n- Behance\n- Awwwards",
            position=Position(520, 80),
            tags=["tag-1"],
            color="#8B5CF6",
        ),
    ]


def initial_connections() -> list[ConnectionData]:
    return [
        ConnectionData(id="conn-1", source="note-1", target="note-2"),
        ConnectionData(id="conn-2", source="note-2", target="note-4"),
        ConnectionData(id="conn-3", source="note-2", target="note-3"),
    ]
