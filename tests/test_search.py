"""Tests for the free-text note filter."""

from __future__ import annotations

from notemap.db.models import Note
from notemap.search import filter_notes, matches
from notemap.store.models import NoteData, Position


def _notes() -> list[NoteData]:
    return [
        NoteData("note-1", "Groceries", "milk, eggs", Position()),
        NoteData("note-2", "Work", "Buy MILK for the office", Position()),
        NoteData("note-3", "Ideas", "nothing here", Position()),
    ]


class TestFilterNotes:
    def test_content_match_is_case_insensitive(self) -> None:
        assert [n.id for n in filter_notes(_notes(), "milk")] == ["note-1", "note-2"]

    def test_title_match(self) -> None:
        assert [n.id for n in filter_notes(_notes(), "IDEA")] == ["note-3"]

    def test_empty_query_returns_all_in_order(self) -> None:
        notes = _notes()
        assert filter_notes(notes, "") == notes

    def test_no_match(self) -> None:
        assert filter_notes(_notes(), "zebra") == []

    def test_does_not_mutate_input(self) -> None:
        notes = _notes()
        filter_notes(notes, "milk")
        assert len(notes) == 3

    def test_works_on_server_notes(self) -> None:
        rows = [
            Note(id=1, title="Roadmap", content="", position={"x": 0, "y": 0}),
            Note(id=2, title="Other", content="see roadmap", position={"x": 0, "y": 0}),
        ]
        assert [n.id for n in filter_notes(rows, "ROADMAP")] == [1, 2]


def test_matches_substring_in_middle() -> None:
    note = NoteData("note-1", "Weekly planning", "", Position())
    assert matches(note, "kly pl")
    assert not matches(note, "monthly")
