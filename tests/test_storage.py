"""Storage engine tests.

Every test runs twice: once against the in-memory engine and once against
SQLite on an in-memory database, so both backends are held to the same
contract.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Generator

import pytest

from notemap.config import Settings
from notemap.db import MemStorage, NoteGraphStorage, SqliteStorage, create_storage, get_connection
from notemap.db.migrations import current_version
from notemap.db.models import Note
from notemap.errors import ErrorCode, NotFoundError, ValidationError


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(params=["memory", "sqlite"])
def storage(request) -> Generator[NoteGraphStorage, None, None]:
    if request.param == "memory":
        engine: NoteGraphStorage = MemStorage()
    else:
        engine = SqliteStorage(get_connection(":memory:"))
    yield engine
    engine.close()


def _note(storage: NoteGraphStorage, title: str = "A", x: float = 0, y: float = 0, **kw) -> Note:
    return storage.create_note(title=title, content=f"{title} body", position={"x": x, "y": y}, **kw)


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------

class TestNotes:
    def test_create_then_get_roundtrip(self, storage: NoteGraphStorage) -> None:
        note = _note(storage, "Hello", 3, 4, color="#10B981", user_id=1)
        fetched = storage.get_note(note.id)
        assert fetched == note
        assert fetched.position == {"x": 3, "y": 4}
        assert fetched.created_at == fetched.updated_at

    def test_ids_start_at_one_and_increment(self, storage: NoteGraphStorage) -> None:
        assert _note(storage, "a").id == 1
        assert _note(storage, "b").id == 2

    def test_ids_not_reused_after_delete(self, storage: NoteGraphStorage) -> None:
        first = _note(storage, "a")
        second = _note(storage, "b")
        storage.delete_note(second.id)
        third = _note(storage, "c")
        assert third.id not in (first.id, second.id)

    def test_get_missing_returns_none(self, storage: NoteGraphStorage) -> None:
        assert storage.get_note(999) is None

    def test_update_is_partial(self, storage: NoteGraphStorage) -> None:
        note = _note(storage, "Old", color="#fff")
        updated = storage.update_note(note.id, title="New")
        assert updated.title == "New"
        assert updated.content == note.content
        assert updated.color == "#fff"
        assert updated.position == note.position
        assert storage.get_note(note.id) == updated

    def test_update_refreshes_updated_at_strictly(self, storage: NoteGraphStorage) -> None:
        note = _note(storage)
        first = storage.update_note(note.id, position={"x": 1, "y": 1})
        second = storage.update_note(note.id, position={"x": 2, "y": 2})
        assert note.updated_at < first.updated_at < second.updated_at
        assert second.created_at == note.created_at

    def test_update_missing_is_not_an_upsert(self, storage: NoteGraphStorage) -> None:
        assert storage.update_note(42, title="x") is None
        assert storage.list_notes() == []

    def test_update_unknown_field_raises(self, storage: NoteGraphStorage) -> None:
        note = _note(storage)
        with pytest.raises(ValidationError, match="Cannot update field"):
            storage.update_note(note.id, nonexistent="x")

    def test_bad_position_raises(self, storage: NoteGraphStorage) -> None:
        with pytest.raises(ValidationError):
            storage.create_note(title="t", content="c", position={"x": "left"})

    def test_delete_reports_existence(self, storage: NoteGraphStorage) -> None:
        note = _note(storage)
        assert storage.delete_note(note.id) is True
        assert storage.get_note(note.id) is None
        assert storage.delete_note(note.id) is False

    def test_list_filters_by_user_in_insertion_order(self, storage: NoteGraphStorage) -> None:
        a = _note(storage, "a", user_id=1)
        _note(storage, "b", user_id=2)
        c = _note(storage, "c", user_id=1)
        assert [n.id for n in storage.list_notes(1)] == [a.id, c.id]
        assert len(storage.list_notes()) == 3

    def test_returned_values_are_copies(self, storage: NoteGraphStorage) -> None:
        note = _note(storage, x=5, y=5)
        note.position["x"] = 100
        note.title = "mutated"
        fetched = storage.get_note(note.id)
        assert fetched.position == {"x": 5, "y": 5}
        assert fetched.title == "A"


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------

class TestConnections:
    def test_create_connection(self, storage: NoteGraphStorage) -> None:
        a, b = _note(storage, "a"), _note(storage, "b")
        conn = storage.create_connection(a.id, b.id, user_id=1)
        assert conn is not None
        assert (conn.source_id, conn.target_id, conn.user_id) == (a.id, b.id, 1)
        assert storage.get_connection(conn.id) == conn

    def test_self_loop_is_noop(self, storage: NoteGraphStorage) -> None:
        a = _note(storage)
        assert storage.create_connection(a.id, a.id) is None
        assert storage.list_connections() == []

    def test_duplicate_pair_is_noop(self, storage: NoteGraphStorage) -> None:
        a, b = _note(storage, "a"), _note(storage, "b")
        storage.create_connection(a.id, b.id)
        assert storage.create_connection(a.id, b.id) is None
        assert len(storage.list_connections()) == 1

    def test_reverse_direction_allowed(self, storage: NoteGraphStorage) -> None:
        a, b = _note(storage, "a"), _note(storage, "b")
        storage.create_connection(a.id, b.id)
        assert storage.create_connection(b.id, a.id) is not None
        assert len(storage.list_connections()) == 2

    def test_missing_endpoint_raises(self, storage: NoteGraphStorage) -> None:
        a = _note(storage)
        with pytest.raises(NotFoundError) as info:
            storage.create_connection(a.id, 99)
        assert info.value.code is ErrorCode.NOTE_NOT_FOUND

    def test_update_connection_repoints(self, storage: NoteGraphStorage) -> None:
        a, b, c = _note(storage, "a"), _note(storage, "b"), _note(storage, "c")
        conn = storage.create_connection(a.id, b.id)
        updated = storage.update_connection(conn.id, target_id=c.id)
        assert (updated.source_id, updated.target_id) == (a.id, c.id)

    def test_update_connection_rejects_self_loop(self, storage: NoteGraphStorage) -> None:
        a, b = _note(storage, "a"), _note(storage, "b")
        conn = storage.create_connection(a.id, b.id)
        with pytest.raises(ValidationError) as info:
            storage.update_connection(conn.id, target_id=a.id)
        assert info.value.code is ErrorCode.SELF_CONNECTION

    def test_update_connection_rejects_duplicate(self, storage: NoteGraphStorage) -> None:
        a, b, c = _note(storage, "a"), _note(storage, "b"), _note(storage, "c")
        storage.create_connection(a.id, b.id)
        other = storage.create_connection(a.id, c.id)
        with pytest.raises(ValidationError) as info:
            storage.update_connection(other.id, target_id=b.id)
        assert info.value.code is ErrorCode.DUPLICATE_CONNECTION

    def test_update_missing_connection(self, storage: NoteGraphStorage) -> None:
        assert storage.update_connection(7, user_id=2) is None

    def test_delete_note_cascades_connections(self, storage: NoteGraphStorage) -> None:
        a = _note(storage, "A", 0, 0)
        b = _note(storage, "B", 10, 10)
        storage.create_connection(a.id, b.id)
        storage.delete_note(a.id)
        assert storage.list_connections() == []
        assert [n.id for n in storage.list_notes()] == [b.id]

    def test_connections_for_note(self, storage: NoteGraphStorage) -> None:
        a, b, c = _note(storage, "a"), _note(storage, "b"), _note(storage, "c")
        storage.create_connection(a.id, b.id)
        storage.create_connection(c.id, a.id)
        storage.create_connection(b.id, c.id)
        assert len(storage.connections_for_note(a.id)) == 2

    def test_graph_payload(self, storage: NoteGraphStorage) -> None:
        a, b = _note(storage, "a", user_id=1), _note(storage, "b", user_id=1)
        storage.create_connection(a.id, b.id, user_id=1)
        payload = storage.get_graph(1)
        assert len(payload.notes) == 2
        assert len(payload.connections) == 1


# ---------------------------------------------------------------------------
# Tags and note-tags
# ---------------------------------------------------------------------------

class TestTags:
    def test_tag_crud(self, storage: NoteGraphStorage) -> None:
        tag = storage.create_tag("Work", "#EC4899", user_id=1)
        assert storage.get_tag(tag.id) == tag
        updated = storage.update_tag(tag.id, color="#000000")
        assert updated.name == "Work"
        assert updated.color == "#000000"
        assert storage.delete_tag(tag.id) is True
        assert storage.get_tag(tag.id) is None
        assert storage.update_tag(tag.id, name="x") is None

    def test_names_are_not_unique(self, storage: NoteGraphStorage) -> None:
        storage.create_tag("Work", "#111111")
        storage.create_tag("work", "#222222")
        assert len(storage.list_tags()) == 2

    def test_find_tag_by_name_case_insensitive(self, storage: NoteGraphStorage) -> None:
        tag = storage.create_tag("Ideas", "#8B5CF6")
        assert storage.find_tag_by_name("  IDEAS ") == tag
        assert storage.find_tag_by_name("nope") is None

    def test_attach_tag(self, storage: NoteGraphStorage) -> None:
        note = _note(storage)
        work = storage.create_tag("Work", "#EC4899")
        ideas = storage.create_tag("Ideas", "#8B5CF6")
        storage.create_note_tag(note.id, work.id)
        storage.create_note_tag(note.id, ideas.id)
        assert [t.name for t in storage.tags_for_note(note.id)] == ["Work", "Ideas"]

    def test_attach_twice_returns_existing_row(self, storage: NoteGraphStorage) -> None:
        note = _note(storage)
        tag = storage.create_tag("Work", "#EC4899")
        first = storage.create_note_tag(note.id, tag.id)
        second = storage.create_note_tag(note.id, tag.id)
        assert first == second
        assert len(storage.list_note_tags(note_id=note.id)) == 1

    def test_attach_missing_tag_raises(self, storage: NoteGraphStorage) -> None:
        note = _note(storage)
        with pytest.raises(NotFoundError) as info:
            storage.create_note_tag(note.id, 5)
        assert info.value.code is ErrorCode.TAG_NOT_FOUND

    def test_attach_to_missing_note_raises(self, storage: NoteGraphStorage) -> None:
        tag = storage.create_tag("Work", "#EC4899")
        with pytest.raises(NotFoundError):
            storage.create_note_tag(5, tag.id)

    def test_delete_tag_cascades_note_tags(self, storage: NoteGraphStorage) -> None:
        note = _note(storage)
        tag = storage.create_tag("Work", "#EC4899")
        storage.create_note_tag(note.id, tag.id)
        storage.delete_tag(tag.id)
        assert storage.list_note_tags(tag_id=tag.id) == []
        assert storage.tags_for_note(note.id) == []

    def test_delete_note_cascades_note_tags(self, storage: NoteGraphStorage) -> None:
        note = _note(storage)
        tag = storage.create_tag("Work", "#EC4899")
        storage.create_note_tag(note.id, tag.id)
        storage.delete_note(note.id)
        assert storage.list_note_tags() == []
        assert storage.get_tag(tag.id) is not None

    def test_delete_note_tag(self, storage: NoteGraphStorage) -> None:
        note = _note(storage)
        tag = storage.create_tag("Work", "#EC4899")
        row = storage.create_note_tag(note.id, tag.id)
        assert storage.delete_note_tag(row.id) is True
        assert storage.delete_note_tag(row.id) is False


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class TestUsers:
    def test_create_and_lookup(self, storage: NoteGraphStorage) -> None:
        user = storage.create_user("ada", "secret")
        assert user.id == 1
        assert storage.get_user(user.id) == user
        assert storage.get_user_by_username("ada") == user
        assert storage.get_user_by_username("bob") is None

    def test_username_unique(self, storage: NoteGraphStorage) -> None:
        storage.create_user("ada", "secret")
        with pytest.raises(ValidationError) as info:
            storage.create_user("ada", "other")
        assert info.value.code is ErrorCode.USERNAME_TAKEN


# ---------------------------------------------------------------------------
# Concurrent access
# ---------------------------------------------------------------------------

class TestConcurrency:
    def test_reads_during_writes(self, storage: NoteGraphStorage) -> None:
        anchor = _note(storage, "anchor")
        for i in range(300):
            other = _note(storage, f"n{i}")
            storage.create_connection(anchor.id, other.id)

        def write() -> None:
            for i in range(150):
                note = _note(storage, f"w{i}")
                storage.create_connection(anchor.id, note.id)
                storage.delete_note(note.id)

        def read() -> int:
            seen = 0
            for _ in range(50):
                seen += len(storage.list_notes())
                seen += len(storage.list_connections())
                storage.find_connection(anchor.id, 2)
            return seen

        with ThreadPoolExecutor(max_workers=6) as pool:
            futures = [pool.submit(write) for _ in range(2)]
            futures += [pool.submit(read) for _ in range(4)]
            for future in futures:
                future.result()

        assert len(storage.list_notes()) == 301
        assert len(storage.list_connections()) == 300


# ---------------------------------------------------------------------------
# SQLite specifics / factory
# ---------------------------------------------------------------------------

class TestSqlite:
    def test_data_survives_reopen(self, tmp_path) -> None:
        path = tmp_path / "notes.db"
        first = SqliteStorage(get_connection(path))
        note = _note(first, "Durable")
        first.close()

        second = SqliteStorage(get_connection(path))
        try:
            assert second.get_note(note.id).title == "Durable"
        finally:
            second.close()

    def test_migrations_recorded(self) -> None:
        engine = SqliteStorage(get_connection(":memory:"))
        try:
            assert current_version(engine.conn) >= 1
        finally:
            engine.close()


class TestCreateStorage:
    def test_memory_backend(self) -> None:
        assert isinstance(create_storage(Settings(storage_backend="memory")), MemStorage)

    def test_sqlite_backend(self, tmp_path) -> None:
        engine = create_storage(Settings(storage_backend="sqlite", workspace_dir=tmp_path))
        try:
            assert isinstance(engine, SqliteStorage)
            assert (tmp_path / "notemap.db").exists()
        finally:
            engine.close()

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError, match="Unknown storage backend"):
            create_storage(Settings(storage_backend="postgres"))
