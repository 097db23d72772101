"""Tests for TutorialRepository."""

from __future__ import annotations

from tutorial_stack.core.orm import stack_session_factory
from tutorial_stack.core.orm.tables import TutorialTable
from tutorial_stack.core.repository import TutorialRepository, new_tutorial_id


class TestNewTutorialId:
    def test_hex_and_unique(self):
        a, b = new_tutorial_id(), new_tutorial_id()
        assert len(a) == 32
        int(a, 16)
        assert a != b


class TestTutorialRepository:
    def test_create_populates_defaults(self, session):
        repo = TutorialRepository(session)
        row = repo.create(title="Intro")
        assert isinstance(row, TutorialTable)
        assert row.id
        assert row.description == ""
        assert row.published is False
        assert row.created_at is not None

    def test_get_and_count(self, session):
        repo = TutorialRepository(session)
        row = repo.create(title="Intro")
        assert repo.get(row.id) is row
        assert repo.get("missing") is None
        assert repo.count() == 1

    def test_search_is_case_insensitive_substring(self, session):
        repo = TutorialRepository(session)
        repo.create(title="Intro to SQL")
        repo.create(title="Advanced sql joins")
        repo.create(title="Python basics")
        titles = {r.title for r in repo.search_title("SQL")}
        assert titles == {"Intro to SQL", "Advanced sql joins"}

    def test_search_escapes_wildcards(self, session):
        repo = TutorialRepository(session)
        repo.create(title="100% coverage")
        repo.create(title="1000 tests")
        assert [r.title for r in repo.search_title("0%")] == ["100% coverage"]
        assert [r.title for r in repo.search_title("_")] == []

    def test_list_published(self, session):
        repo = TutorialRepository(session)
        repo.create(title="draft")
        repo.create(title="live", published=True)
        assert [r.title for r in repo.list_published()] == ["live"]

    def test_update_ignores_unknown_fields(self, session):
        repo = TutorialRepository(session)
        row = repo.create(title="old")
        original_id = row.id
        updated = repo.update(row.id, {"title": "new", "id": "hijack"})
        assert updated is not None
        assert updated.title == "new"
        assert updated.id == original_id

    def test_update_missing_returns_none(self, session):
        assert TutorialRepository(session).update("missing", {"title": "x"}) is None

    def test_delete(self, session):
        repo = TutorialRepository(session)
        row = repo.create(title="gone soon")
        assert repo.delete(row.id) is True
        assert repo.delete(row.id) is False
        assert repo.count() == 0

    def test_delete_all_returns_count(self, session):
        repo = TutorialRepository(session)
        for i in range(3):
            repo.create(title=f"t{i}")
        assert repo.delete_all() == 3
        assert repo.list_all() == []

    def test_timestamps_stay_utc_after_reload(self, engine, session):
        row = TutorialRepository(session).create(title="Intro")
        session.commit()
        with stack_session_factory(engine)() as other:
            reloaded = TutorialRepository(other).get(row.id)
        assert reloaded.created_at.tzinfo is not None
        assert reloaded.created_at == row.created_at
