"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from qnote.config import Config
from qnote.db import Database, StorageError
from qnote.editor import EditorError
from qnote.note import Note

BASE_TIME = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeEditor:
    """Editor bridge stand-in returning queued drafts (or raising)."""

    def __init__(self):
        self.results: List = []
        self.edited: List[Note] = []

    def _next(self):
        result = self.results.pop(0) if self.results else None
        if isinstance(result, Exception):
            raise result
        return result

    def open_for_new(self):
        return self._next()

    def open_for_edit(self, note):
        self.edited.append(note)
        return self._next()


class FailingStorage:
    """Wraps a database and fails every write."""

    def __init__(self, db: Database):
        self.db = db

    def list_all(self):
        return self.db.list_all()

    def get(self, note_id):
        return self.db.get(note_id)

    def create(self, note):
        raise StorageError("disk I/O error")

    def update(self, note_id, title, content, tags):
        raise StorageError("disk I/O error")

    def delete(self, note_id):
        raise StorageError("disk I/O error")


def make_note(title: str, content: str = "", tags=(), minutes: int = 0, note_id=None) -> Note:
    created = BASE_TIME + timedelta(minutes=minutes)
    return Note(title, content, list(tags), created_at=created, updated_at=created, id=note_id)


@pytest.fixture
def db():
    """In-memory database."""
    database = Database(":memory:")
    yield database
    database.close()


@pytest.fixture
def corpus(db: Database) -> Database:
    """Database holding three notes; "Budget" is the most recently updated."""
    db.create(make_note("Groceries", "milk, eggs, bread", ["home"], minutes=0))
    db.create(make_note("Grocery list", "apples\n## Fruit\npears", ["home", "errands"], minutes=10))
    db.create(make_note("Budget", "Monthly spending", ["finance"], minutes=20))
    return db


@pytest.fixture
def config(tmp_path) -> Config:
    """Default config exporting into a temporary directory."""
    return Config.from_dict({"export": {"directory": str(tmp_path / "export")}})


@pytest.fixture
def fake_editor() -> FakeEditor:
    return FakeEditor()


@pytest.fixture
def editor_error() -> EditorError:
    return EditorError("Editor exited with status 1")
