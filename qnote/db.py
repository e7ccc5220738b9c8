"""
SQLite storage for notes.

Schema::

    notes(id INTEGER PRIMARY KEY AUTOINCREMENT,
          title TEXT, content TEXT,
          tags TEXT,          -- JSON array of strings
          created_at TEXT,    -- RFC 3339
          updated_at TEXT)    -- RFC 3339
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .note import Note, clean_tags, utc_now

logger = logging.getLogger(__name__)

_COLUMNS = "id, title, content, tags, created_at, updated_at"


class StorageError(Exception):
    """The database could not complete an operation."""


class Database:
    """Record-oriented wrapper around a single sqlite connection."""

    def __init__(self, path: Union[str, Path], config=None):
        """
        Open (or create) the database and initialize the schema.

        Args:
            path: Database file path, or ``":memory:"``
            config: Optional ``DatabaseConfig`` providing pragmas
        """
        self.path = str(path)
        try:
            if self.path != ":memory:":
                Path(self.path).expanduser().parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(self.path)
            if config is not None:
                self._apply_pragmas(config)
            self._init_schema()
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"Cannot open database '{self.path}': {e}") from e
        logger.debug("Opened note database at %s", self.path)

    def _apply_pragmas(self, config) -> None:
        if config.wal_mode and self.path != ":memory:":
            self.conn.execute("PRAGMA journal_mode=WAL")
        # Values are validated by the config layer; pragmas take no parameters.
        self.conn.execute(f"PRAGMA synchronous={config.synchronous}")
        self.conn.execute(f"PRAGMA temp_store={config.temp_store}")
        self.conn.execute(f"PRAGMA cache_size={int(config.cache_size_kb)}")

    def _init_schema(self) -> None:
        with self.conn:
            self.conn.execute(
                """CREATE TABLE IF NOT EXISTS notes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    content TEXT NOT NULL,
                    tags TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )"""
            )

    def close(self) -> None:
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    # --- Row conversion ---

    @staticmethod
    def _row_to_note(row) -> Note:
        try:
            tags = json.loads(row[3])
        except (TypeError, ValueError):
            tags = []
        return Note(
            id=row[0],
            title=row[1],
            content=row[2],
            tags=tags if isinstance(tags, list) else [],
            created_at=datetime.fromisoformat(row[4]),
            updated_at=datetime.fromisoformat(row[5]),
        )

    def _query(self, sql: str, params: Iterable = ()) -> List[Note]:
        try:
            rows = self.conn.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e
        return [self._row_to_note(row) for row in rows]

    def _execute(self, sql: str, params: Iterable = ()) -> sqlite3.Cursor:
        try:
            with self.conn:
                return self.conn.execute(sql, tuple(params))
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e

    # --- Operations ---

    def list_all(self) -> List[Note]:
        """All notes, most recently updated first."""
        return self._query(f"SELECT {_COLUMNS} FROM notes ORDER BY updated_at DESC, id DESC")

    def get(self, note_id: int) -> Optional[Note]:
        notes = self._query(f"SELECT {_COLUMNS} FROM notes WHERE id = ?", (note_id,))
        return notes[0] if notes else None

    def create(self, note: Note) -> int:
        """Insert a note and return its new id. ``note.id`` is ignored."""
        cursor = self._execute(
            "INSERT INTO notes (title, content, tags, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
            (
                note.title,
                note.content,
                json.dumps(clean_tags(note.tags)),
                note.created_at.isoformat(),
                note.updated_at.isoformat(),
            ),
        )
        note_id = cursor.lastrowid
        logger.info("Created note %s: %s", note_id, note.title)
        return note_id

    def update(self, note_id: int, title: str, content: str, tags: Iterable[str]) -> None:
        """Replace a note's title, body and tags and bump ``updated_at``."""
        self._execute(
            "UPDATE notes SET title = ?, content = ?, tags = ?, updated_at = ? WHERE id = ?",
            (title, content, json.dumps(clean_tags(tags)), utc_now().isoformat(), note_id),
        )
        logger.info("Updated note %s", note_id)

    def delete(self, note_id: int) -> None:
        """Delete a note. Deleting a missing id is not an error."""
        self._execute("DELETE FROM notes WHERE id = ?", (note_id,))
        logger.info("Deleted note %s", note_id)

    def search(self, query: str) -> List[Note]:
        """Case-insensitive substring search over title, content and tags."""
        pattern = f"%{query}%"
        return self._query(
            f"SELECT {_COLUMNS} FROM notes "
            "WHERE title LIKE ?1 OR content LIKE ?1 OR tags LIKE ?1 "
            "ORDER BY updated_at DESC, id DESC",
            (pattern,),
        )
