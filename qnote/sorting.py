"""Sort modes for the note list."""

from enum import Enum
from typing import List

from .note import Note


class SortMode(Enum):
    """Note ordering; cycled with the sort key."""

    UPDATED_DESC = "updated_desc"
    UPDATED_ASC = "updated_asc"
    TITLE_ASC = "title_asc"
    TITLE_DESC = "title_desc"
    CREATED_DESC = "created_desc"
    CREATED_ASC = "created_asc"

    def next(self) -> "SortMode":
        """The following mode in the fixed cycle."""
        order = list(SortMode)
        return order[(order.index(self) + 1) % len(order)]

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    def sort_notes(self, notes: List[Note]) -> None:
        """Reorder ``notes`` in place."""
        key, reverse = _SORT_KEYS[self]
        notes.sort(key=key, reverse=reverse)


DEFAULT_SORT_MODE = SortMode.UPDATED_DESC

_DISPLAY_NAMES = {
    SortMode.UPDATED_DESC: "Updated ↓",
    SortMode.UPDATED_ASC: "Updated ↑",
    SortMode.TITLE_ASC: "Title A→Z",
    SortMode.TITLE_DESC: "Title Z→A",
    SortMode.CREATED_DESC: "Created ↓",
    SortMode.CREATED_ASC: "Created ↑",
}


def _title_key(note: Note) -> str:
    return note.title.lower()


def _updated_key(note: Note):
    return note.updated_at


def _created_key(note: Note):
    return note.created_at


_SORT_KEYS = {
    SortMode.UPDATED_DESC: (_updated_key, True),
    SortMode.UPDATED_ASC: (_updated_key, False),
    SortMode.TITLE_ASC: (_title_key, False),
    SortMode.TITLE_DESC: (_title_key, True),
    SortMode.CREATED_DESC: (_created_key, True),
    SortMode.CREATED_ASC: (_created_key, False),
}
