"""Cursor movement over the note list and preview scroll bounds."""

from typing import Optional, Sequence

from .config import UiConfig
from .note import Note


def move_cursor(cursor: Optional[int], length: int, down: bool) -> Optional[int]:
    """
    Move one step, clamped to ``[0, length)``; no wraparound.

    Returns None for an empty list.
    """
    if length == 0:
        return None
    current = 0 if cursor is None else cursor
    if down:
        return min(current + 1, length - 1)
    return max(current - 1, 0)


def clamp_cursor(cursor: Optional[int], length: int) -> Optional[int]:
    """Keep a previous cursor position valid for a list of ``length``."""
    if length == 0:
        return None
    if cursor is None:
        return 0
    return min(max(cursor, 0), length - 1)


def preview_content_height(note: Note, ui: UiConfig) -> int:
    """
    Estimate the rendered height of a note's preview.

    Header lines plus body lines, plus one extra line per ``#`` (capped),
    since headings render with surrounding spacing.
    """
    lines = len(note.content.splitlines())
    headers = min(note.content.count("#"), ui.max_markdown_formatting_buffer)
    return ui.header_lines + lines + headers


def scroll_preview(scroll: int, down: bool, content_height: int, ui: UiConfig) -> int:
    """Return the new scroll offset, saturating at both bounds."""
    if down:
        max_scroll = max(content_height - ui.preview_max_scroll_buffer, 0)
        return min(scroll + ui.preview_scroll_step, max_scroll)
    return max(scroll - ui.preview_scroll_step, 0)


def hovered(notes: Sequence[Note], cursor: Optional[int]) -> Optional[Note]:
    if cursor is None or not 0 <= cursor < len(notes):
        return None
    return notes[cursor]
