"""
Note records and the plain-text formats notes travel in.

Two text formats exist:

- the export/import format (``note_to_markdown`` / ``parse_markdown_file``):
  title on the first line, ``@tag`` tokens, blank line, body;
- the editor scratch-file format, which lives in ``qnote.editor``.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import List, NamedTuple, Optional, Tuple

# --- Date formats ---
DATE_SHORT = "%b %d"
DATE_FULL = "%Y-%m-%d %H:%M"
DATE_ONLY = "%Y-%m-%d"

EXPORT_TAG_MARKER = "@"
_IMPORT_TAG = re.compile(r"@([\w]+)")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass
class Note:
    """A single note. ``id`` is None until the note has been stored."""

    title: str
    content: str = ""
    tags: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: Optional[datetime] = None
    id: Optional[int] = None

    def __post_init__(self):
        self.tags = clean_tags(self.tags)
        if self.updated_at is None or self.updated_at < self.created_at:
            self.updated_at = self.created_at

    @classmethod
    def from_draft(cls, draft: "NoteDraft") -> "Note":
        return cls(title=draft.title, content=draft.content, tags=list(draft.tags))

    def copy(self) -> "Note":
        return replace(self, tags=list(self.tags))

    @property
    def display_title(self) -> str:
        """Title with leading markdown heading markers removed."""
        return self.title.lstrip("#").strip()


class NoteDraft(NamedTuple):
    """An unsaved (title, content, tags) triple produced by the editor."""

    title: str
    content: str
    tags: Tuple[str, ...] = ()


def clean_tags(tags) -> List[str]:
    """
    Drop empty tags and duplicates, keeping first-seen order.

    Inner whitespace becomes ``-`` so every tag is a single word, e.g.
    ``"to do"`` is stored as ``"to-do"``.
    """
    result: List[str] = []
    for tag in tags:
        tag = re.sub(r"\s+", "-", tag.strip())
        if tag and tag not in result:
            result.append(tag)
    return result


def parse_tags(tags: Optional[str]) -> List[str]:
    """Parse a comma-separated tag argument such as ``"work, ideas"``."""
    if not tags:
        return []
    return clean_tags(tags.split(","))


def format_date_short(dt: datetime) -> str:
    """List view date, e.g. ``Jan 15``."""
    return dt.strftime(DATE_SHORT)


def format_date_full(dt: datetime) -> str:
    return dt.strftime(DATE_FULL)


def format_date_only(dt: datetime) -> str:
    return dt.strftime(DATE_ONLY)


def sanitize_filename(title: str) -> str:
    """
    Turn a note title into a filesystem-safe file stem.

    Path separators become ``-``, whitespace becomes ``_`` and NUL bytes
    are dropped.

    Args:
        title: The note title

    Returns:
        The sanitized stem (``"untitled"`` if nothing usable is left)
    """
    stem = title.replace("/", "-").replace("\\", "-").replace("\x00", "")
    stem = re.sub(r"\s+", "_", stem.strip())
    stem = stem.lstrip(".")
    return stem or "untitled"


def note_to_markdown(note: Note) -> str:
    """
    Format a note for export.

    Format::

        Title
        @tag1 @tag2

        Body...
    """
    text = note.title
    if note.tags:
        text += "\n" + " ".join(f"{EXPORT_TAG_MARKER}{tag}" for tag in note.tags)
    if note.content:
        text += "\n\n" + note.content
    return text


def fallback_title(content: str) -> Optional[str]:
    """
    Synthesize a title from the first word of the first content line.

    Leading heading markers are stripped, so ``"## Hello world"`` gives
    ``"Hello"``. Returns None when there is no content at all.
    """
    content = content.strip()
    if not content:
        return None
    words = content.splitlines()[0].lstrip("#").split()
    return words[0] if words else "Untitled"


def parse_markdown_file(text: str) -> Optional[NoteDraft]:
    """
    Parse an exported/imported markdown file back into a draft.

    ``@tag`` tokens anywhere after the first line are collected as tags and
    removed from the body. Returns None when the file holds nothing usable.
    """
    text = text.strip()
    if not text:
        return None

    first, _, rest = text.partition("\n")
    title = first.strip()
    tags = clean_tags(_IMPORT_TAG.findall(rest))
    body = _IMPORT_TAG.sub("", rest)
    body = "\n".join(line.rstrip() for line in body.splitlines()).strip()

    if not title:
        title = fallback_title(body)
        if title is None:
            return None
    return NoteDraft(title, body, tuple(tags))
