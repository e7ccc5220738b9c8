"""
Editing notes in the user's external editor.

The scratch file holds::

    Title
    #tag1 #tag2        (only when the note has tags)

    Body...

The terminal UI is suspended while the editor runs and restored on every
exit path, including a failed launch.
"""

import logging
import os
import shlex
import subprocess
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Optional

from .config import EditorConfig
from .note import Note, NoteDraft, clean_tags, fallback_title

logger = logging.getLogger(__name__)

DEFAULT_EDITOR = "vi"
SCRATCH_FILENAME = "qnote-edit.md"
TAG_MARKER = "#"


class EditorError(Exception):
    """The editor could not be launched or exited with a failure status."""


class NullTerminal:
    """Terminal guard for when no full-screen UI owns the terminal."""

    @contextmanager
    def suspended(self):
        yield


def format_note_file(title: str, content: str, tags: Iterable[str]) -> str:
    """Serialize a note into the scratch-file format."""
    text = title
    tags = clean_tags(tags)
    if tags:
        text += "\n" + " ".join(f"{TAG_MARKER}{tag}" for tag in tags)
    if content:
        text += "\n\n" + content
    return text


def _is_tag_line(line: str) -> bool:
    tokens = line.split()
    return bool(tokens) and all(
        token.startswith(TAG_MARKER) and len(token) > len(TAG_MARKER) for token in tokens
    )


def parse_note_file(text: str) -> Optional[NoteDraft]:
    """
    Parse an edited scratch file.

    - Line 1: title
    - Line 2: tags, if every word on it starts with ``#``; one marker is
      stripped per word, so ``##work`` is the tag ``#work``
    - The rest: body, with surrounding blank lines trimmed

    An empty title falls back to the first word of the body.

    Returns:
        The draft, or None when the file is empty or has no usable title
    """
    if not text.strip():
        return None

    lines = text.splitlines()
    title = lines[0].strip()
    rest = lines[1:]

    tags = []
    if rest and _is_tag_line(rest[0]):
        tags = [token[len(TAG_MARKER):] for token in rest[0].split()]
        rest = rest[1:]

    content = "\n".join(line.rstrip() for line in rest).strip()

    if not title:
        title = fallback_title(content)
        if title is None:
            return None
    return NoteDraft(title, content, tuple(clean_tags(tags)))


class EditorBridge:
    """Hands a scratch file to the user's editor and parses the result."""

    def __init__(self, config: Optional[EditorConfig] = None, terminal=None):
        self.config = config or EditorConfig()
        self.terminal = terminal or NullTerminal()

    def get_editor(self) -> str:
        """
        Get the preferred text editor.

        Returns:
            The configured editor, else ``$VISUAL``, ``$EDITOR`` or ``vi``
        """
        return (
            self.config.default_editor
            or os.environ.get("VISUAL")
            or os.environ.get("EDITOR")
            or DEFAULT_EDITOR
        )

    def open_for_new(self) -> Optional[NoteDraft]:
        """Edit an empty scratch file. None means the user cancelled."""
        return self._edit("")

    def open_for_edit(self, note: Note) -> Optional[NoteDraft]:
        """Edit a pre-filled scratch file. None means the user cancelled."""
        return self._edit(format_note_file(note.title, note.content, note.tags))

    def _scratch_file(self, initial_text: str) -> Path:
        if self.config.secure_temp_files:
            fd, name = tempfile.mkstemp(prefix="qnote-", suffix=".md")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(initial_text)
            return Path(name)
        path = Path(tempfile.gettempdir()) / SCRATCH_FILENAME
        path.write_text(initial_text, encoding="utf-8")
        return path

    def _edit(self, initial_text: str) -> Optional[NoteDraft]:
        try:
            path = self._scratch_file(initial_text)
        except OSError as e:
            raise EditorError(f"Cannot create scratch file: {e}") from e
        try:
            self._launch(path)
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise EditorError(f"Cannot read scratch file: {e}") from e
        finally:
            if self.config.secure_temp_files:
                try:
                    path.unlink()
                except OSError:
                    logger.debug("Scratch file %s already gone", path)
        return parse_note_file(text)

    def _launch(self, path: Path) -> None:
        editor = self.get_editor()
        try:
            command = shlex.split(editor) + [str(path)]
        except ValueError as e:
            raise EditorError(f"Invalid editor command '{editor}': {e}") from e
        logger.debug("Launching editor: %s", command)
        with self.terminal.suspended():
            try:
                subprocess.run(command, check=True)
            except FileNotFoundError as e:
                logger.warning("Editor '%s' not found", editor)
                raise EditorError(f"Editor '{editor}' not found") from e
            except subprocess.CalledProcessError as e:
                logger.warning("Editor '%s' exited with status %s", editor, e.returncode)
                raise EditorError(f"Editor exited with status {e.returncode}") from e
            except OSError as e:
                logger.warning("Editor '%s' could not be started: %s", editor, e)
                raise EditorError(f"Failed to open editor: {editor}") from e
