"""Multi-select state and the batch operations applied to it."""

import logging
from pathlib import Path
from typing import Iterable, List, Set, Tuple, Union

from .note import Note, note_to_markdown, sanitize_filename

logger = logging.getLogger(__name__)


def export_note(note: Note, directory: Union[str, Path] = ".") -> Path:
    """
    Write a note to ``<directory>/<sanitized title>.md``.

    Raises:
        OSError: If the file cannot be written
    """
    path = Path(directory).expanduser() / f"{sanitize_filename(note.title)}.md"
    path.write_text(note_to_markdown(note), encoding="utf-8")
    return path


class SelectionState:
    """Identifiers of notes marked for batch actions."""

    def __init__(self):
        self.selected_notes: Set[int] = set()

    def __contains__(self, note_id) -> bool:
        return note_id in self.selected_notes

    def __len__(self) -> int:
        return len(self.selected_notes)

    def is_empty(self) -> bool:
        return not self.selected_notes

    def toggle(self, note_id: int) -> None:
        if note_id in self.selected_notes:
            self.selected_notes.remove(note_id)
        else:
            self.selected_notes.add(note_id)

    def select_all(self, notes: Iterable[Note]) -> int:
        """
        Add every visible note; notes already selected elsewhere stay.

        Returns:
            The size of the selection afterwards
        """
        self.selected_notes.update(note.id for note in notes if note.id is not None)
        return len(self.selected_notes)

    def clear(self) -> int:
        """Empty the selection and return how many ids were removed."""
        count = len(self.selected_notes)
        self.selected_notes.clear()
        return count

    def retain(self, notes: Iterable[Note]) -> None:
        """Drop ids that no longer exist in storage."""
        existing = {note.id for note in notes}
        self.selected_notes &= existing

    def delete_all(self, storage) -> int:
        """
        Delete every selected note from storage and drain the selection.

        Each id is deleted independently; a storage error stops the batch and
        propagates, leaving the ids not yet attempted selected.

        Returns:
            The number of notes deleted
        """
        count = 0
        for note_id in sorted(self.selected_notes):
            storage.delete(note_id)
            self.selected_notes.discard(note_id)
            count += 1
        return count

    def export_all(self, notes: Iterable[Note], directory: Union[str, Path] = ".") -> Tuple[int, int]:
        """
        Export the selected notes that are currently visible.

        A failed write is counted and the rest of the batch continues. The
        selection is cleared whatever happens.

        Returns:
            ``(exported, failed)``
        """
        targets: List[Note] = [n for n in notes if n.id is not None and n.id in self.selected_notes]
        success = failed = 0
        try:
            for note in targets:
                try:
                    export_note(note, directory)
                    success += 1
                except OSError as e:
                    logger.warning("Export of note %s failed: %s", note.id, e)
                    failed += 1
        finally:
            self.selected_notes.clear()
        return success, failed
