"""
Application state for the interactive note browser.

``App`` owns every sub-state (search, selection, sort, cursor, preview
scroll, status message) and mutates them in response to ``Key`` events.
It knows nothing about the terminal: the UI layer feeds it keys and draws
whatever it holds afterwards.
"""

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional

from .config import Config
from .editor import EditorBridge, EditorError
from .keys import Key, Keymap
from .navigation import clamp_cursor, hovered, move_cursor, preview_content_height, scroll_preview
from .note import Note
from .search import SearchState
from .selection import SelectionState, export_note
from .sorting import DEFAULT_SORT_MODE

logger = logging.getLogger(__name__)


class Screen(Enum):
    LIST = "list"
    SEARCH = "search"


class App:
    """The note browser's state machine."""

    def __init__(self, storage, config: Config, editor: Optional[EditorBridge] = None):
        """
        Load the notes and set up the dispatch tables.

        Args:
            storage: Object with ``list_all``, ``create``, ``update`` and
                ``delete`` (see ``qnote.db.Database``)
            config: Application settings
            editor: Editor bridge; defaults to one built from ``config.editor``
        """
        self.storage = storage
        self.config = config
        self.editor = editor or EditorBridge(config.editor)
        self.keymap = Keymap.from_config(config.keybindings)

        self.screen = Screen.LIST
        self.notes: List[Note] = []
        self.cursor: Optional[int] = None
        self.preview_scroll = 0
        self.sort_mode = DEFAULT_SORT_MODE
        self.help_expanded = False
        self.search = SearchState()
        self.selection = SelectionState()
        self.message: Optional[str] = None
        self.message_ttl = 0
        # Set after the editor ran; the UI repaints the whole screen.
        self.needs_clear = False

        self._list_actions: Dict[str, Callable[[], Optional[bool]]] = {
            "quit": self._quit,
            "new_note": self._create_note,
            "delete": self._delete_hovered,
            "edit": self._edit_hovered,
            "sort": self._cycle_sort,
            "export": self._export_hovered,
            "search": self._enter_search,
            "goto_top": self._goto_top,
            "goto_bottom": self._goto_bottom,
            "move_down": lambda: self.navigate(True),
            "move_up": lambda: self.navigate(False),
            "toggle_help": self._toggle_help,
            "toggle_select": self._toggle_select,
            "select_all": self._select_all,
            "clear_selection": self._clear_selection,
            "batch_delete": self._batch_delete,
            "batch_export": self._batch_export,
            "scroll_down": lambda: self.scroll_preview(True),
            "scroll_up": lambda: self.scroll_preview(False),
            "clear": self._clear_search_and_selection,
        }
        self._search_actions: Dict[str, Callable[[Key], Optional[bool]]] = {
            "quit": lambda key: self._quit(),
            "move_down": lambda key: self.navigate(True),
            "move_up": lambda key: self.navigate(False),
            "cancel": self._cancel_search,
            "accept": self._accept_search,
            "backspace": self._search_backspace,
            "input": self._search_input,
        }

        self.refresh()

    # --- Status messages ---

    def set_message(self, message: str) -> None:
        self.message = message
        self.message_ttl = self.config.ui.message_display_keypresses

    def tick_message(self) -> None:
        """Count one key press against the status message's lifetime."""
        if self.message_ttl > 0:
            self.message_ttl -= 1
        if self.message_ttl == 0:
            self.message = None

    # --- Queries ---

    @property
    def hovered_note(self) -> Optional[Note]:
        return hovered(self.notes, self.cursor)

    def is_selected(self, note: Note) -> bool:
        return note.id is not None and note.id in self.selection

    # --- Core operations ---

    def refresh(self) -> None:
        """
        Reload notes from storage and rebuild the displayed list.

        The list is replaced wholesale; match offsets are recomputed with it,
        the cursor is clamped and the preview goes back to the top. Selected
        ids that no longer exist in storage are dropped.
        """
        all_notes = self.storage.list_all()
        self.notes = self.search.filter_notes(all_notes, self.sort_mode)
        self.selection.retain(all_notes)
        self.cursor = clamp_cursor(self.cursor, len(self.notes))
        self.preview_scroll = 0

    def navigate(self, down: bool) -> None:
        if not self.notes:
            return
        self.cursor = move_cursor(self.cursor, len(self.notes), down)
        self.preview_scroll = 0

    def scroll_preview(self, down: bool) -> None:
        note = self.hovered_note
        if note is None:
            return
        height = preview_content_height(note, self.config.ui)
        self.preview_scroll = scroll_preview(self.preview_scroll, down, height, self.config.ui)

    def handle_key(self, key: Key) -> bool:
        """
        Process one key press.

        Returns:
            True when the application should quit

        Raises:
            StorageError: If storage fails; the run cannot continue
        """
        self.tick_message()
        if self.screen is Screen.SEARCH:
            action = self.keymap.search_action(key)
            handler = self._search_actions.get(action)
            return bool(handler and handler(key))
        action = self.keymap.list_action(key)
        handler = self._list_actions.get(action)
        return bool(handler and handler())

    # --- List screen ---

    def _quit(self) -> bool:
        return True

    def _create_note(self) -> None:
        try:
            draft = self.editor.open_for_new()
        except EditorError as e:
            logger.warning("New note cancelled: %s", e)
            draft = None
        if draft is not None:
            self.storage.create(Note.from_draft(draft))
            self.refresh()
            self.set_message("Note created")
        else:
            self.set_message("Cancelled")
        self.needs_clear = True

    def _edit_hovered(self) -> None:
        note = self.hovered_note
        if note is None or note.id is None:
            return
        try:
            draft = self.editor.open_for_edit(note.copy())
        except EditorError as e:
            logger.warning("Edit of note %s cancelled: %s", note.id, e)
            draft = None
        if draft is not None:
            self.storage.update(note.id, draft.title, draft.content, list(draft.tags))
            self.refresh()
            self.set_message("Note saved")
        else:
            self.set_message("Cancelled")
        self.needs_clear = True

    def _delete_hovered(self) -> None:
        note = self.hovered_note
        if note is None or note.id is None:
            return
        self.storage.delete(note.id)
        self.refresh()
        self.set_message(f"Deleted '{note.title}'")

    def _cycle_sort(self) -> None:
        self.sort_mode = self.sort_mode.next()
        self.refresh()
        self.set_message(f"Sort: {self.sort_mode.display_name}")

    def _export_hovered(self) -> None:
        note = self.hovered_note
        if note is None:
            return
        try:
            path = export_note(note, self.config.export.directory)
        except OSError as e:
            logger.warning("Export of note %s failed: %s", note.id, e)
            self.set_message(f"Export failed: {e}")
        else:
            self.set_message(f"Exported to {path}")

    def _enter_search(self) -> None:
        self.screen = Screen.SEARCH
        self.search.begin_input()

    def _goto_top(self) -> None:
        if self.notes:
            self.cursor = 0
            self.preview_scroll = 0

    def _goto_bottom(self) -> None:
        if self.notes:
            self.cursor = len(self.notes) - 1
            self.preview_scroll = 0

    def _toggle_help(self) -> None:
        self.help_expanded = not self.help_expanded

    def _toggle_select(self) -> None:
        note = self.hovered_note
        if note is None or note.id is None:
            return
        self.selection.toggle(note.id)
        self.navigate(True)

    def _select_all(self) -> None:
        count = self.selection.select_all(self.notes)
        self.set_message(f"Selected {count} notes")

    def _clear_selection(self) -> None:
        count = self.selection.clear()
        if count > 0:
            self.set_message(f"Cleared {count} selections")

    def _batch_delete(self) -> None:
        if self.selection.is_empty():
            self.set_message("No notes selected")
            return
        try:
            count = self.selection.delete_all(self.storage)
        finally:
            # Storage truth is shown even when a delete failed part-way.
            self.refresh()
        self.set_message(f"Deleted {count} notes")

    def _batch_export(self) -> None:
        if self.selection.is_empty():
            self.set_message("No notes selected")
            return
        success, failed = self.selection.export_all(self.notes, self.config.export.directory)
        if failed:
            self.set_message(f"Exported {success} notes ({failed} failed)")
        else:
            self.set_message(f"Exported {success} notes")

    def _clear_search_and_selection(self) -> None:
        had_search = self.search.is_active()
        had_selection = not self.selection.is_empty()
        if had_search:
            self.search.clear()
            self.refresh()
        if had_selection:
            self.selection.clear()

        if had_search and had_selection:
            self.set_message("Cleared search and selections")
        elif had_search:
            self.set_message("Search cleared")
        elif had_selection:
            self.set_message("Selections cleared")

    # --- Search screen ---

    def _search_input(self, key: Key) -> None:
        self.search.push_char(key.char)
        self.refresh()

    def _search_backspace(self, key: Key) -> None:
        self.search.pop_char()
        self.refresh()

    def _accept_search(self, key: Key) -> None:
        self.search.accept_input()
        self.screen = Screen.LIST
        if self.search.is_active():
            self.set_message(f"Found {len(self.notes)} notes")

    def _cancel_search(self, key: Key) -> None:
        self.screen = Screen.LIST
        if self.search.cancel_input():
            self.refresh()
