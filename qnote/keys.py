"""
Keyboard events and the per-screen dispatch tables.

The UI layer turns terminal key presses into ``Key`` values; ``Keymap``
resolves them to action names once, from the configured characters.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from .config import KeybindingsConfig


@dataclass(frozen=True)
class Key:
    """A key press: a character (optionally with ctrl/shift) or a named key."""

    name: str
    char: str = ""
    ctrl: bool = False
    shift: bool = False

    @classmethod
    def of(cls, char: str) -> "Key":
        return cls("char", char, shift=char.isalpha() and char.isupper())

    @classmethod
    def control(cls, char: str) -> "Key":
        return cls("char", char.lower(), ctrl=True)

    @classmethod
    def named(cls, name: str) -> "Key":
        return cls(name)

    @property
    def is_printable(self) -> bool:
        return self.name == "char" and not self.ctrl and self.char.isprintable()


# Bindings that do not come from the configuration file.
SHIFT_ACTIONS = {
    "A": "select_all",
    "C": "clear_selection",
    "D": "batch_delete",
    "X": "batch_export",
}
CONTROL_ACTIONS = {
    "c": "quit",
    "j": "scroll_down",
    "k": "scroll_up",
}
FIXED_ACTIONS = {
    " ": "toggle_select",
    ".": "toggle_help",
    "a": "new_note",
}
NAMED_ACTIONS = {
    "enter": "edit",
    "escape": "clear",
    "down": "move_down",
    "up": "move_up",
}

SEARCH_CONTROL_ACTIONS = {
    "c": "quit",
    "n": "move_down",
    "j": "move_down",
    "p": "move_up",
    "k": "move_up",
}
SEARCH_NAMED_ACTIONS = {
    "escape": "cancel",
    "enter": "accept",
    "backspace": "backspace",
    "down": "move_down",
    "up": "move_up",
}


class Keymap:
    """Fixed lookup tables from key presses to action names."""

    def __init__(self, plain: Dict[str, str]):
        self.plain = dict(FIXED_ACTIONS)
        self.plain.update(plain)

    @classmethod
    def from_config(cls, keybindings: KeybindingsConfig) -> "Keymap":
        kb = keybindings
        return cls({
            kb.quit: "quit",
            kb.new_note: "new_note",
            kb.delete: "delete",
            kb.edit: "edit",
            kb.search: "search",
            kb.export: "export",
            kb.sort: "sort",
            kb.goto_top: "goto_top",
            kb.goto_bottom: "goto_bottom",
            kb.move_down: "move_down",
            kb.move_up: "move_up",
        })

    def list_action(self, key: Key) -> Optional[str]:
        """Action for a key on the list screen, or None if unbound."""
        if key.name != "char":
            return NAMED_ACTIONS.get(key.name)
        if key.ctrl:
            return CONTROL_ACTIONS.get(key.char)
        if key.shift and key.char in SHIFT_ACTIONS:
            return SHIFT_ACTIONS[key.char]
        return self.plain.get(key.char)

    def search_action(self, key: Key) -> Optional[str]:
        """Action for a key while typing a search; printable keys are input."""
        if key.name != "char":
            return SEARCH_NAMED_ACTIONS.get(key.name)
        if key.ctrl:
            return SEARCH_CONTROL_ACTIONS.get(key.char)
        if key.is_printable:
            return "input"
        return None
