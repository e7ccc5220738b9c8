"""Tests for key dispatch and prompt_toolkit key translation."""

from prompt_toolkit.key_binding.key_processor import KeyPress
from prompt_toolkit.keys import Keys

from qnote.config import KeybindingsConfig
from qnote.keys import Key, Keymap
from qnote.tui import TerminalGuard, key_from_press


def test_default_list_bindings():
    keymap = Keymap.from_config(KeybindingsConfig())
    assert keymap.list_action(Key.of("q")) == "quit"
    assert keymap.list_action(Key.of("G")) == "goto_bottom"
    assert keymap.list_action(Key.of(" ")) == "toggle_select"
    assert keymap.list_action(Key.of("a")) == "new_note"
    assert keymap.list_action(Key.of("n")) == "new_note"
    assert keymap.list_action(Key.of("A")) == "select_all"
    assert keymap.list_action(Key.control("j")) == "scroll_down"
    assert keymap.list_action(Key.named("enter")) == "edit"
    assert keymap.list_action(Key.of("z")) is None


def test_custom_bindings():
    keymap = Keymap.from_config(KeybindingsConfig(quit="Q", move_down="n", new_note="c"))
    assert keymap.list_action(Key.of("Q")) == "quit"
    assert keymap.list_action(Key.of("n")) == "move_down"
    assert keymap.list_action(Key.of("q")) is None


def test_search_bindings():
    keymap = Keymap.from_config(KeybindingsConfig())
    assert keymap.search_action(Key.of("j")) == "input"
    assert keymap.search_action(Key.control("n")) == "move_down"
    assert keymap.search_action(Key.control("p")) == "move_up"
    assert keymap.search_action(Key.named("escape")) == "cancel"
    assert keymap.search_action(Key.named("backspace")) == "backspace"


def test_key_from_press():
    assert key_from_press(KeyPress("a")) == Key.of("a")
    assert key_from_press(KeyPress("D")) == Key("char", "D", shift=True)
    assert key_from_press(KeyPress(Keys.ControlM)) == Key.named("enter")
    assert key_from_press(KeyPress(Keys.Escape)) == Key.named("escape")
    assert key_from_press(KeyPress(Keys.Backspace)) == Key.named("backspace")
    assert key_from_press(KeyPress(Keys.ControlJ)) == Key.control("j")
    assert key_from_press(KeyPress(Keys.Left)) is None


def test_terminal_guard_without_application():
    guard = TerminalGuard()
    entered = []
    with guard.suspended():
        entered.append(True)
    assert entered == [True]
