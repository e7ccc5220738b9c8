"""
Full-screen note browser on top of prompt_toolkit.

Every key press goes through a single catch-all binding into
``App.handle_key``; the layout only reads the state back through the
functions in ``qnote.render``.
"""

import logging
from contextlib import contextmanager
from typing import Callable, Optional

from prompt_toolkit import Application
from prompt_toolkit.filters import Condition
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.key_binding.key_processor import KeyPress
from prompt_toolkit.keys import Keys
from prompt_toolkit.layout.containers import ConditionalContainer, HSplit, VSplit, Window, WindowAlign
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.layout.layout import Layout
from prompt_toolkit.styles import Style

from . import render
from .config import Config
from .db import StorageError
from .editor import EditorBridge
from .keys import Key
from .state import App

logger = logging.getLogger(__name__)

ESCAPE_TIMEOUT = 0.05

NAMED_KEYS = {
    Keys.ControlM: "enter",
    Keys.Escape: "escape",
    Keys.ControlH: "backspace",
    Keys.Up: "up",
    Keys.Down: "down",
}


def key_from_press(key_press: KeyPress) -> Optional[Key]:
    """Translate a prompt_toolkit key press; None for keys we never bind."""
    key = key_press.key
    if key in NAMED_KEYS:
        return Key.named(NAMED_KEYS[key])
    if isinstance(key, Keys):
        name = key.value
        if name.startswith("c-") and len(name) == 3:
            return Key.control(name[2])
        return None
    if len(key) == 1:
        return Key.of(key)
    return None


class TerminalGuard:
    """Hands the terminal to a child process while the application runs."""

    def __init__(self):
        self.app: Optional[Application] = None

    @contextmanager
    def suspended(self):
        """
        Leave the alternate screen and raw mode for the duration of the block.

        The screen is restored on every exit path, including when the block
        raises.
        """
        app = self.app
        if app is None or not app.is_running:
            yield
            return
        app.renderer.erase()
        try:
            with app.input.detach():
                with app.input.cooked_mode():
                    yield
        finally:
            app.renderer.reset()
            app.invalidate()


def _pane(body: Window, title: Callable, stats: Callable, width=None) -> HSplit:
    """Rounded border around ``body`` with a title on top and stats below."""
    border = "class:border"
    top = VSplit([
        Window(width=1, height=1, char="╭", style=border),
        Window(width=1, height=1, char="─", style=border),
        Window(FormattedTextControl(title), height=1, dont_extend_width=True),
        Window(height=1, char="─", style=border),
        Window(width=1, height=1, char="╮", style=border),
    ], height=1)
    middle = VSplit([
        Window(width=1, char="│", style=border),
        body,
        Window(width=1, char="│", style=border),
    ])
    bottom = VSplit([
        Window(width=1, height=1, char="╰", style=border),
        Window(height=1, char="─", style=border),
        Window(FormattedTextControl(lambda: [("class:metadata", f" {stats()} ")]),
               height=1, dont_extend_width=True),
        Window(width=1, height=1, char="─", style=border),
        Window(width=1, height=1, char="╯", style=border),
    ], height=1)
    return HSplit([top, middle, bottom], width=width)


class NoteTUI:
    """Main application class for the note browser."""

    def __init__(self, storage, config: Config):
        """
        Initialize the browser.

        Args:
            storage: Note storage (see ``qnote.db.Database``)
            config: Application configuration
        """
        self.config = config
        self.guard = TerminalGuard()
        self.state = App(storage, config, EditorBridge(config.editor, self.guard))
        self.kb = KeyBindings()
        self._setup_key_bindings()

    def _setup_key_bindings(self) -> None:
        """Route every key press into the state machine."""

        @self.kb.add(Keys.Any, eager=True)
        def dispatch(event):
            key = key_from_press(event.key_sequence[0])
            if key is None:
                return
            try:
                should_quit = self.state.handle_key(key)
            except StorageError as e:
                logger.error("Storage failure: %s", e)
                event.app.exit(exception=e)
                return
            if should_quit:
                event.app.exit()
                return
            if self.state.needs_clear:
                self.state.needs_clear = False
                event.app.renderer.clear()

    def _columns(self) -> int:
        return self.guard.app.output.get_size().columns if self.guard.app else 80

    def _rows(self) -> int:
        return self.guard.app.output.get_size().rows if self.guard.app else 24

    def _list_width(self) -> int:
        return max(int(self._columns() * self.config.ui.split_ratio), 10)

    def _preview_height(self) -> int:
        used = render.footer_height(self.state, self._columns()) + 2
        if self.state.message:
            used += 1
        return max(self._rows() - used, 1)

    def _create_layout(self) -> Layout:
        """Create the application layout."""
        state = self.state

        list_window = Window(
            content=FormattedTextControl(
                lambda: render.list_fragments(state, self._list_width() - 2),
                focusable=True,
                show_cursor=False,
            ),
        )
        preview_window = Window(
            content=FormattedTextControl(lambda: render.preview_fragments(state), show_cursor=False),
            wrap_lines=True,
        )

        body = VSplit([
            _pane(list_window, lambda: render.list_title(state), lambda: render.list_stats(state),
                  width=lambda: self._list_width()),
            _pane(preview_window,
                  lambda: [("class:title", render.preview_title(state, self._preview_height()))],
                  lambda: render.preview_stats(state)),
        ])

        status = ConditionalContainer(
            Window(FormattedTextControl(lambda: render.status_fragments(state)), height=1),
            filter=Condition(lambda: bool(state.message)),
        )
        footer = Window(
            FormattedTextControl(lambda: render.footer_fragments(state, self._columns())),
            height=lambda: render.footer_height(state, self._columns()),
            align=WindowAlign.CENTER,
        )
        return Layout(HSplit([body, status, footer]), focused_element=list_window)

    def _create_style(self) -> Style:
        """Create the application styling."""
        return render.build_style(self.config.theme)

    def run(self) -> None:
        """
        Run the main application loop.

        Raises:
            StorageError: If storage failed while handling a key
        """
        app = Application(
            layout=self._create_layout(),
            key_bindings=self.kb,
            full_screen=True,
            style=self._create_style(),
        )
        app.ttimeoutlen = ESCAPE_TIMEOUT
        self.guard.app = app
        try:
            app.run()
        finally:
            self.guard.app = None


def run(storage, config: Config) -> None:
    """Open the note browser until the user quits."""
    NoteTUI(storage, config).run()
