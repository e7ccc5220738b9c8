"""
Drawing the application state.

Every function here is a pure function of ``App`` (plus the space it has to
fill) returning prompt_toolkit formatted text: lists of ``(style, text)``
fragments, or plain strings for border titles.
"""

from typing import List, Sequence, Tuple

from prompt_toolkit.styles import Style
from prompt_toolkit.utils import get_cwidth

from .config import ThemeConfig
from .markdown import Line, markdown_to_lines
from .note import Note, format_date_short
from .state import App, Screen

StyleAndText = List[Tuple[str, str]]

INDICATOR = "▎ "
INDICATOR_WIDTH = len(INDICATOR)
ELLIPSIS = "…"
PREVIEW_PADDING = "  "
MORE_INDICATOR = " . more"
MAX_HELP_LINES = 3
HELP_SEARCH_MODE = "^n/p navigate  ⏎ accept  ESC cancel"


def build_style(theme: ThemeConfig) -> Style:
    """Create the application style sheet from the theme colours."""
    return Style.from_dict({
        "border": theme.metadata,
        "title": theme.text,
        "title.search": theme.hover_indicator,
        "metadata": theme.metadata,
        "status": "ansiyellow",
        "help": theme.metadata,
        "item.text": theme.text,
        "item.dim": theme.unselected_text,
        "indicator.hover": f"{theme.hover_indicator} bold",
        "indicator.selected": f"{theme.selection_indicator} bold",
        "indicator.active": f"{theme.active_indicator} bold",
        "search-match": f"{theme.search_highlight} bold",
        "preview.title": f"{theme.hover_indicator} bold",
        "preview.empty": theme.metadata,
        "md.h1": f"{theme.h1} bold",
        "md.h2": f"{theme.h2} bold",
        "md.h3": f"{theme.h3} bold",
        "md.h4": f"{theme.h4_h6} bold",
        "md.code": theme.code,
        "md.code-block": theme.code_block,
        "md.link": f"{theme.link} underline",
        "md.emphasis": f"{theme.emphasis} italic",
        "md.strong": f"{theme.strong} bold",
        "md.strike": f"{theme.strikethrough} strike",
        "md.blockquote": f"{theme.blockquote} italic",
        "md.rule": theme.metadata,
    })


# --- Footer ---

def help_text(app: App) -> str:
    """Complete help line for the list screen."""
    kb = app.config.keybindings
    count = len(app.selection)
    if count:
        batch = f"⇧D batch delete ({count})  ⇧X batch export ({count})  ⇧C clear"
    else:
        batch = "⇧A select all  ⇧C clear"
    return (
        f"{kb.move_down}/{kb.move_up} nav  {kb.edit} edit  {kb.new_note} new  {kb.delete} del  "
        f"{kb.search} search  SPC select  {kb.quit} quit  ^j/k scroll  "
        f"{kb.goto_top}/{kb.goto_bottom} top/bot  {kb.sort} sort  {kb.export} export  "
        f"ESC clear  . help  {batch}"
    )


def wrap_words(text: str, width: int) -> List[str]:
    """Break ``text`` on spaces into lines of at most ``width`` characters."""
    if width <= 0:
        return [text]
    lines = []
    remaining = text
    while remaining:
        if len(remaining) <= width:
            lines.append(remaining)
            break
        split_at = remaining.rfind(" ", 0, width + 1)
        if split_at <= 0:
            split_at = width
        lines.append(remaining[:split_at].rstrip())
        remaining = remaining[split_at:].lstrip()
    return lines


def footer_lines(app: App, width: int) -> List[str]:
    """
    Footer help text for the current screen.

    Collapsed, the list help is cut at a word boundary and ends with
    ``" . more"``; expanded, it wraps over at most ``MAX_HELP_LINES``.
    """
    if app.screen is Screen.SEARCH:
        return [HELP_SEARCH_MODE]
    text = help_text(app)
    if len(text) <= width:
        return [text]
    if app.help_expanded:
        return wrap_words(text, width)[:MAX_HELP_LINES]
    cut = max(width - len(MORE_INDICATOR), 0)
    break_point = text.rfind(" ", 0, cut + 1)
    if break_point <= 0:
        break_point = cut
    return [text[:break_point].rstrip() + MORE_INDICATOR]


def footer_height(app: App, width: int) -> int:
    return len(footer_lines(app, width))


def footer_fragments(app: App, width: int) -> StyleAndText:
    return [("class:help", "\n".join(footer_lines(app, width)))]


def status_fragments(app: App) -> StyleAndText:
    if not app.message:
        return []
    return [("class:status", app.message)]


# --- List pane ---

def list_title(app: App) -> StyleAndText:
    if app.screen is Screen.SEARCH:
        return [("class:title.search", f"Search: {app.search.input_buffer}_")]
    if app.search.is_active():
        return [("class:title", f"Notes (search: {app.search.query})")]
    return [("class:title", "Notes")]


def list_stats(app: App) -> str:
    count = len(app.notes)
    selected = len(app.selection)
    if selected:
        return f"{count} notes • {selected} selected"
    if app.search.is_active():
        return f"{count} matches"
    return f"{count} notes • {app.sort_mode.display_name}"


def truncate(text: str, width: int) -> str:
    """Shorten ``text`` to ``width`` terminal cells, ending in an ellipsis."""
    if get_cwidth(text) <= width:
        return text
    if width <= 0:
        return ""
    kept = []
    used = 0
    for ch in text:
        used += get_cwidth(ch)
        if used > width - 1:
            break
        kept.append(ch)
    return "".join(kept) + ELLIPSIS


def highlight_title(text: str, indices: Sequence[int], base: str) -> StyleAndText:
    """Split ``text`` so characters at ``indices`` get the match style."""
    marked = sorted({i for i in indices if 0 <= i < len(text)})
    if not marked:
        return [(base, text)] if text else []
    fragments: StyleAndText = []
    last = 0
    for idx in marked:
        if idx > last:
            fragments.append((base, text[last:idx]))
        fragments.append(("class:search-match", text[idx]))
        last = idx + 1
    if last < len(text):
        fragments.append((base, text[last:]))
    return fragments


def _title_match_offsets(note: Note, indices: Sequence[int]) -> List[int]:
    # Offsets index "<title> <content>"; shift them onto the display title.
    stripped = note.title.lstrip("#")
    lead = len(note.title) - len(stripped) + (len(stripped) - len(stripped.lstrip()))
    visible = len(note.display_title)
    return [i - lead for i in indices if lead <= i < lead + visible]


def _indicator(is_hovered: bool, is_selected: bool) -> Tuple[str, str]:
    if is_hovered and is_selected:
        return ("class:indicator.active", INDICATOR)
    if is_hovered:
        return ("class:indicator.hover", INDICATOR)
    if is_selected:
        return ("class:indicator.selected", INDICATOR)
    return ("", " " * INDICATOR_WIDTH)


def list_item(app: App, idx: int, width: int) -> StyleAndText:
    """One list row: indicator, (highlighted) title, padding, date."""
    note = app.notes[idx]
    is_hovered = idx == app.cursor
    is_selected = app.is_selected(note)
    date = format_date_short(note.updated_at)
    available = max(width - len(date) - INDICATOR_WIDTH - 1, 0)
    title = truncate(note.display_title, available)

    text_style = "class:item.text" if (is_hovered or is_selected) else "class:item.dim"
    indices: List[int] = []
    if app.search.is_active() and idx < len(app.search.match_indices):
        indices = _title_match_offsets(note, app.search.match_indices[idx])
        if title != note.display_title:
            # The ellipsis replaces the last visible character.
            indices = [i for i in indices if i < len(title) - 1]

    fragments: StyleAndText = [_indicator(is_hovered, is_selected)]
    fragments.extend(highlight_title(title, indices, text_style))
    fragments.append(("", " " * (available - get_cwidth(title) + 1)))
    fragments.append(("class:metadata", date))
    return fragments


def list_fragments(app: App, width: int) -> StyleAndText:
    """
    Whole list pane body.

    The hovered row carries a ``[SetCursorPosition]`` marker so the window
    keeps it scrolled into view.
    """
    if not app.notes:
        return [("class:preview.empty", "No notes found.")]
    result: StyleAndText = []
    for idx in range(len(app.notes)):
        if idx == app.cursor:
            result.append(("[SetCursorPosition]", ""))
        result.extend(list_item(app, idx, width))
        result.append(("", "\n"))
    result.pop()
    return result


# --- Preview pane ---

def preview_metadata(note: Note) -> str:
    updated = format_date_short(note.updated_at)
    if note.tags:
        return f"{', '.join(note.tags)} • {updated}"
    return updated


def preview_lines(note: Note) -> List[Line]:
    """Title, metadata, blank separator and the rendered body."""
    lines: List[Line] = [
        [("", PREVIEW_PADDING), ("class:preview.title", note.display_title)],
        [("", PREVIEW_PADDING), ("class:metadata", preview_metadata(note))],
        [],
    ]
    for line in markdown_to_lines(note.content):
        lines.append([("", PREVIEW_PADDING)] + line)
    return lines


def preview_fragments(app: App) -> StyleAndText:
    """Preview body starting at the current scroll offset."""
    note = app.hovered_note
    if note is None:
        return [("class:preview.empty", "No note selected")]
    result: StyleAndText = []
    for line in preview_lines(note)[app.preview_scroll:]:
        result.extend(line)
        result.append(("", "\n"))
    if result:
        result.pop()
    return result


def preview_title(app: App, visible_height: int) -> str:
    """``Preview`` plus a scroll percentage once scrolled."""
    note = app.hovered_note
    if note is None or app.preview_scroll <= 0:
        return "Preview"
    max_scroll = len(preview_lines(note)) - visible_height
    pct = min(app.preview_scroll * 100 // max_scroll, 100) if max_scroll > 0 else 0
    return f"Preview ↓{pct}%"


def preview_stats(app: App) -> str:
    if app.hovered_note is None:
        return ""
    return f"{app.cursor + 1}/{len(app.notes)}"
