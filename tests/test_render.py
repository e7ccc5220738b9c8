"""Tests for the render functions."""

import pytest
from prompt_toolkit.utils import get_cwidth

from qnote import render
from qnote.config import ThemeConfig
from qnote.keys import Key
from qnote.state import App

from .conftest import make_note


def text_of(fragments):
    return "".join(text for style, text in fragments if not style.startswith("[SetCursorPosition]"))


@pytest.fixture
def app(corpus, config, fake_editor):
    return App(corpus, config, fake_editor)


def test_build_style_accepts_theme():
    style = render.build_style(ThemeConfig())
    attrs = style.get_attrs_for_style_str("class:md.h1")
    assert attrs.color == "7dcfff"
    assert attrs.bold


def test_list_item_fills_width(app):
    line = render.list_item(app, 0, 40)
    assert len(text_of(line)) == 40
    assert line[0] == ("class:indicator.hover", render.INDICATOR)
    assert text_of(line).endswith("Jan 15")


def test_list_item_indicators(app):
    app.selection.toggle(app.notes[0].id)
    app.selection.toggle(app.notes[1].id)
    assert render.list_item(app, 0, 40)[0][0] == "class:indicator.active"
    assert render.list_item(app, 1, 40)[0][0] == "class:indicator.selected"
    assert render.list_item(app, 2, 40)[0] == ("", "  ")


def test_long_title_is_truncated(db, config, fake_editor):
    db.create(make_note("A very long note title that will not fit"))
    app = App(db, config, fake_editor)
    line = text_of(render.list_item(app, 0, 30))
    assert len(line) == 30
    assert "…" in line


@pytest.mark.parametrize("title", ["買い物リスト", "日本語のとても長いノートのタイトルです", "🎉 party plans"])
def test_wide_titles_keep_row_width(db, config, fake_editor, title):
    db.create(make_note(title))
    app = App(db, config, fake_editor)
    line = text_of(render.list_item(app, 0, 30))
    assert get_cwidth(line) == 30
    assert line.endswith("Jan 15")


def test_truncate_counts_cells():
    assert render.truncate("日本語テキスト", 6) == "日本…"
    assert render.truncate("日本", 4) == "日本"


def test_heading_markers_are_stripped(db, config, fake_editor):
    db.create(make_note("## Heading", "body"))
    app = App(db, config, fake_editor)
    assert text_of(render.list_item(app, 0, 40)).startswith("▎ Heading")


def test_search_highlights_title_characters(app):
    app.handle_key(Key.of("/"))
    for ch in "bud":
        app.handle_key(Key.of(ch))
    line = render.list_item(app, 0, 40)
    highlighted = "".join(text for style, text in line if style == "class:search-match")
    assert highlighted == "Bud"


def test_highlight_offsets_shift_past_heading_markers(db, config, fake_editor):
    db.create(make_note("## Heading", "body"))
    app = App(db, config, fake_editor)
    app.search.set_query("head")
    app.refresh()
    line = render.list_item(app, 0, 40)
    highlighted = "".join(text for style, text in line if style == "class:search-match")
    assert highlighted == "Head"


def test_list_fragments_mark_hovered_row(app):
    fragments = render.list_fragments(app, 40)
    assert fragments[0] == ("[SetCursorPosition]", "")
    assert text_of(fragments).count("\n") == 2


def test_empty_list(db, config, fake_editor):
    app = App(db, config, fake_editor)
    assert text_of(render.list_fragments(app, 40)) == "No notes found."
    assert text_of(render.preview_fragments(app)) == "No note selected"
    assert render.preview_stats(app) == ""


def test_list_titles(app):
    assert text_of(render.list_title(app)) == "Notes"
    app.handle_key(Key.of("/"))
    app.handle_key(Key.of("g"))
    assert text_of(render.list_title(app)) == "Search: g_"
    app.handle_key(Key.named("enter"))
    assert text_of(render.list_title(app)) == "Notes (search: g)"


def test_list_stats(app):
    assert render.list_stats(app) == "3 notes • Updated ↓"
    app.search.set_query("groc")
    app.refresh()
    assert render.list_stats(app) == "2 matches"
    app.selection.toggle(app.notes[0].id)
    assert render.list_stats(app) == "2 notes • 1 selected"


def test_preview_lines(app):
    app.handle_key(Key.of("j"))
    lines = [text_of(line) for line in render.preview_lines(app.hovered_note)]
    assert lines[0] == "  Grocery list"
    assert lines[1] == "  home, errands • Jan 15"
    assert lines[2] == ""
    assert lines[3:] == ["  apples", "  Fruit", "  pears"]


def test_preview_fragments_follow_scroll(app):
    app.handle_key(Key.of("j"))
    app.preview_scroll = 3
    assert text_of(render.preview_fragments(app)).startswith("  apples")


def test_preview_title_and_stats(app):
    assert render.preview_title(app, 10) == "Preview"
    assert render.preview_stats(app) == "1/3"
    app.handle_key(Key.of("j"))
    app.preview_scroll = 1
    # 6 preview lines, 2 visible: scroll 1 of 4
    assert render.preview_title(app, 2) == "Preview ↓25%"


def test_collapsed_footer_ends_with_more(app):
    lines = render.footer_lines(app, 40)
    assert len(lines) == 1
    assert lines[0].endswith(" . more")
    assert len(lines[0]) <= 40


def test_expanded_footer_wraps(app):
    app.handle_key(Key.of("."))
    lines = render.footer_lines(app, 60)
    assert 1 < len(lines) <= render.MAX_HELP_LINES
    assert all(len(line) <= 60 for line in lines)


def test_footer_fits_on_wide_terminal(app):
    lines = render.footer_lines(app, 500)
    assert lines == [render.help_text(app)]
    assert "⇧A select all" in lines[0]


def test_footer_shows_batch_counts(app):
    app.handle_key(Key.of("A"))
    assert "⇧D batch delete (3)" in render.help_text(app)
    assert "⇧X batch export (3)" in render.help_text(app)


def test_search_footer(app):
    app.handle_key(Key.of("/"))
    assert render.footer_lines(app, 20) == [render.HELP_SEARCH_MODE]


def test_status_fragments(app):
    assert render.status_fragments(app) == []
    app.set_message("Note saved")
    assert render.status_fragments(app) == [("class:status", "Note saved")]


def test_wrap_words():
    assert render.wrap_words("aa bb cc", 5) == ["aa bb", "cc"]
    assert render.wrap_words("abcdefgh", 3) == ["abc", "def", "gh"]
