"""Tests for multi-select and batch operations."""

from qnote.note import sanitize_filename
from qnote.selection import SelectionState, export_note

from .conftest import make_note


def test_toggle_adds_and_removes():
    selection = SelectionState()
    selection.toggle(1)
    assert 1 in selection
    selection.toggle(1)
    assert selection.is_empty()


def test_select_all_then_clear_reports_prior_size(corpus):
    selection = SelectionState()
    count = selection.select_all(corpus.list_all())
    assert count == 3
    assert selection.clear() == 3
    assert selection.is_empty()


def test_select_all_keeps_notes_selected_elsewhere():
    selection = SelectionState()
    selection.toggle(99)
    selection.select_all([make_note("a", note_id=1)])
    assert len(selection) == 2


def test_retain_drops_deleted_ids():
    selection = SelectionState()
    selection.toggle(1)
    selection.toggle(2)
    selection.retain([make_note("a", note_id=2)])
    assert 1 not in selection
    assert 2 in selection


def test_delete_all_drains_selection(corpus):
    selection = SelectionState()
    notes = corpus.list_all()
    selection.toggle(notes[0].id)
    selection.toggle(notes[1].id)
    assert selection.delete_all(corpus) == 2
    assert selection.is_empty()
    assert len(corpus.list_all()) == 1


def test_export_all_counts_partial_failure(tmp_path):
    notes = [
        make_note("First", "one", note_id=1),
        make_note("Second", "two", note_id=2),
        make_note("Third", "three", note_id=3),
    ]
    # A directory in the way makes that one write fail.
    (tmp_path / f"{sanitize_filename('Second')}.md").mkdir()

    selection = SelectionState()
    selection.select_all(notes)
    success, failed = selection.export_all(notes, tmp_path)

    assert (success, failed) == (2, 1)
    assert selection.is_empty()
    assert (tmp_path / "First.md").read_text(encoding="utf-8") == "First\n\none"


def test_export_all_skips_notes_not_in_view(tmp_path):
    visible = [make_note("Shown", note_id=1)]
    selection = SelectionState()
    selection.toggle(1)
    selection.toggle(2)
    assert selection.export_all(visible, tmp_path) == (1, 0)


def test_export_note_writes_tag_line(tmp_path):
    path = export_note(make_note("My Note", "body", ["a", "b"]), tmp_path)
    assert path.name == "My_Note.md"
    assert path.read_text(encoding="utf-8") == "My Note\n@a @b\n\nbody"
