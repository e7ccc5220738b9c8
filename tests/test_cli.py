"""Tests for the scripted command surface."""

import json
import logging

import pytest

from qnote import cli
from qnote.config import Config
from qnote.db import Database


@pytest.fixture
def env(tmp_path, monkeypatch):
    """Point config and data at a temporary directory."""
    monkeypatch.setenv("QNOTE_CONFIG", str(tmp_path / "config.json"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.chdir(tmp_path)
    return tmp_path


def open_db(env):
    return Database(env / "data" / "qnote" / "notes.db")


def test_add_and_show(env, capsys):
    assert cli.main(["add", "Groceries", "milk", "-t", "home,errands"]) == 0
    assert "Note created with ID: 1" in capsys.readouterr().out

    assert cli.main(["show", "groc"]) == 0
    out = capsys.readouterr().out
    assert "Title: Groceries" in out
    assert "Tags: home, errands" in out
    assert "milk" in out


def test_list_oneline_and_filters(env, capsys):
    cli.main(["add", "Beta", "b", "-t", "x"])
    cli.main(["add", "alpha", "a"])
    capsys.readouterr()

    cli.main(["list", "-o", "-s", "title"])
    assert capsys.readouterr().out.splitlines() == ["2\talpha", "1\tBeta [x]"]

    cli.main(["list", "-o", "-t", "x"])
    assert capsys.readouterr().out.splitlines() == ["1\tBeta [x]"]

    cli.main(["list", "-o", "-l", "1", "-s", "title"])
    assert capsys.readouterr().out.splitlines() == ["2\talpha"]


def test_list_empty(env, capsys):
    cli.main(["list"])
    assert "No notes found." in capsys.readouterr().out


def test_edit_changes_only_given_fields(env):
    cli.main(["add", "Title", "Body", "-t", "a"])
    assert cli.main(["edit", "1", "-c", "New body"]) == 0
    with open_db(env) as db:
        note = db.get(1)
    assert (note.title, note.content, note.tags) == ("Title", "New body", ["a"])


def test_delete_with_yes(env, capsys):
    cli.main(["add", "Gone", "x"])
    assert cli.main(["delete", "gone", "-y"]) == 0
    assert "Note 1 deleted." in capsys.readouterr().out
    with open_db(env) as db:
        assert db.list_all() == []


def test_delete_declined(env, capsys, monkeypatch):
    cli.main(["add", "Kept", "x"])
    monkeypatch.setattr("builtins.input", lambda prompt: "n")
    cli.main(["delete", "1"])
    assert "Deletion cancelled." in capsys.readouterr().out
    with open_db(env) as db:
        assert len(db.list_all()) == 1


def test_missing_note_exits_with_error(env, capsys):
    assert cli.main(["show", "7"]) == 1
    assert "Note with ID 7 not found" in capsys.readouterr().err


def test_ambiguous_title(env, capsys):
    cli.main(["add", "Grocery list", "x"])
    cli.main(["add", "Groceries", "y"])
    assert cli.main(["show", "groc"]) == 1
    err = capsys.readouterr().err
    assert "Multiple notes found matching 'groc'" in err
    assert "[1] Grocery list" in err


def test_search(env, capsys):
    cli.main(["add", "Budget", "monthly", "-t", "finance"])
    capsys.readouterr()
    cli.main(["search", "month"])
    assert "Found 1 note(s):" in capsys.readouterr().out
    cli.main(["search", "zzz"])
    assert "No notes found matching 'zzz'." in capsys.readouterr().out


def test_export_and_import(env, capsys):
    cli.main(["add", "Trip plan", "Pack bags", "-t", "travel"])
    assert cli.main(["export", "trip"]) == 0
    exported = env / "Trip_plan.md"
    assert exported.read_text(encoding="utf-8") == "Trip plan\n@travel\n\nPack bags"

    capsys.readouterr()
    assert cli.main(["import", str(exported), str(env / "missing.md")]) == 0
    captured = capsys.readouterr()
    assert "Imported 1 note(s)" in captured.out
    assert "File not found" in captured.err
    with open_db(env) as db:
        assert [n.title for n in db.list_all()].count("Trip plan") == 2


def test_import_skips_undecodable_file(env, capsys):
    latin = env / "latin.md"
    latin.write_bytes("Caf\xe9 notes\n\nbody".encode("latin-1"))
    good = env / "good.md"
    good.write_text("Good\n\nbody", encoding="utf-8")

    assert cli.main(["import", str(latin), str(good)]) == 0
    captured = capsys.readouterr()
    assert "Imported 1 note(s)" in captured.out
    assert f"Could not parse: {latin}" in captured.err
    with open_db(env) as db:
        assert [n.title for n in db.list_all()] == ["Good"]


def test_tags_and_stats(env, capsys):
    cli.main(["add", "A", "x", "-t", "work,home"])
    cli.main(["add", "B", "y", "-t", "work"])
    capsys.readouterr()

    cli.main(["tags"])
    assert capsys.readouterr().out.splitlines() == ["Tags (2 total):", "  work (2)", "  home (1)"]

    cli.main(["stats"])
    out = capsys.readouterr().out
    assert "Total notes:      2" in out
    assert "Unique tags:      2" in out


def test_stats_empty(env, capsys):
    cli.main(["stats"])
    assert "No notes yet!" in capsys.readouterr().out


def test_config_generate_and_show(env, capsys):
    assert cli.main(["config"]) == 0
    assert json.loads((env / "config.json").read_text(encoding="utf-8"))["keybindings"]["quit"] == "q"
    capsys.readouterr()
    assert cli.main(["config", "--show"]) == 0
    assert "Config file location" in capsys.readouterr().out


def test_invalid_config_exits_with_error(env, capsys):
    (env / "config.json").write_text('{"ui": {"split_ratio": 2}}', encoding="utf-8")
    assert cli.main(["list"]) == 1
    assert "split_ratio" in capsys.readouterr().err


def test_no_command_opens_browser(env, monkeypatch):
    opened = []
    monkeypatch.setattr(cli.tui, "run", lambda storage, config: opened.append(config))
    assert cli.main([]) == 0
    assert len(opened) == 1


def test_configure_logging_handlers(tmp_path):
    logger = logging.getLogger("qnote")
    cli.configure_logging(Config(), interactive=True)
    assert isinstance(logger.handlers[0], logging.NullHandler)

    cli.configure_logging(Config(), interactive=False)
    assert isinstance(logger.handlers[0], logging.StreamHandler)

    log_file = tmp_path / "logs" / "qnote.log"
    config = Config.from_dict({"logging": {"file": str(log_file), "level": "DEBUG"}})
    cli.configure_logging(config, interactive=True)
    handler = logger.handlers[0]
    assert isinstance(handler, logging.FileHandler)
    assert logger.level == logging.DEBUG
    handler.close()
    logger.removeHandler(handler)
