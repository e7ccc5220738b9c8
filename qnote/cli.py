"""
qnote - a quick note-taking app for the terminal.

Running ``qnote`` without a command (or ``qnote tui``) opens the full-screen
browser. The other commands work on the same database from scripts:

    qnote add "Groceries" "milk, eggs" -t home,errands
    qnote list -o -s title
    qnote show groc
    qnote export 3 -o groceries.md

Configuration:
    - Config file: ~/.config/qnote/config.json (override with $QNOTE_CONFIG)
    - Editor: editor.default_editor, else $VISUAL / $EDITOR (defaults to vi)
"""

import argparse
import json
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import List, Optional

from . import __version__, tui
from .config import Config, ConfigError, get_config_path, load_config, save_config
from .db import Database, StorageError
from .note import (
    Note,
    format_date_full,
    format_date_only,
    note_to_markdown,
    parse_markdown_file,
    parse_tags,
    sanitize_filename,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
SEPARATOR = "=" * 50
SORT_CHOICES = ("updated", "created", "title")


# --- Color Constants ---
class Colors:
    """ANSI color codes for terminal output."""
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BOLD = '\033[1m'
    END = '\033[0m'


class NoteNotFound(LookupError):
    """No note matches the given id or title pattern."""


class AmbiguousNote(LookupError):
    """Several notes match a title pattern."""

    def __init__(self, pattern: str, matches: List[Note]):
        super().__init__(f"Multiple notes found matching '{pattern}'")
        self.pattern = pattern
        self.matches = matches


def configure_logging(config: Config, interactive: bool) -> None:
    """
    Attach a handler to the ``qnote`` logger.

    Records go to ``logging.file`` when configured. Otherwise one-shot
    commands log to stderr and the full-screen UI, which owns the terminal,
    discards them.
    """
    root = logging.getLogger("qnote")
    root.setLevel(config.logging.level.upper())
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if config.logging.file:
        path = Path(config.logging.file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path, encoding="utf-8")
    elif interactive:
        handler = logging.NullHandler()
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.propagate = False


def confirm(prompt: str) -> bool:
    answer = input(f"{prompt} (y/N): ").strip()
    return answer in ("y", "Y", "yes", "Yes")


def resolve_note(db: Database, id_or_title: str) -> Note:
    """
    Find a note by numeric id or by a unique title substring.

    Raises:
        NoteNotFound: If nothing matches
        AmbiguousNote: If the title pattern matches more than one note
    """
    try:
        note_id = int(id_or_title)
    except ValueError:
        note_id = None
    if note_id is not None:
        note = db.get(note_id)
        if note is None:
            raise NoteNotFound(f"Note with ID {note_id} not found")
        return note

    pattern = id_or_title.lower()
    matches = [n for n in db.list_all() if pattern in n.title.lower()]
    if not matches:
        raise NoteNotFound(f"No notes found matching '{id_or_title}'")
    if len(matches) > 1:
        raise AmbiguousNote(id_or_title, matches)
    return matches[0]


# --- Commands ---

def cmd_add(db: Database, args) -> None:
    note_id = db.create(Note(args.title, args.content, parse_tags(args.tags)))
    print(f"{Colors.GREEN}{Colors.BOLD}✓ Note created with ID: {note_id}{Colors.END}")


def cmd_list(db: Database, args) -> None:
    notes = db.list_all()
    if args.tag:
        notes = [n for n in notes if args.tag in n.tags]

    if args.sort == "created":
        notes.sort(key=lambda n: n.created_at, reverse=True)
    elif args.sort == "title":
        notes.sort(key=lambda n: n.title.lower())
    else:
        notes.sort(key=lambda n: n.updated_at, reverse=True)

    if args.limit is not None:
        notes = notes[:args.limit]

    if not notes:
        print("No notes found.")
        return
    for note in notes:
        if args.oneline:
            tags = f" [{', '.join(note.tags)}]" if note.tags else ""
            print(f"{note.id}\t{note.title}{tags}")
        else:
            print(f"\n{Colors.BOLD}[{note.id}] {note.title}{Colors.END}")
            print(f"Tags: {', '.join(note.tags)}")
            print(f"Updated: {format_date_full(note.updated_at)}")


def cmd_show(db: Database, args) -> None:
    note = resolve_note(db, args.note)
    print(f"\n{SEPARATOR}")
    print(f"{Colors.BOLD}Title: {note.title}{Colors.END}")
    print(f"Tags: {', '.join(note.tags)}")
    print(f"Created: {format_date_full(note.created_at)}")
    print(f"Updated: {format_date_full(note.updated_at)}")
    print(f"{SEPARATOR}\n\n{note.content}\n")


def cmd_edit(db: Database, args) -> None:
    note = resolve_note(db, args.note)
    title = args.title if args.title is not None else note.title
    content = args.content if args.content is not None else note.content
    tags = parse_tags(args.tags) if args.tags is not None else note.tags
    db.update(note.id, title, content, tags)
    print(f"{Colors.GREEN}✓ Note {note.id} updated.{Colors.END}")


def cmd_delete(db: Database, args) -> None:
    note = resolve_note(db, args.note)
    print(f"Found: [{note.id}] {note.title}")
    if args.yes or confirm("Delete this note?"):
        db.delete(note.id)
        print(f"{Colors.GREEN}✓ Note {note.id} deleted.{Colors.END}")
    else:
        print(f"{Colors.YELLOW}Deletion cancelled.{Colors.END}")


def cmd_search(db: Database, args) -> None:
    notes = db.search(args.query)
    if not notes:
        print(f"No notes found matching '{args.query}'.")
        return
    print(f"Found {len(notes)} note(s):")
    for note in notes:
        print(f"\n{Colors.BOLD}[{note.id}] {note.title}{Colors.END}")
        print(f"Tags: {', '.join(note.tags)}")


def cmd_export(db: Database, args) -> None:
    note = resolve_note(db, args.note)
    filename = args.output or f"{sanitize_filename(note.title)}.md"
    Path(filename).write_text(note_to_markdown(note), encoding="utf-8")
    print(f"{Colors.GREEN}✓ Exported to: {filename}{Colors.END}")


def cmd_import(db: Database, args) -> None:
    imported = 0
    for file_path in args.files:
        path = Path(file_path)
        if not path.exists():
            print(f"{Colors.YELLOW}Warning: File not found: {file_path}{Colors.END}", file=sys.stderr)
            continue
        try:
            draft = parse_markdown_file(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", file_path, e)
            draft = None
        if draft is None:
            print(f"{Colors.YELLOW}Warning: Could not parse: {file_path}{Colors.END}", file=sys.stderr)
            continue
        db.create(Note.from_draft(draft))
        imported += 1
        print(f"Imported: {path}")
    print(f"\nImported {imported} note(s)")


def cmd_tags(db: Database, args) -> None:
    counts = Counter(tag for note in db.list_all() for tag in note.tags)
    if not counts:
        print("No tags found.")
        return
    print(f"Tags ({len(counts)} total):")
    for tag, count in sorted(counts.items(), key=lambda item: (-item[1], item[0])):
        print(f"  {tag} ({count})")


def cmd_stats(db: Database, args) -> None:
    notes = db.list_all()
    if not notes:
        print("No notes yet!")
        return
    unique_tags = {tag for note in notes for tag in note.tags}
    size_kb = sum(len(n.title) + len(n.content) for n in notes) / 1024
    oldest = min(notes, key=lambda n: n.created_at)
    newest = max(notes, key=lambda n: n.updated_at)
    print(f"\n{SEPARATOR}")
    print(f"{Colors.HEADER}{Colors.BOLD}qnote Statistics{Colors.END}")
    print(SEPARATOR)
    print(f"Total notes:      {len(notes)}")
    print(f"Unique tags:      {len(unique_tags)}")
    print(f"Total size:       {size_kb:.2f} KB")
    print(f"Oldest note:      {oldest.title} ({format_date_only(oldest.created_at)})")
    print(f"Most recent:      {newest.title} ({format_date_full(newest.updated_at)})")
    print(SEPARATOR)


def cmd_config(args) -> None:
    path = get_config_path()
    if args.show:
        config = load_config(path)
        print("Current configuration:\n")
        print(json.dumps(config.to_dict(), indent=4))
        print(f"\nConfig file location: {path}")
        return

    if path.exists():
        print(f"Config file already exists at: {path}")
        if not confirm("Overwrite existing config?"):
            print("Cancelled.")
            return
    save_config(Config(), path)
    print(f"{Colors.GREEN}✓ Generated default configuration file at: {path}{Colors.END}")
    print("\nYou can edit this file to customize qnote's behavior.")


COMMANDS = {
    "add": cmd_add,
    "list": cmd_list,
    "show": cmd_show,
    "edit": cmd_edit,
    "delete": cmd_delete,
    "search": cmd_search,
    "export": cmd_export,
    "import": cmd_import,
    "tags": cmd_tags,
    "stats": cmd_stats,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="qnote", description="A quick note-taking app")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("add", help="Add a new note")
    p.add_argument("title")
    p.add_argument("content")
    p.add_argument("-t", "--tags", help="Comma-separated tags")

    p = sub.add_parser("list", help="List notes")
    p.add_argument("-t", "--tag", help="Only notes with this tag")
    p.add_argument("-o", "--oneline", action="store_true", help="One note per line")
    p.add_argument("-s", "--sort", choices=SORT_CHOICES, default="updated")
    p.add_argument("-l", "--limit", type=int)

    p = sub.add_parser("show", help="Show a note")
    p.add_argument("note", help="Note ID or title pattern")

    p = sub.add_parser("edit", help="Change a note's title, content or tags")
    p.add_argument("note", help="Note ID or title pattern")
    p.add_argument("-t", "--title")
    p.add_argument("-c", "--content")
    p.add_argument("-g", "--tags", help="Comma-separated tags")

    p = sub.add_parser("delete", help="Delete a note")
    p.add_argument("note", help="Note ID or title pattern")
    p.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")

    p = sub.add_parser("search", help="Search notes by keyword")
    p.add_argument("query")

    p = sub.add_parser("export", help="Export a note to markdown")
    p.add_argument("note", help="Note ID or title pattern")
    p.add_argument("-o", "--output", help="Output file (default: <title>.md)")

    p = sub.add_parser("import", help="Import notes from markdown files")
    p.add_argument("files", nargs="+")

    sub.add_parser("tags", help="List all tags with note counts")
    sub.add_parser("stats", help="Show note statistics")

    p = sub.add_parser("config", help="Generate a default configuration file")
    p.add_argument("-s", "--show", action="store_true", help="Show the current configuration")

    sub.add_parser("tui", help="Open the interactive browser (default)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for qnote."""
    args = build_parser().parse_args(argv)
    try:
        if args.command == "config":
            cmd_config(args)
            return 0

        config = load_config()
        interactive = args.command in (None, "tui")
        configure_logging(config, interactive)
        with Database(config.db_path, config.database) as db:
            if interactive:
                tui.run(db, config)
            else:
                COMMANDS[args.command](db, args)
        return 0
    except KeyboardInterrupt:
        print("\n\nGoodbye! 👋")
        return 0
    except AmbiguousNote as e:
        print(f"{Colors.RED}{Colors.BOLD}✗ {e}:{Colors.END}", file=sys.stderr)
        for note in e.matches:
            print(f"  [{note.id}] {note.title}", file=sys.stderr)
        print("Please specify a more specific pattern or use the exact ID", file=sys.stderr)
        return 1
    except (NoteNotFound, StorageError, ConfigError, OSError) as e:
        print(f"{Colors.RED}{Colors.BOLD}✗ {e}{Colors.END}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
