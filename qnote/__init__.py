"""qnote - a terminal note browser with fuzzy search and an external editor."""

__version__ = "0.1.0"
