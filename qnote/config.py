"""
Configuration for qnote.

The configuration lives in a JSON file (``config.json``) under
``$XDG_CONFIG_HOME/qnote`` (default ``~/.config/qnote``). ``QNOTE_CONFIG``
points at an alternative file. Missing sections and keys take their
defaults; the file is written with defaults on first run.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

from prompt_toolkit.styles import parse_color

logger = logging.getLogger(__name__)

APP_NAME = "qnote"
CONFIG_FILENAME = "config.json"
DB_FILENAME = "notes.db"

# Keys the list screen binds regardless of configuration.
RESERVED_KEYS = {" ", ".", "a", "A", "C", "D", "X"}

SYNCHRONOUS_MODES = ("OFF", "NORMAL", "FULL", "EXTRA")
TEMP_STORES = ("DEFAULT", "FILE", "MEMORY")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """The configuration file is unreadable or holds invalid values."""


@dataclass(frozen=True)
class UiConfig:
    split_ratio: float = 0.4
    message_display_keypresses: int = 5
    preview_scroll_step: int = 3
    preview_max_scroll_buffer: int = 10
    header_lines: int = 3
    max_markdown_formatting_buffer: int = 10


@dataclass(frozen=True)
class KeybindingsConfig:
    quit: str = "q"
    new_note: str = "n"
    delete: str = "d"
    edit: str = "e"
    search: str = "/"
    export: str = "x"
    sort: str = "s"
    goto_top: str = "g"
    goto_bottom: str = "G"
    move_down: str = "j"
    move_up: str = "k"


@dataclass(frozen=True)
class EditorConfig:
    default_editor: Optional[str] = None
    secure_temp_files: bool = True


@dataclass(frozen=True)
class DatabaseConfig:
    path: Optional[str] = None
    wal_mode: bool = True
    cache_size_kb: int = -64000
    synchronous: str = "NORMAL"
    temp_store: str = "MEMORY"


@dataclass(frozen=True)
class ExportConfig:
    directory: str = "."


@dataclass(frozen=True)
class LoggingConfig:
    file: Optional[str] = None
    level: str = "INFO"


# Tokyo Night
@dataclass(frozen=True)
class ThemeConfig:
    text: str = "#c0caf5"
    unselected_text: str = "#565f89"
    metadata: str = "#565f89"
    hover_indicator: str = "#7aa2f7"
    selection_indicator: str = "#e0af68"
    active_indicator: str = "#ff9e64"
    search_highlight: str = "#bb9af7"
    h1: str = "#7dcfff"
    h2: str = "#7aa2f7"
    h3: str = "#7dcfff"
    h4_h6: str = "#7aa2f7"
    code: str = "#9ece6a"
    code_block: str = "#9ece6a"
    link: str = "#7aa2f7"
    emphasis: str = "#ff9e64"
    strong: str = "#c0caf5"
    strikethrough: str = "#565f89"
    blockquote: str = "#565f89"


_SECTIONS = {
    "ui": UiConfig,
    "keybindings": KeybindingsConfig,
    "editor": EditorConfig,
    "database": DatabaseConfig,
    "export": ExportConfig,
    "logging": LoggingConfig,
    "theme": ThemeConfig,
}


@dataclass(frozen=True)
class Config:
    """Immutable settings bundle handed to the UI and the commands."""

    ui: UiConfig = field(default_factory=UiConfig)
    keybindings: KeybindingsConfig = field(default_factory=KeybindingsConfig)
    editor: EditorConfig = field(default_factory=EditorConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    theme: ThemeConfig = field(default_factory=ThemeConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """
        Build a config from parsed JSON, ignoring unknown keys.

        Raises:
            ConfigError: If a section is not a JSON object or a value has the
                wrong type
        """
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a JSON object")
        sections = {}
        for name, section_cls in _SECTIONS.items():
            raw = data.get(name, {})
            if not isinstance(raw, dict):
                raise ConfigError(f"Section '{name}' must be a JSON object")
            sections[name] = _build_section(name, section_cls, raw)
        config = cls(**sections)
        config.validate()
        return config

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(self) -> None:
        """
        Check value ranges and keybinding sanity.

        Raises:
            ConfigError: On the first invalid value found
        """
        ui = self.ui
        if not 0.1 <= ui.split_ratio <= 0.9:
            raise ConfigError("ui.split_ratio must be between 0.1 and 0.9")
        for name in (
            "message_display_keypresses",
            "preview_scroll_step",
            "preview_max_scroll_buffer",
            "header_lines",
        ):
            if getattr(ui, name) <= 0:
                raise ConfigError(f"ui.{name} must be greater than 0")
        if ui.max_markdown_formatting_buffer < 0:
            raise ConfigError("ui.max_markdown_formatting_buffer must not be negative")

        seen: Dict[str, str] = {}
        for f in fields(self.keybindings):
            key = getattr(self.keybindings, f.name)
            if not isinstance(key, str) or len(key) != 1 or not key.isprintable():
                raise ConfigError(f"keybindings.{f.name} must be a single printable character")
            if key in RESERVED_KEYS:
                raise ConfigError(f"keybindings.{f.name} uses reserved key '{key}'")
            if key in seen:
                raise ConfigError(f"keybindings.{f.name} and keybindings.{seen[key]} are both '{key}'")
            seen[key] = f.name

        if self.database.synchronous not in SYNCHRONOUS_MODES:
            raise ConfigError(f"database.synchronous must be one of: {', '.join(SYNCHRONOUS_MODES)}")
        if self.database.temp_store not in TEMP_STORES:
            raise ConfigError(f"database.temp_store must be one of: {', '.join(TEMP_STORES)}")

        for f in fields(self.theme):
            value = getattr(self.theme, f.name)
            try:
                parse_color(value)
            except (ValueError, TypeError, AttributeError):
                raise ConfigError(f"theme.{f.name}: unknown color '{value}'")

        if self.logging.level.upper() not in LOG_LEVELS:
            raise ConfigError(f"logging.level must be one of: {', '.join(LOG_LEVELS)}")

    @property
    def db_path(self) -> Path:
        if self.database.path:
            return Path(self.database.path).expanduser()
        return get_data_dir() / DB_FILENAME


def _build_section(name: str, section_cls, raw: Dict[str, Any]):
    defaults = section_cls()
    values = {}
    for f in fields(section_cls):
        if f.name not in raw:
            continue
        value = raw[f.name]
        default = getattr(defaults, f.name)
        if isinstance(default, bool):
            ok = isinstance(value, bool)
        elif isinstance(default, float):
            ok = isinstance(value, (int, float)) and not isinstance(value, bool)
            value = float(value) if ok else value
        elif isinstance(default, int):
            ok = isinstance(value, int) and not isinstance(value, bool)
        else:
            ok = value is None or isinstance(value, str)
            if value is None and default is not None:
                ok = False
        if not ok:
            raise ConfigError(f"{name}.{f.name} has an invalid value: {value!r}")
        values[f.name] = value
    return section_cls(**values)


def get_config_path() -> Path:
    """Config file location: ``$QNOTE_CONFIG``, else the XDG config dir."""
    override = os.environ.get("QNOTE_CONFIG")
    if override:
        return Path(override).expanduser()
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / APP_NAME / CONFIG_FILENAME


def get_data_dir() -> Path:
    base = os.environ.get("XDG_DATA_HOME") or Path.home() / ".local" / "share"
    return Path(base) / APP_NAME


def load_config(path: Optional[Path] = None) -> Config:
    """
    Load configuration from the JSON file, creating it on first run.

    Args:
        path: Config file to read (defaults to ``get_config_path()``)

    Returns:
        The validated configuration

    Raises:
        ConfigError: If the file cannot be parsed or holds invalid values
    """
    path = path or get_config_path()
    if not path.exists():
        config = Config()
        try:
            save_config(config, path)
        except OSError as e:
            logger.warning("Could not write default config to %s: %s", path, e)
        return config

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to parse config file {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e
    return Config.from_dict(data)


def save_config(config: Config, path: Optional[Path] = None) -> Path:
    """
    Save configuration to the JSON file.

    Args:
        config: Configuration to save
        path: Destination (defaults to ``get_config_path()``)

    Returns:
        The path written
    """
    path = path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=4)
        f.write("\n")
    logger.info("Wrote configuration to %s", path)
    return path
