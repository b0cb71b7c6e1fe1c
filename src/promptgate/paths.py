"""Where promptgate keeps files on disk.

Follows the XDG base directory layout:

- config: ``$XDG_CONFIG_HOME/promptgate/config.yaml`` (``~/.config`` when unset)
- state:  ``$XDG_DATA_HOME/promptgate/`` (``~/.local/share`` when unset)
"""

from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "promptgate"

CONFIG_FILENAME = "config.yaml"
SQLITE_FILENAME = "state.db"
JSON_FILENAME = "state.json"


def _xdg_base(variable: str, *fallback: str) -> Path:
    value = os.environ.get(variable)
    if value:
        return Path(value).expanduser()
    return Path.home().joinpath(*fallback)


def get_config_home() -> Path:
    """Base directory for user config files."""
    return _xdg_base("XDG_CONFIG_HOME", ".config")


def get_data_home() -> Path:
    """Base directory for user data files."""
    return _xdg_base("XDG_DATA_HOME", ".local", "share")


def get_default_config_path() -> Path:
    return get_config_home() / APP_NAME / CONFIG_FILENAME


def get_default_state_dir() -> Path:
    """Directory holding the persisted engagement record."""
    return get_data_home() / APP_NAME
