"""Configuration loading for MentorDesk.

Settings live in ``~/.config/mentordesk/config.toml``. Set
``MENTORDESK_HOME`` to use another directory.
"""

import copy
import os
from pathlib import Path
from typing import Optional

import toml

from mentordesk.errors import ValidationError

DEFAULT_CONFIG = {
    "database": {
        "path": "",  # Empty means <config dir>/mentordesk.db
    },
    "journal": {
        "enforce_status_from_pnl": True,
        "default_source": "demo",  # demo, live or paper
        "user_id": "",
    },
    "rules": {
        "min_token_length": 4,
    },
}


def get_config_dir() -> Path:
    """Directory holding the config file and default database."""
    override = os.environ.get("MENTORDESK_HOME")
    if override:
        return Path(override)
    return Path.home() / ".config" / "mentordesk"


def get_config_path() -> Path:
    return get_config_dir() / "config.toml"


def _merge(base: dict, overrides: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration merged over the defaults.

    Args:
        config_path: Optional explicit file. Defaults to :func:`get_config_path`.

    Returns:
        Config dict. Defaults are returned when the file does not exist.

    Raises:
        ValidationError: If the file is not valid TOML.
    """
    config_path = config_path or get_config_path()

    if not config_path.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        return _merge(DEFAULT_CONFIG, toml.load(config_path))
    except toml.TomlDecodeError as e:
        raise ValidationError(f"Invalid config file {config_path}: {e}") from e


def create_template_config(config_path: Optional[Path] = None) -> Path:
    """Write the default configuration to disk.

    Returns:
        Path of the written file.
    """
    config_path = config_path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        toml.dump(DEFAULT_CONFIG, f)

    return config_path


def get_db_path(config: dict) -> Path:
    """Resolve the SQLite database path from config."""
    path = config.get("database", {}).get("path")
    if path:
        return Path(path).expanduser()
    return get_config_dir() / "mentordesk.db"


def get_data_store(config: dict):
    """Build the data store described by config."""
    from mentordesk.db.store import DataStore

    return DataStore(get_db_path(config))
