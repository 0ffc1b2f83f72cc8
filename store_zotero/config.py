"""
Configuration for store-zotero.

Settings live in a TOML file with a single [zotero] table:

    [zotero]
    db_path = "~/Zotero/zotero.sqlite"
    storage_path = "~/Zotero/storage"
    version = "1.0"
    opener = "open"

Values are resolved once at startup and never change afterwards.
"""

import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

import tomli_w

from .errors import ConfigError


CONFIG_FILENAME = "store-zotero.toml"
DEFAULT_VERSION = "1.0"

ENV_CONFIG = "STORE_ZOTERO_CONFIG"
ENV_DB = "STORE_ZOTERO_DB"
ENV_STORAGE = "STORE_ZOTERO_STORAGE"
ENV_HOME = "STORE_ZOTERO_HOME"


@dataclass(frozen=True)
class Config:
    """Resolved settings for one process."""
    db_path: Path
    storage_path: Path
    version: str = DEFAULT_VERSION
    # Command used to open attachments; None means the platform default
    opener: Optional[str] = None


def get_tool_directory() -> Path:
    """Directory holding the config file and error log."""
    home = os.environ.get(ENV_HOME)
    if home:
        return Path(home).expanduser()
    return Path.home() / ".store-zotero"


def default_config_path() -> Path:
    """Config file location: STORE_ZOTERO_CONFIG or the tool directory."""
    env = os.environ.get(ENV_CONFIG)
    if env:
        return Path(env).expanduser()
    return get_tool_directory() / CONFIG_FILENAME


def default_config() -> Config:
    """Zotero's own defaults: data directory ~/Zotero."""
    data_dir = Path.home() / "Zotero"
    return Config(
        db_path=data_dir / "zotero.sqlite",
        storage_path=data_dir / "storage",
    )


def load_config(config_path: Path, base: Optional[Config] = None) -> Config:
    """
    Load configuration from a TOML file.

    Keys missing from the file keep their value from *base*
    (defaults when not given).

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigError: If the file is not valid TOML or a value has the wrong type
    """
    config = base if base is not None else default_config()

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"invalid config file {config_path}: {e}") from e

    section = data.get("zotero", {})
    if not isinstance(section, dict):
        raise ConfigError(f"invalid config file {config_path}: [zotero] must be a table")

    def get_str(key: str) -> Optional[str]:
        value: Any = section.get(key)
        if value is None:
            return None
        if not isinstance(value, str):
            raise ConfigError(
                f"invalid config file {config_path}: {key} must be a string"
            )
        return value

    updates: dict[str, Any] = {}
    for key in ("db_path", "storage_path"):
        value = get_str(key)
        if value is not None:
            updates[key] = Path(value).expanduser()
    for key in ("version", "opener"):
        value = get_str(key)
        if value is not None:
            updates[key] = value

    return replace(config, **updates)


def save_config(config: Config, config_path: Path) -> None:
    """
    Save configuration as TOML.

    Creates the parent directory if it doesn't exist.
    """
    config_path.parent.mkdir(parents=True, exist_ok=True)

    section = {
        "db_path": str(config.db_path),
        "storage_path": str(config.storage_path),
        "version": config.version,
    }
    if config.opener:
        section["opener"] = config.opener

    with open(config_path, "wb") as f:
        tomli_w.dump({"zotero": section}, f)


def resolve_config(
    config_path: Optional[Path] = None,
    db_path: Optional[Path] = None,
    storage_path: Optional[Path] = None,
    allow_missing: bool = False,
) -> Config:
    """
    Build the process configuration.

    Precedence, highest first: explicit arguments, environment
    variables, config file, defaults. A missing config file is not an
    error unless it was named explicitly and *allow_missing* is False.
    """
    config = default_config()

    explicit = config_path is not None
    path = config_path if explicit else default_config_path()
    if path.exists():
        config = load_config(path, base=config)
    elif explicit and not allow_missing:
        raise ConfigError(f"config file not found: {path}")

    updates: dict[str, Any] = {}
    env_db = os.environ.get(ENV_DB)
    if env_db:
        updates["db_path"] = Path(env_db).expanduser()
    env_storage = os.environ.get(ENV_STORAGE)
    if env_storage:
        updates["storage_path"] = Path(env_storage).expanduser()
    if db_path is not None:
        updates["db_path"] = db_path.expanduser()
    if storage_path is not None:
        updates["storage_path"] = storage_path.expanduser()

    return replace(config, **updates)
