"""
Errors and error logging for the store-zotero CLI.

Logs full stack traces for debugging while showing clean messages to users.
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path


class StoreZoteroError(Exception):
    """Base class for errors the CLI reports as a one-line message."""


class ConfigError(StoreZoteroError):
    """Configuration file is unreadable or holds invalid values."""


class RepositoryError(StoreZoteroError):
    """Opening or querying the Zotero database failed."""


class DatabaseNotFoundError(RepositoryError):
    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"database not found: {path}")


class ItemNotFoundError(RepositoryError):
    def __init__(self, stable_id: str):
        self.stable_id = stable_id
        super().__init__(f"item not found: {stable_id}")


class AttachmentNotFoundError(StoreZoteroError):
    def __init__(self, stable_id: str):
        self.stable_id = stable_id
        super().__init__(f"no attachment found for item: {stable_id}")


class OpenError(StoreZoteroError):
    """The OS opener could not be launched or exited non-zero."""


def _error_log_path() -> Path:
    """Resolve error log path, respecting STORE_ZOTERO_HOME."""
    home = os.environ.get("STORE_ZOTERO_HOME")
    if home:
        return Path(home) / "errors.log"
    return Path.home() / ".store-zotero" / "errors.log"


def log_exception(exc: Exception, context: str = "") -> Path:
    """
    Log exception with full traceback to file.

    Args:
        exc: The exception that occurred
        context: Optional context string (e.g., command name)

    Returns:
        Path to the error log file
    """
    log_path = _error_log_path()
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a") as f:
            f.write(f"\n{'='*60}\n")
            f.write(f"[{timestamp}]")
            if context:
                f.write(f" {context}")
            f.write("\n")
            f.write("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    except OSError:
        pass  # Can't write error log
    return log_path
