"""
Data types for Zotero items and their attachments.
"""

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


# Zotero marks files kept in its own storage tree with this prefix
STORAGE_PREFIX = "storage:"

TITLE_WIDTH = 25
TAGS_WIDTH = 15


@dataclass(frozen=True)
class Attachment:
    """One attachment pair: the attachment item's key and its stored path."""
    key: str
    path: str


@dataclass(frozen=True)
class Item:
    """
    A Zotero library item as returned by the repository query.

    Tags and attachments are kept exactly as aggregated by SQLite:
    comma-joined strings, or None when the item has none.
    """
    stable_id: str
    title: str
    tags: Optional[str] = None
    attachments: Optional[str] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Item":
        return cls(
            stable_id=row["key"],
            title=row["title"] or "",
            tags=row["tags"],
            attachments=row["attachments"],
        )

    def tag_list(self) -> list[str]:
        if not self.tags:
            return []
        return self.tags.split(",")

    def attachment_list(self) -> list[Attachment]:
        """Parse attachment pairs, splitting each on its first colon.

        Pairs without a colon are skipped.
        """
        if not self.attachments:
            return []
        result = []
        for pair in self.attachments.split(","):
            key, sep, path = pair.partition(":")
            if not sep:
                continue
            result.append(Attachment(key=key, path=path))
        return result


def truncate(s: str, n: int) -> str:
    """Shorten to n characters, ending in '...' when cut."""
    if len(s) <= n:
        return s
    return s[:n - 3] + "..."


def storage_path_for(storage_root: Path, attachment: Attachment) -> Path:
    """Filesystem path of an attachment: <root>/<key>/<path minus 'storage:'>."""
    relative = attachment.path
    if relative.startswith(STORAGE_PREFIX):
        relative = relative[len(STORAGE_PREFIX):]
    return Path(storage_root) / attachment.key / relative


def first_storage_path(storage_root: Path, item: Item) -> Optional[Path]:
    """Path of the item's first attachment pair.

    None if the item has no attachments or the first pair has no colon.
    """
    if not item.attachments:
        return None
    first = item.attachments.split(",", 1)[0]
    key, sep, path = first.partition(":")
    if not sep:
        return None
    return storage_path_for(storage_root, Attachment(key=key, path=path))
