"""
Read-only access to a Zotero SQLite database.

The schema belongs to Zotero. This module only reads it, through one
static query that collects each top-level item's title, tags and
attachment pairs. Attachment rows that belong to a parent item are
excluded from the result; their keys show up in the parent's
attachments column instead.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Optional

from .errors import DatabaseNotFoundError, ItemNotFoundError, RepositoryError
from .types import Item

logger = logging.getLogger(__name__)


BASE_QUERY = """
    SELECT
        i.key AS key,
        idv.value AS title,
        GROUP_CONCAT(DISTINCT t.name) AS tags,
        GROUP_CONCAT(DISTINCT child.key || ':' || COALESCE(ia.path, '')) AS attachments
    FROM items i
    LEFT JOIN itemData id ON i.itemID = id.itemID
    LEFT JOIN itemDataValues idv ON id.valueID = idv.valueID
    LEFT JOIN itemTypes it ON i.itemTypeID = it.itemTypeID
    LEFT JOIN itemTags itag ON i.itemID = itag.itemID
    LEFT JOIN tags t ON itag.tagID = t.tagID
    LEFT JOIN itemAttachments ia ON (ia.parentItemID = i.itemID OR ia.itemID = i.itemID)
    LEFT JOIN items child ON ia.itemID = child.itemID
    WHERE it.display = 1
        AND id.fieldID = (SELECT fieldID FROM fields WHERE fieldName = 'title')
        AND NOT EXISTS (
            SELECT 1 FROM itemAttachments
            WHERE itemAttachments.itemID = i.itemID
            AND itemAttachments.parentItemID IS NOT NULL)"""

GROUP_BY = " GROUP BY i.itemID"


class Repository:
    """
    Query interface over a Zotero database.

    The connection is opened once in read-only, immutable mode so the
    database can be read while Zotero itself holds it open.
    """

    def __init__(self, db_path: Path):
        """
        Args:
            db_path: Path to zotero.sqlite

        Raises:
            DatabaseNotFoundError: If the file doesn't exist
            RepositoryError: If SQLite can't open it
        """
        self._db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._open()

    def _open(self) -> None:
        if not self._db_path.is_file():
            raise DatabaseNotFoundError(self._db_path)
        uri = f"{self._db_path.resolve().as_uri()}?mode=ro&immutable=1"
        try:
            self._conn = sqlite3.connect(uri, uri=True)
        except sqlite3.Error as e:
            raise RepositoryError(f"opening database {self._db_path}: {e}") from e
        self._conn.row_factory = sqlite3.Row
        logger.debug("Opened %s read-only", self._db_path)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "Repository":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _execute(self, query: str, params: tuple) -> list[sqlite3.Row]:
        if self._conn is None:
            raise RepositoryError("repository is closed")
        logger.debug("Query params=%r", params)
        try:
            return self._conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise RepositoryError(f"executing query: {e}") from e

    def get_by_stable_id(self, stable_id: str) -> Item:
        """
        Fetch a single item by its Zotero key.

        Raises:
            ItemNotFoundError: If no displayable item has that key
            RepositoryError: If the query fails
        """
        query = BASE_QUERY + " AND i.key = ?" + GROUP_BY
        rows = self._execute(query, (stable_id,))
        if not rows:
            raise ItemNotFoundError(stable_id)
        return Item.from_row(rows[0])

    def list_items(self, title_filter: str = "", tag_filter: str = "") -> list[Item]:
        """
        List items, optionally filtered by title and tag substrings.

        Both filters are case-insensitive (SQLite LIKE) and combined with
        AND. When a tag filter is given, only matching tag names are
        aggregated into each item's tags column.
        """
        conditions = []
        params: list[str] = []
        if title_filter:
            conditions.append("idv.value LIKE ?")
            params.append(f"%{title_filter}%")
        if tag_filter:
            conditions.append("t.name LIKE ?")
            params.append(f"%{tag_filter}%")

        query = BASE_QUERY
        if conditions:
            query += " AND " + " AND ".join(conditions)
        query += GROUP_BY

        items = [Item.from_row(row) for row in self._execute(query, tuple(params))]
        logger.debug("Listed %d items", len(items))
        return items
