"""
Shared pytest fixtures for store-zotero tests.

Builds a miniature Zotero database containing just the tables the
repository query touches.
"""

import sqlite3
from pathlib import Path

import pytest


SCHEMA = """
CREATE TABLE itemTypes (
    itemTypeID INTEGER PRIMARY KEY,
    typeName TEXT,
    display INT DEFAULT 1
);
CREATE TABLE fields (
    fieldID INTEGER PRIMARY KEY,
    fieldName TEXT
);
CREATE TABLE items (
    itemID INTEGER PRIMARY KEY,
    itemTypeID INT NOT NULL,
    key TEXT NOT NULL UNIQUE
);
CREATE TABLE itemDataValues (
    valueID INTEGER PRIMARY KEY,
    value
);
CREATE TABLE itemData (
    itemID INT,
    fieldID INT,
    valueID INT,
    PRIMARY KEY (itemID, fieldID)
);
CREATE TABLE tags (
    tagID INTEGER PRIMARY KEY,
    name TEXT NOT NULL UNIQUE
);
CREATE TABLE itemTags (
    itemID INT NOT NULL,
    tagID INT NOT NULL,
    PRIMARY KEY (itemID, tagID)
);
CREATE TABLE itemAttachments (
    itemID INTEGER PRIMARY KEY,
    parentItemID INT,
    path TEXT
);
"""

ITEM_TYPES = [
    (1, "journalArticle", 1),
    (2, "book", 1),
    (3, "attachment", 1),
    (4, "annotation", 0),
]

FIELDS = [(1, "title"), (2, "date")]

# itemID, itemTypeID, key, title
ITEMS = [
    (1, 1, "AAAA1111", "Attention Is All You Need"),
    (2, 2, "BBBB2222", "Deep Learning"),
    (3, 1, "CCCC3333", "Neural Ordinary Differential Equations"),
    (4, 4, "DDDD4444", "Hidden annotation"),
    (10, 3, "ATT00001", "Full Text PDF"),
    (11, 3, "ATT00002", "Full Text PDF"),
    (12, 3, "ATT00003", "Supplement"),
    (13, 3, "EEEE5555", "Standalone scan"),
]

TAGS = [(1, "ml"), (2, "transformers"), (3, "ODE")]

ITEM_TAGS = [(1, 1), (1, 2), (2, 1), (3, 3)]

# itemID, parentItemID, path
ATTACHMENTS = [
    (10, 1, "storage:attention.pdf"),
    (11, 3, "storage:node.pdf"),
    (12, 3, "storage:node-supp.pdf"),
    (13, None, "storage:scan.pdf"),
]


def build_zotero_db(db_path: Path) -> Path:
    """Create a small Zotero-shaped database at *db_path*."""
    conn = sqlite3.connect(str(db_path))
    try:
        conn.executescript(SCHEMA)
        conn.executemany("INSERT INTO itemTypes VALUES (?, ?, ?)", ITEM_TYPES)
        conn.executemany("INSERT INTO fields VALUES (?, ?)", FIELDS)
        value_id = 0
        for item_id, type_id, key, title in ITEMS:
            conn.execute("INSERT INTO items VALUES (?, ?, ?)", (item_id, type_id, key))
            value_id += 1
            conn.execute("INSERT INTO itemDataValues VALUES (?, ?)", (value_id, title))
            conn.execute("INSERT INTO itemData VALUES (?, 1, ?)", (item_id, value_id))
        # A non-title field, so the title restriction has something to exclude
        conn.execute("INSERT INTO itemDataValues VALUES (100, '2016')")
        conn.execute("INSERT INTO itemData VALUES (2, 2, 100)")
        conn.executemany("INSERT INTO tags VALUES (?, ?)", TAGS)
        conn.executemany("INSERT INTO itemTags VALUES (?, ?)", ITEM_TAGS)
        conn.executemany("INSERT INTO itemAttachments VALUES (?, ?, ?)", ATTACHMENTS)
        conn.commit()
    finally:
        conn.close()
    return db_path


@pytest.fixture
def zotero_db(tmp_path) -> Path:
    """Path to a freshly built miniature Zotero database."""
    return build_zotero_db(tmp_path / "zotero.sqlite")


@pytest.fixture
def storage_dir(tmp_path) -> Path:
    path = tmp_path / "storage"
    path.mkdir()
    return path


@pytest.fixture
def repo(zotero_db):
    from store_zotero.repository import Repository

    r = Repository(zotero_db)
    yield r
    r.close()


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Point the tool directory at a temp dir and clear override env vars."""
    home = tmp_path / "home"
    monkeypatch.setenv("STORE_ZOTERO_HOME", str(home))
    for var in ("STORE_ZOTERO_CONFIG", "STORE_ZOTERO_DB", "STORE_ZOTERO_STORAGE"):
        monkeypatch.delenv(var, raising=False)
    return home
