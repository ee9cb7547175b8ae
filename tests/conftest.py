"""
Pytest Configuration
====================

Ensures project root is in Python path for imports and provides SQLite
fixture databases shaped like an autobrr store.

Copyright 2024-2025 北京思源智教科技有限公司 (Beijing Siyuan Zhijiao Technology Co., Ltd.)
All Rights Reserved
Proprietary License
"""

import logging
import sqlite3
import sys
from pathlib import Path

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent.absolute()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from config.settings import config  # noqa: E402


SCHEMA_SQL = """
CREATE TABLE "users" (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    password TEXT NOT NULL
);
CREATE TABLE "indexer" (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    identifier TEXT,
    enabled BOOLEAN DEFAULT FALSE,
    name TEXT NOT NULL UNIQUE
);
CREATE TABLE "irc_network" (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    enabled BOOLEAN,
    name TEXT NOT NULL,
    server TEXT NOT NULL
);
CREATE TABLE "irc_channel" (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    network_id INTEGER NOT NULL REFERENCES "irc_network"(id) ON DELETE CASCADE
);
CREATE TABLE "client" (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    type TEXT NOT NULL,
    enabled BOOLEAN,
    host TEXT NOT NULL,
    port INTEGER
);
CREATE TABLE "filter" (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    enabled BOOLEAN,
    name TEXT NOT NULL
);
CREATE TABLE "action" (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT,
    type TEXT,
    filter_id INTEGER REFERENCES "filter"(id) ON DELETE CASCADE,
    client_id INTEGER REFERENCES "client"(id) ON DELETE SET NULL
);
CREATE TABLE "notification" (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT,
    type TEXT,
    enabled BOOLEAN
);
CREATE TABLE "filter_indexer" (
    filter_id INTEGER REFERENCES "filter"(id) ON DELETE CASCADE,
    indexer_id INTEGER REFERENCES "indexer"(id) ON DELETE CASCADE,
    PRIMARY KEY (filter_id, indexer_id)
);
CREATE TABLE "release" (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    filter_status TEXT,
    torrent_name TEXT,
    filter_id INTEGER REFERENCES "filter"(id) ON DELETE SET NULL
);
CREATE TABLE "release_action_status" (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    status TEXT,
    "action" TEXT NOT NULL,
    release_id INTEGER NOT NULL REFERENCES "release"(id) ON DELETE CASCADE
);
CREATE TABLE "feed" (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    indexer_id INTEGER REFERENCES "indexer"(id) ON DELETE SET NULL,
    name TEXT,
    enabled BOOLEAN
);
CREATE TABLE "feed_cache" (
    feed_id INTEGER NOT NULL REFERENCES "feed"(id) ON DELETE CASCADE,
    "key" TEXT,
    value TEXT,
    ttl TIMESTAMP
);
CREATE TABLE "api_key" (
    name TEXT,
    "key" TEXT PRIMARY KEY,
    scopes TEXT DEFAULT '{}',
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

SAMPLE_ROWS = {
    "users": [(1, "admin", "argon2-hash")],
    "indexer": [(1, "ptp", 1, "PassThePopcorn"), (2, "btn", 0, "BroadcasTheNet")],
    "irc_network": [(1, 1, "P2P-Network", "irc.p2p-network.net")],
    "irc_channel": [(1, "#announce", 1), (2, "#ptp-announce", 1)],
    "client": [
        (1, "qbit", "QBITTORRENT", 1, "localhost", 8080),
        (2, "deluge", "DELUGE_V2", 0, "10.0.0.2", 58846),
        (3, "rtorrent", "RTORRENT", 1, "10.0.0.3", 5000),
    ],
    "filter": [(1, 1, "movies"), (2, 0, "tv")],
    "action": [(1, "push to qbit", "QBITTORRENT", 1, 1)],
    "notification": [(1, "discord", "DISCORD", 1)],
    "filter_indexer": [(1, 1), (2, 2)],
    "release": [(1, "PUSH_APPROVED", "Movie.2024.1080p.BluRay", 1)],
    "release_action_status": [(1, "PUSH_APPROVED", "push to qbit", 1)],
    "feed": [(1, 1, "ptp feed", 1)],
    "api_key": [("default", "abc123", "{}", "2024-01-01 00:00:00")],
}


def insert_rows(db_path, table, rows):
    """Insert raw rows with foreign keys unenforced, like a legacy store."""
    conn = sqlite3.connect(str(db_path))
    try:
        for row in rows:
            placeholders = ", ".join("?" * len(row))
            conn.execute(f'INSERT INTO "{table}" VALUES ({placeholders})', row)
        conn.commit()
    finally:
        conn.close()


def count_table(db_path, table):
    """Count rows of a table in a SQLite file."""
    conn = sqlite3.connect(str(db_path))
    try:
        return conn.execute(f'SELECT COUNT(*) FROM "{table}"').fetchone()[0]
    finally:
        conn.close()


def create_sqlite_db(db_path, schema_sql=SCHEMA_SQL, rows=None):
    """Create a SQLite database file with a schema and optional rows."""
    conn = sqlite3.connect(str(db_path))
    try:
        conn.executescript(schema_sql)
        conn.commit()
    finally:
        conn.close()
    for table, table_rows in (rows or {}).items():
        insert_rows(db_path, table, table_rows)
    return db_path


@pytest.fixture(autouse=True)
def fresh_config_cache():
    """Config caches environment lookups; start and end each test clean."""
    config.clear_cache()
    yield
    config.clear_cache()


@pytest.fixture
def restore_logging():
    """Undo setup_logging() changes to the root logger."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def source_db(tmp_path):
    """Populated source store."""
    return create_sqlite_db(tmp_path / "source.db", rows=SAMPLE_ROWS)


@pytest.fixture
def dest_db(tmp_path):
    """Empty destination store with the same schema."""
    return create_sqlite_db(tmp_path / "dest.db")
