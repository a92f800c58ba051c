"""Opening the local SQLite database: schema, migrations and FTS backfill.

Media bytes never live in the database, only file paths.  The database
runs in WAL mode with ``synchronous=NORMAL`` so reads can proceed while
the ingest writer holds the journal.
"""

from __future__ import annotations

import os
import sqlite3
from typing import Union

BUSY_TIMEOUT_SECONDS = 5.0

SCHEMA = """
PRAGMA journal_mode = WAL;
PRAGMA synchronous = NORMAL;

CREATE TABLE IF NOT EXISTS messages (
    id            INTEGER PRIMARY KEY,
    wa_id         TEXT NOT NULL UNIQUE,
    chat_jid      TEXT NOT NULL,
    sender_jid    TEXT,
    ts            INTEGER NOT NULL,
    body          TEXT,
    media_path    TEXT,
    media_type    TEXT,
    status        TEXT NOT NULL DEFAULT 'sent',
    quoted_waid   TEXT,
    quoted_body   TEXT,
    quoted_sender TEXT,
    edited        INTEGER NOT NULL DEFAULT 0,
    revoked       INTEGER NOT NULL DEFAULT 0,
    link_url      TEXT,
    link_title    TEXT,
    link_desc     TEXT,
    starred       INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_chat_ts ON messages (chat_jid, ts DESC);

CREATE TABLE IF NOT EXISTS chats (
    jid        TEXT PRIMARY KEY,
    name       TEXT NOT NULL DEFAULT '',
    last_ts    INTEGER,
    unread     INTEGER NOT NULL DEFAULT 0,
    pinned     INTEGER NOT NULL DEFAULT 0,
    archived   INTEGER NOT NULL DEFAULT 0,
    mute_until INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS reactions (
    target_waid TEXT NOT NULL,
    sender_jid  TEXT NOT NULL,
    emoji       TEXT NOT NULL,
    ts          INTEGER NOT NULL,
    PRIMARY KEY (target_waid, sender_jid)
);

CREATE TABLE IF NOT EXISTS settings (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE VIRTUAL TABLE IF NOT EXISTS messages_fts USING fts5(
    body,
    tokenize = 'unicode61 remove_diacritics 2'
);

CREATE TRIGGER IF NOT EXISTS messages_fts_insert AFTER INSERT ON messages
BEGIN
    INSERT INTO messages_fts (rowid, body) VALUES (new.id, COALESCE(new.body, ''));
END;

CREATE TRIGGER IF NOT EXISTS messages_fts_delete AFTER DELETE ON messages
BEGIN
    DELETE FROM messages_fts WHERE rowid = old.id;
END;

CREATE TRIGGER IF NOT EXISTS messages_fts_update AFTER UPDATE OF body ON messages
BEGIN
    DELETE FROM messages_fts WHERE rowid = old.id;
    INSERT INTO messages_fts (rowid, body) VALUES (new.id, COALESCE(new.body, ''));
END;
"""

# Columns added after the first schema, per table, with their DDL.
_MIGRATIONS: dict[str, list[tuple[str, str]]] = {
    "messages": [
        ("status", "ALTER TABLE messages ADD COLUMN status TEXT NOT NULL DEFAULT 'sent'"),
        ("quoted_waid", "ALTER TABLE messages ADD COLUMN quoted_waid TEXT"),
        ("quoted_body", "ALTER TABLE messages ADD COLUMN quoted_body TEXT"),
        ("quoted_sender", "ALTER TABLE messages ADD COLUMN quoted_sender TEXT"),
        ("edited", "ALTER TABLE messages ADD COLUMN edited INTEGER NOT NULL DEFAULT 0"),
        ("revoked", "ALTER TABLE messages ADD COLUMN revoked INTEGER NOT NULL DEFAULT 0"),
        ("link_url", "ALTER TABLE messages ADD COLUMN link_url TEXT"),
        ("link_title", "ALTER TABLE messages ADD COLUMN link_title TEXT"),
        ("link_desc", "ALTER TABLE messages ADD COLUMN link_desc TEXT"),
        ("starred", "ALTER TABLE messages ADD COLUMN starred INTEGER NOT NULL DEFAULT 0"),
    ],
    "chats": [
        ("pinned", "ALTER TABLE chats ADD COLUMN pinned INTEGER NOT NULL DEFAULT 0"),
        ("archived", "ALTER TABLE chats ADD COLUMN archived INTEGER NOT NULL DEFAULT 0"),
        ("mute_until", "ALTER TABLE chats ADD COLUMN mute_until INTEGER NOT NULL DEFAULT 0"),
    ],
}


class StoreError(Exception):
    """Raised for invalid store arguments and database failures."""


def open_database(path: Union[str, os.PathLike]) -> sqlite3.Connection:
    """Open (or create) the database at ``path`` and bring it up to date.

    Safe to call repeatedly on the same file.  The connection is in
    autocommit mode; callers open transactions explicitly.
    """
    try:
        conn = sqlite3.connect(
            os.fspath(path), timeout=BUSY_TIMEOUT_SECONDS, isolation_level=None
        )
    except sqlite3.Error as exc:
        raise StoreError(f"open {os.fspath(path)!r}: {exc}") from exc
    conn.row_factory = sqlite3.Row
    steps = (
        ("apply schema", apply_schema),
        ("migrate", migrate),
        ("backfill FTS", backfill_fts),
    )
    for label, step in steps:
        try:
            step(conn)
        except (sqlite3.Error, StoreError) as exc:
            conn.close()
            raise StoreError(f"{label}: {exc}") from exc
    return conn


def apply_schema(conn: sqlite3.Connection) -> None:
    """Run the idempotent schema script on ``conn``."""
    conn.executescript(SCHEMA)


def column_names(conn: sqlite3.Connection, table: str) -> set[str]:
    """Return the names of the columns currently on ``table``."""
    quoted = '"' + table.replace('"', '""') + '"'
    return {row[1] for row in conn.execute(f"PRAGMA table_info({quoted})")}


def migrate(conn: sqlite3.Connection) -> None:
    """Add any columns that databases created by older versions lack."""
    for table, wanted in _MIGRATIONS.items():
        have = column_names(conn, table)
        for name, ddl in wanted:
            if name in have:
                continue
            try:
                conn.execute(ddl)
            except sqlite3.Error as exc:
                raise StoreError(f"add {table}.{name}: {exc}") from exc


def backfill_fts(conn: sqlite3.Connection) -> int:
    """Index messages missing from the full-text table; return how many."""
    (pending,) = conn.execute(
        """
        SELECT COUNT(*) FROM messages m
        WHERE NOT EXISTS (SELECT 1 FROM messages_fts WHERE rowid = m.id)
        """
    ).fetchone()
    if pending == 0:
        return 0
    conn.execute(
        """
        INSERT INTO messages_fts (rowid, body)
        SELECT id, COALESCE(body, '') FROM messages
        WHERE NOT EXISTS (SELECT 1 FROM messages_fts WHERE rowid = messages.id)
        """
    )
    return pending