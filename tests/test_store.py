import sqlite3

import pytest

from wachat.database import StoreError
from wachat.messages import Message
from wachat.paging import Cursor
from wachat.store import Store


@pytest.fixture
def store(tmp_path):
    s = Store(tmp_path / "wachat.db")
    yield s
    s.close()


def test_open_applies_wal_and_synchronous(store):
    assert store.db.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
    # synchronous=NORMAL is 1; FULL is 2.
    assert store.db.execute("PRAGMA synchronous").fetchone()[0] == 1


@pytest.mark.parametrize("table", ["messages", "chats"])
def test_open_creates_tables(store, table):
    row = store.db.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table,)
    ).fetchone()
    assert row is not None
    assert row[0] == table


def test_open_creates_chat_ts_index(store):
    row = store.db.execute(
        "SELECT name FROM sqlite_master WHERE type='index' AND name='idx_chat_ts'"
    ).fetchone()
    assert row is not None

    plan = store.db.execute(
        "EXPLAIN QUERY PLAN SELECT * FROM messages WHERE chat_jid=? AND ts<? "
        "ORDER BY ts DESC LIMIT 50",
        ("chat@example.com", 1_000_000_000_000),
    ).fetchall()
    assert any("idx_chat_ts" in row[3] for row in plan)


def test_open_creates_fts_table(store):
    row = store.db.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='messages_fts'"
    ).fetchone()
    assert row is not None
    assert row[0] == "messages_fts"

    store.insert(Message(wa_id="w1", chat_jid="c1", ts=1, body="indexed term"), False)
    hits = store.search("indexed", 10)
    assert [h.wa_id for h in hits] == ["w1"]


def test_open_is_idempotent(tmp_path):
    path = tmp_path / "wachat.db"
    for _ in range(3):
        s = Store(path)
        try:
            assert s.db.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
        finally:
            s.close()


def test_data_survives_reopen(tmp_path):
    path = tmp_path / "wachat.db"
    with Store(path) as s:
        s.insert(Message(wa_id="w1", chat_jid="c1", ts=1, body="kept"), False)
    with Store(path) as s:
        page, _ = s.page_older("c1", Cursor(), 10)
    assert [m.body for m in page] == ["kept"]


def test_close_twice_is_safe(tmp_path):
    s = Store(tmp_path / "wachat.db")
    s.close()
    s.close()
    with pytest.raises(StoreError):
        s.page_older("c1", Cursor(), 10)


def test_context_manager_closes(tmp_path):
    with Store(tmp_path / "wachat.db") as s:
        assert s.get_setting("missing") == ""
    with pytest.raises(StoreError):
        s.get_setting("missing")


def test_open_in_missing_directory_raises(tmp_path):
    with pytest.raises(StoreError):
        Store(tmp_path / "no-such-dir" / "wachat.db")


def test_open_migrates_old_database(tmp_path):
    path = tmp_path / "old.db"
    conn = sqlite3.connect(path)
    conn.executescript(
        """
        CREATE TABLE messages (
            id INTEGER PRIMARY KEY,
            wa_id TEXT NOT NULL UNIQUE,
            chat_jid TEXT NOT NULL,
            sender_jid TEXT,
            ts INTEGER NOT NULL,
            body TEXT,
            media_path TEXT,
            media_type TEXT
        );
        CREATE TABLE chats (
            jid TEXT PRIMARY KEY,
            name TEXT NOT NULL DEFAULT '',
            last_ts INTEGER,
            unread INTEGER NOT NULL DEFAULT 0
        );
        INSERT INTO messages (wa_id, chat_jid, ts, body)
        VALUES ('w1', 'c1', 1000, 'legacy shibboleth');
        INSERT INTO chats (jid, name, last_ts, unread) VALUES ('c1', 'Alice', 1000, 0);
        """
    )
    conn.commit()
    conn.close()

    with Store(path) as s:
        columns = {row[1] for row in s.db.execute("PRAGMA table_info(messages)")}
        assert {"status", "quoted_waid", "edited", "revoked", "link_url", "starred"} <= columns
        chat_columns = {row[1] for row in s.db.execute("PRAGMA table_info(chats)")}
        assert {"pinned", "archived", "mute_until"} <= chat_columns

        page, _ = s.page_older("c1", Cursor(), 10)
        assert len(page) == 1
        assert page[0].status == "sent"
        assert page[0].starred is False

        hits = s.search("shibboleth", 10)
        assert [h.wa_id for h in hits] == ["w1"]
        assert hits[0].chat_name == "Alice"