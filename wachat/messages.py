"""Persisting messages and the chat rows that summarise them."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, Optional, Sequence, Union

from wachat.database import StoreError


class Status(str, Enum):
    """Delivery state of a message.

    Outgoing messages move pending -> sent -> delivered -> read (or
    played for voice notes); incoming messages stay ``sent``.
    """

    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    PLAYED = "played"


MESSAGE_COLUMNS: tuple[str, ...] = (
    "id",
    "wa_id",
    "chat_jid",
    "sender_jid",
    "ts",
    "body",
    "media_path",
    "media_type",
    "status",
    "quoted_waid",
    "quoted_body",
    "quoted_sender",
    "edited",
    "revoked",
    "link_url",
    "link_title",
    "link_desc",
    "starred",
)

SELECT_MESSAGES = "SELECT " + ", ".join(MESSAGE_COLUMNS) + " FROM messages"

_INSERT_MESSAGE = """
    INSERT INTO messages (
        wa_id, chat_jid, sender_jid, ts, body,
        media_path, media_type, status,
        quoted_waid, quoted_body, quoted_sender, edited, revoked,
        link_url, link_title, link_desc, starred
    )
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(wa_id) DO NOTHING
"""

_UPSERT_CHAT_FOR_INSERT = """
    INSERT INTO chats (jid, name, last_ts, unread)
    VALUES (?, '', ?, ?)
    ON CONFLICT(jid) DO UPDATE SET
        last_ts = MAX(COALESCE(last_ts, 0), excluded.last_ts),
        unread  = unread + ?
"""

_UPSERT_CHAT_FOR_BATCH = """
    INSERT INTO chats (jid, name, last_ts, unread)
    VALUES (?, '', ?, 0)
    ON CONFLICT(jid) DO UPDATE SET
        last_ts = MAX(COALESCE(last_ts, 0), excluded.last_ts)
"""


@dataclass
class Message:
    """A single chat message as persisted locally.

    ``wa_id`` is the deduplication key and ``ts`` is unix milliseconds.
    ``id`` is the database rowid, filled in by reads and ignored on
    insert.  An empty ``status`` is stored as ``sent``.
    """

    wa_id: str = ""
    chat_jid: str = ""
    sender_jid: str = ""
    ts: int = 0
    body: str = ""
    media_path: str = ""
    media_type: str = ""
    status: str = ""
    quoted_wa_id: str = ""
    quoted_body: str = ""
    quoted_sender: str = ""
    edited: bool = False
    revoked: bool = False
    link_url: str = ""
    link_title: str = ""
    link_desc: str = ""
    starred: bool = False
    id: int = 0

    def _insert_params(self) -> tuple[Any, ...]:
        return (
            self.wa_id,
            self.chat_jid,
            _nullable(self.sender_jid),
            self.ts,
            _nullable(self.body),
            _nullable(self.media_path),
            _nullable(self.media_type),
            _status_text(self.status) or Status.SENT.value,
            _nullable(self.quoted_wa_id),
            _nullable(self.quoted_body),
            _nullable(self.quoted_sender),
            int(bool(self.edited)),
            int(bool(self.revoked)),
            _nullable(self.link_url),
            _nullable(self.link_title),
            _nullable(self.link_desc),
            int(bool(self.starred)),
        )


def message_from_row(row: Sequence[Any]) -> Message:
    """Build a :class:`Message` from a row selected with ``MESSAGE_COLUMNS``.

    NULL text columns come back as empty strings.
    """
    values = dict(zip(MESSAGE_COLUMNS, tuple(row)))

    def text(name: str) -> str:
        value = values[name]
        return "" if value is None else str(value)

    return Message(
        id=int(values["id"]),
        wa_id=text("wa_id"),
        chat_jid=text("chat_jid"),
        sender_jid=text("sender_jid"),
        ts=int(values["ts"]),
        body=text("body"),
        media_path=text("media_path"),
        media_type=text("media_type"),
        status=text("status"),
        quoted_wa_id=text("quoted_waid"),
        quoted_body=text("quoted_body"),
        quoted_sender=text("quoted_sender"),
        edited=bool(values["edited"]),
        revoked=bool(values["revoked"]),
        link_url=text("link_url"),
        link_title=text("link_title"),
        link_desc=text("link_desc"),
        starred=bool(values["starred"]),
    )


def _nullable(value: str) -> Optional[str]:
    """Store empty strings as NULL so absent values stay distinguishable."""
    return value if value else None


def _status_text(status: Union[str, Status]) -> str:
    return status.value if isinstance(status, Status) else status


@contextmanager
def _transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")


class MessageOps:
    """Message and chat-row operations over the store's connection."""

    _conn: sqlite3.Connection

    def insert(self, message: Message, bump_unread: bool) -> bool:
        """Persist ``message`` and advance its chat's ``last_ts``.

        Returns True when a new row was written and False on a duplicate
        ``wa_id``.  The chat's unread count grows by one only when the row
        is new and ``bump_unread`` is true.
        """
        if not message.wa_id:
            raise StoreError("insert: wa_id is required")
        if not message.chat_jid:
            raise StoreError("insert: chat_jid is required")
        try:
            with _transaction(self._conn) as conn:
                created = conn.execute(_INSERT_MESSAGE, message._insert_params()).rowcount == 1
                delta = 1 if created and bump_unread else 0
                conn.execute(
                    _UPSERT_CHAT_FOR_INSERT,
                    (message.chat_jid, message.ts, delta, delta),
                )
        except sqlite3.Error as exc:
            raise StoreError(f"insert: {exc}") from exc
        return created

    def insert_batch(self, messages: Iterable[Message]) -> int:
        """Persist many messages in one transaction; return how many are new.

        Messages without a ``wa_id`` or ``chat_jid`` are skipped.  Unread
        counters are never touched: a batch is a replay of history.
        """
        batch = list(messages)
        if not batch:
            return 0
        chat_last_ts: dict[str, int] = {}
        created = 0
        try:
            with _transaction(self._conn) as conn:
                for message in batch:
                    if not message.wa_id or not message.chat_jid:
                        continue
                    try:
                        cursor = conn.execute(_INSERT_MESSAGE, message._insert_params())
                    except sqlite3.Error as exc:
                        raise StoreError(f"insert_batch: insert {message.wa_id}: {exc}") from exc
                    created += max(cursor.rowcount, 0)
                    known = chat_last_ts.get(message.chat_jid)
                    if known is None or message.ts > known:
                        chat_last_ts[message.chat_jid] = message.ts
                conn.executemany(_UPSERT_CHAT_FOR_BATCH, chat_last_ts.items())
        except sqlite3.Error as exc:
            raise StoreError(f"insert_batch: {exc}") from exc
        return created

    def upsert_chat(self, jid: str, name: str) -> None:
        """Set a chat's display name, creating the chat row if needed."""
        if not jid:
            raise StoreError("upsert_chat: jid is required")
        self._run(
            "upsert_chat",
            """
            INSERT INTO chats (jid, name, last_ts, unread)
            VALUES (?, ?, NULL, 0)
            ON CONFLICT(jid) DO UPDATE SET name = excluded.name
            """,
            (jid, name),
        )

    def set_starred(self, wa_id: str, starred: bool) -> None:
        """Set or clear the starred flag; unknown ids are ignored."""
        if not wa_id:
            raise StoreError("set_starred: wa_id is required")
        self._run(
            "set_starred",
            "UPDATE messages SET starred = ? WHERE wa_id = ?",
            (int(bool(starred)), wa_id),
        )

    def list_starred(self, limit: int) -> list[Message]:
        """Return starred messages across all chats, newest first."""
        if limit <= 0:
            raise StoreError("list_starred: limit must be positive")
        try:
            rows = self._conn.execute(
                SELECT_MESSAGES + " WHERE starred = 1 ORDER BY ts DESC LIMIT ?",
                (limit,),
            ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"list_starred: {exc}") from exc
        return [message_from_row(row) for row in rows]

    def apply_edit(self, wa_id: str, new_body: str) -> None:
        """Replace a message's body and mark it edited; unknown ids are ignored."""
        if not wa_id:
            raise StoreError("apply_edit: wa_id is required")
        self._run(
            "apply_edit",
            "UPDATE messages SET body = ?, edited = 1 WHERE wa_id = ?",
            (_nullable(new_body), wa_id),
        )

    def apply_revoke(self, wa_id: str) -> None:
        """Mark a message deleted for everyone; its body is kept."""
        if not wa_id:
            raise StoreError("apply_revoke: wa_id is required")
        self._run("apply_revoke", "UPDATE messages SET revoked = 1 WHERE wa_id = ?", (wa_id,))

    def update_status(self, wa_id: str, status: Union[str, Status]) -> None:
        """Set a message's delivery status; unknown ids are ignored."""
        if not wa_id:
            raise StoreError("update_status: wa_id is required")
        text = _status_text(status)
        if not text:
            raise StoreError("update_status: status is required")
        self._run(
            "update_status",
            "UPDATE messages SET status = ? WHERE wa_id = ?",
            (text, wa_id),
        )

    def mark_read(self, jid: str) -> None:
        """Clear a chat's unread counter; unknown chats are ignored."""
        if not jid:
            raise StoreError("mark_read: jid is required")
        self._run("mark_read", "UPDATE chats SET unread = 0 WHERE jid = ?", (jid,))

    def _run(self, label: str, sql: str, params: tuple[Any, ...]) -> None:
        try:
            self._conn.execute(sql, params)
        except sqlite3.Error as exc:
            raise StoreError(f"{label}: {exc}") from exc