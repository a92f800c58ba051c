"""Keyset paging over a chat's messages, newest first.

Pages are addressed by a ``(ts, id)`` cursor rather than an OFFSET, so
latency stays proportional to the page size however deep the caller has
paged, and messages sharing a millisecond are neither skipped nor
repeated across page boundaries.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any, Optional

from wachat.database import StoreError
from wachat.messages import SELECT_MESSAGES, Message, message_from_row


@dataclass(frozen=True)
class Cursor:
    """Keyset position ``(ts, id)``; the zero cursor means "newest end"."""

    ts: int = 0
    id: int = 0

    def is_zero(self) -> bool:
        """Report whether this is the start-of-history cursor."""
        return self.ts == 0 and self.id == 0


class MessageNotFoundError(StoreError, LookupError):
    """Raised when an anchor message does not exist in the given chat."""


def _cursor_after(page: list[Message]) -> Cursor:
    if not page:
        return Cursor()
    last = page[-1]
    return Cursor(ts=last.ts, id=last.id)


class PagingOps:
    """Paging queries over the store's connection."""

    _conn: sqlite3.Connection

    def page_older(
        self, chat_jid: str, before: Optional[Cursor], limit: int
    ) -> tuple[list[Message], Cursor]:
        """Return up to ``limit`` messages strictly older than ``before``.

        Messages come newest first.  The returned cursor is the position
        of the oldest row in the page; pass it back to get the next page.
        A zero cursor (or None) starts from the newest message.  A page
        shorter than ``limit`` means history is exhausted.
        """
        if not chat_jid:
            raise StoreError("page_older: chat_jid is required")
        if limit <= 0:
            raise StoreError(f"page_older: limit must be positive, got {limit}")
        if before is None or before.is_zero():
            sql = SELECT_MESSAGES + """
                WHERE chat_jid = ?
                ORDER BY ts DESC, id DESC
                LIMIT ?
            """
            params: tuple[Any, ...] = (chat_jid, limit)
        else:
            sql = SELECT_MESSAGES + """
                WHERE chat_jid = ?
                  AND (ts < ? OR (ts = ? AND id < ?))
                ORDER BY ts DESC, id DESC
                LIMIT ?
            """
            params = (chat_jid, before.ts, before.ts, before.id, limit)
        page = self._query("page_older", sql, params)
        return page, _cursor_after(page)

    def page_around(
        self, chat_jid: str, anchor_id: int, before: int, after: int
    ) -> tuple[list[Message], Cursor]:
        """Return a window centred on the message with rowid ``anchor_id``.

        The window holds up to ``after`` newer messages, the anchor, and
        up to ``before`` older messages, all newest first.  The returned
        cursor is the position of the oldest row, for further paging.
        """
        if not chat_jid:
            raise StoreError("page_around: chat_jid is required")
        if before < 0 or after < 0:
            raise StoreError("page_around: before/after must be non-negative")
        try:
            row = self._conn.execute(
                SELECT_MESSAGES + " WHERE id = ? AND chat_jid = ?",
                (anchor_id, chat_jid),
            ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"page_around: anchor {anchor_id}: {exc}") from exc
        if row is None:
            raise MessageNotFoundError(
                f"page_around: anchor {anchor_id} not found in chat {chat_jid!r}"
            )
        anchor = message_from_row(row)

        newer = self._query(
            "page_around: newer",
            SELECT_MESSAGES + """
                WHERE chat_jid = ? AND (ts > ? OR (ts = ? AND id > ?))
                ORDER BY ts DESC, id DESC
                LIMIT ?
            """,
            (chat_jid, anchor.ts, anchor.ts, anchor.id, after),
        )
        older = self._query(
            "page_around: older",
            SELECT_MESSAGES + """
                WHERE chat_jid = ? AND (ts < ? OR (ts = ? AND id < ?))
                ORDER BY ts DESC, id DESC
                LIMIT ?
            """,
            (chat_jid, anchor.ts, anchor.ts, anchor.id, before),
        )
        # The newer half is ordered newest-first, so its first row is the
        # newest in the window; but it is limited from the newest end, so
        # it must be fetched nearest-first to stay adjacent to the anchor.
        window = [*newer, anchor, *older]
        return window, _cursor_after(window)

    def _query(self, label: str, sql: str, params: tuple[Any, ...]) -> list[Message]:
        try:
            rows = self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"{label}: {exc}") from exc
        return [message_from_row(row) for row in rows]