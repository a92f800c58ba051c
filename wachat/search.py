"""Full-text search over message bodies."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from wachat.database import StoreError

HIGHLIGHT_OPEN = "[["
HIGHLIGHT_CLOSE = "]]"


@dataclass(frozen=True)
class SearchHit:
    """One full-text match.

    ``snippet`` holds the matched text with the matching terms wrapped
    in ``[[`` and ``]]``.
    """

    chat_jid: str
    chat_name: str
    message_id: int
    wa_id: str
    ts: int
    sender_jid: str
    snippet: str


def fts_phrase(query: str) -> str:
    """Wrap ``query`` as a literal FTS5 phrase.

    Inner double quotes become single quotes, so any input, operators
    included, is matched as plain text.
    """
    return '"' + query.replace('"', "'") + '"'


class SearchOps:
    """Search queries over the store's connection."""

    _conn: sqlite3.Connection

    def search(self, query: str, limit: int) -> list[SearchHit]:
        """Return up to ``limit`` hits for ``query``, best match first.

        Ties in relevance go to the newest message.  A blank query
        returns no hits.
        """
        if not query.strip():
            return []
        if limit <= 0:
            raise StoreError(f"search: limit must be positive, got {limit}")
        try:
            rows = self._conn.execute(
                """
                SELECT
                    m.id, m.wa_id, m.chat_jid, COALESCE(c.name, ''), m.ts,
                    COALESCE(m.sender_jid, ''),
                    snippet(messages_fts, 0, ?, ?, '…', 16) AS snip
                FROM messages_fts
                JOIN messages m ON m.id = messages_fts.rowid
                LEFT JOIN chats c ON c.jid = m.chat_jid
                WHERE messages_fts MATCH ?
                ORDER BY rank, m.ts DESC
                LIMIT ?
                """,
                (HIGHLIGHT_OPEN, HIGHLIGHT_CLOSE, fts_phrase(query), limit),
            ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"search: {exc}") from exc
        hits = []
        for row in rows:
            message_id, wa_id, chat_jid, chat_name, ts, sender_jid, snippet = tuple(row)
            hits.append(
                SearchHit(
                    chat_jid=chat_jid,
                    chat_name=chat_name,
                    message_id=int(message_id),
                    wa_id=wa_id or "",
                    ts=int(ts),
                    sender_jid=sender_jid,
                    snippet=snippet or "",
                )
            )
        return hits