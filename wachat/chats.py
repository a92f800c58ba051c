"""Per-chat state flags: pinned, archived and mute deadline."""

from __future__ import annotations

import sqlite3
from typing import Any

from wachat.database import StoreError


class ChatStateOps:
    """Chat-state updates over the store's connection.

    State events can arrive before any message in a chat, so each update
    first creates a placeholder chat row if none exists.
    """

    _conn: sqlite3.Connection

    def set_pinned(self, jid: str, pinned: bool) -> None:
        """Set or clear the chat's pinned flag."""
        self._update("set_pinned", jid, "pinned", int(bool(pinned)))

    def set_archived(self, jid: str, archived: bool) -> None:
        """Set or clear the chat's archived flag."""
        self._update("set_archived", jid, "archived", int(bool(archived)))

    def set_mute_until(self, jid: str, mute_until_ms: int) -> None:
        """Record the mute deadline in unix ms; 0 unmutes, -1 mutes forever."""
        self._update("set_mute_until", jid, "mute_until", int(mute_until_ms))

    def _update(self, label: str, jid: str, column: str, value: Any) -> None:
        if not jid:
            raise StoreError(f"{label}: jid is required")
        try:
            self._conn.execute(
                "INSERT INTO chats (jid, name, last_ts, unread) VALUES (?, '', NULL, 0) "
                "ON CONFLICT(jid) DO NOTHING",
                (jid,),
            )
            self._conn.execute(f"UPDATE chats SET {column} = ? WHERE jid = ?", (value, jid))
        except sqlite3.Error as exc:
            raise StoreError(f"{label}: {exc}") from exc