"""Emoji reactions on messages, one per sender per message."""

from __future__ import annotations

import sqlite3
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable

from wachat.database import StoreError

_SELECT_REACTIONS = "SELECT target_waid, sender_jid, emoji, ts FROM reactions"


@dataclass(frozen=True)
class Reaction:
    """One emoji reaction by ``sender_jid`` on the message ``target_wa_id``."""

    target_wa_id: str
    sender_jid: str
    emoji: str
    ts: int


def _reaction_from_row(row) -> Reaction:
    target, sender, emoji, ts = tuple(row)
    return Reaction(target_wa_id=target, sender_jid=sender, emoji=emoji, ts=int(ts))


class ReactionOps:
    """Reaction queries over the store's connection."""

    _conn: sqlite3.Connection

    def set_reaction(self, target_wa_id: str, sender_jid: str, emoji: str, ts: int) -> None:
        """Set the sender's reaction on a message; an empty emoji removes it."""
        if not target_wa_id or not sender_jid:
            raise StoreError("set_reaction: target and sender required")
        try:
            if not emoji:
                self._conn.execute(
                    "DELETE FROM reactions WHERE target_waid = ? AND sender_jid = ?",
                    (target_wa_id, sender_jid),
                )
                return
            self._conn.execute(
                """
                INSERT INTO reactions (target_waid, sender_jid, emoji, ts)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(target_waid, sender_jid) DO UPDATE SET
                    emoji = excluded.emoji,
                    ts    = excluded.ts
                """,
                (target_wa_id, sender_jid, emoji, ts),
            )
        except sqlite3.Error as exc:
            raise StoreError(f"set_reaction: {exc}") from exc

    def list_reactions(self, target_wa_id: str) -> list[Reaction]:
        """Return every reaction on a message, oldest first."""
        if not target_wa_id:
            raise StoreError("list_reactions: target_wa_id required")
        try:
            rows = self._conn.execute(
                _SELECT_REACTIONS + " WHERE target_waid = ? ORDER BY ts ASC",
                (target_wa_id,),
            ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"list_reactions: {exc}") from exc
        return [_reaction_from_row(row) for row in rows]

    def reactions_for_chat(self, target_wa_ids: Iterable[str]) -> dict[str, list[Reaction]]:
        """Fetch reactions for many messages at once, grouped by target.

        Each group is oldest first; targets without reactions are absent.
        """
        ids = list(target_wa_ids)
        if not ids:
            return {}
        placeholders = ",".join("?" * len(ids))
        try:
            rows = self._conn.execute(
                _SELECT_REACTIONS
                + f" WHERE target_waid IN ({placeholders}) ORDER BY ts ASC",
                ids,
            ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"reactions_for_chat: {exc}") from exc
        grouped: defaultdict[str, list[Reaction]] = defaultdict(list)
        for row in rows:
            reaction = _reaction_from_row(row)
            grouped[reaction.target_wa_id].append(reaction)
        return dict(grouped)