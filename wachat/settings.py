"""Key/value storage for UI preferences such as theme and density."""

from __future__ import annotations

import sqlite3

from wachat.database import StoreError


class SettingsOps:
    """Settings reads and writes over the store's connection."""

    _conn: sqlite3.Connection

    def get_setting(self, key: str) -> str:
        """Return the value for ``key``, or an empty string when unset."""
        if not key:
            raise StoreError("get_setting: key is required")
        try:
            row = self._conn.execute(
                "SELECT value FROM settings WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"get_setting: {exc}") from exc
        return "" if row is None else row[0]

    def set_setting(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        if not key:
            raise StoreError("set_setting: key is required")
        try:
            self._conn.execute(
                """
                INSERT INTO settings (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )
        except sqlite3.Error as exc:
            raise StoreError(f"set_setting: {exc}") from exc