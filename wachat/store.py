"""The local database handle used by the UI and the protocol layer."""

from __future__ import annotations

import os
import sqlite3
from typing import Optional, Union

from wachat.chats import ChatStateOps
from wachat.database import open_database
from wachat.messages import MessageOps
from wachat.paging import PagingOps
from wachat.reactions import ReactionOps
from wachat.search import SearchOps
from wachat.settings import SettingsOps


class Store(MessageOps, ChatStateOps, PagingOps, ReactionOps, SearchOps, SettingsOps):
    """An open wachat database.

    Opening applies the schema, migrates databases written by older
    versions and backfills the full-text index; doing so repeatedly on
    the same file is safe.  Use it as a context manager to close it
    automatically.
    """

    def __init__(self, path: Union[str, os.PathLike]) -> None:
        self.path = os.fspath(path)
        self._conn: sqlite3.Connection = open_database(path)
        self._closed = False

    def close(self) -> None:
        """Release the database handle; closing twice is a no-op."""
        if self._closed:
            return
        self._closed = True
        self._conn.close()

    @property
    def db(self) -> sqlite3.Connection:
        """The underlying connection, for tests and internal helpers."""
        return self._conn

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *args: object) -> Optional[bool]:
        self.close()
        return None