"""Local SQLite message store, keyset paging, full-text search and thumbnail cache for a chat client."""

__version__ = "0.2.0"