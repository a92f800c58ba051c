"""Reference-counted cache of decoded media thumbnails with LRU eviction.

Media bytes live on disk; only decoded thumbnails for visible rows are
held in memory.  ``Cache.decode`` takes a reference and ``Cache.release``
drops it.  Entries with no references are evicted, oldest release first,
once the total decoded size exceeds the byte budget.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Tuple

DecodeFn = Callable[[str], Tuple[Any, int]]
"""Decodes the file at a path into ``(image, approximate_decoded_bytes)``."""


class DecodeError(Exception):
    """Raised when the decode hook fails for a path."""

    def __init__(self, path: str, reason: BaseException) -> None:
        super().__init__(f"cannot decode {path!r}: {reason}")
        self.path = path


@dataclass
class _Entry:
    image: Any
    size: int
    refcount: int


class Cache:
    """Decoded thumbnails keyed by media path. Safe for concurrent use.

    A ``max_bytes`` of zero or less disables eviction.
    """

    def __init__(self, max_bytes: int, decode: DecodeFn) -> None:
        if decode is None:
            raise TypeError("Cache: decode hook must not be None")
        self._max_bytes = max_bytes
        self._decode = decode
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}
        # Released entries, oldest first.
        self._lru: OrderedDict[str, None] = OrderedDict()
        self._total = 0

    def decode(self, path: str) -> Any:
        """Return the image for ``path``, decoding it on first use.

        Every call takes a reference that must be paired with one
        :meth:`release`.  A failed decode is not cached.
        """
        with self._lock:
            entry = self._entries.get(path)
            if entry is not None:
                entry.refcount += 1
                self._lru.pop(path, None)
                return entry.image
            try:
                image, size = self._decode(path)
            except Exception as exc:
                raise DecodeError(path, exc) from exc
            self._entries[path] = _Entry(image=image, size=size, refcount=1)
            self._total += size
            self._evict_if_over()
            return image

    def release(self, path: str) -> None:
        """Drop one reference on ``path``; unknown paths are ignored."""
        with self._lock:
            entry = self._entries.get(path)
            if entry is None:
                return
            if entry.refcount > 0:
                entry.refcount -= 1
            if entry.refcount == 0:
                self._lru.pop(path, None)
                self._lru[path] = None
                self._evict_if_over()

    def stats(self) -> tuple[int, int]:
        """Return ``(entry_count, total_decoded_bytes)``."""
        with self._lock:
            return len(self._entries), self._total

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._entries

    def _evict_if_over(self) -> None:
        if self._max_bytes <= 0:
            return
        while self._total > self._max_bytes and self._lru:
            victim, _ = self._lru.popitem(last=False)
            entry = self._entries.pop(victim, None)
            if entry is not None:
                self._total -= entry.size


class Tracker:
    """Turns successive visible-path sets into matched decode/release calls.

    Not thread-safe: drive it from the UI loop only.
    """

    def __init__(self, cache: Cache) -> None:
        if cache is None:
            raise TypeError("Tracker: cache must not be None")
        self._cache = cache
        self._visible: dict[str, None] = {}

    def set_visible(self, paths: Iterable[str]) -> tuple[int, int]:
        """Reconcile the cache with a new visible set.

        Duplicates are collapsed and empty paths skipped.  Returns
        ``(decoded, released)``, the number of cache calls made.
        """
        upcoming = dict.fromkeys(p for p in paths if p)

        released = 0
        for path in self._visible:
            if path not in upcoming:
                self._cache.release(path)
                released += 1

        decoded = 0
        for path in upcoming:
            if path not in self._visible:
                try:
                    self._cache.decode(path)
                except DecodeError:
                    pass
                decoded += 1

        self._visible = upcoming
        return decoded, released

    def clear(self) -> int:
        """Release every visible path and forget them; return the count."""
        released = 0
        for path in self._visible:
            self._cache.release(path)
            released += 1
        self._visible = {}
        return released