"""Thread-safe path-keyed caches shared by the scanning layers.

Ignore rule sets, directory listings and descriptors are each held in one
``PathCache``. Entries are keyed by resolved absolute path strings so that
prefix invalidation can tear down a whole subtree after a watch event.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Generic, TypeVar

V = TypeVar("V")

_CACHE_MISS = object()


def _key(path: Path | str) -> str:
    return os.fspath(path)


def _is_under(key: str, prefix: str) -> bool:
    """Return whether ``key`` is ``prefix`` itself or a descendant of it."""
    if key == prefix:
        return True
    if prefix.endswith(os.sep):
        return key.startswith(prefix)
    return key.startswith(prefix + os.sep)


class PathCache(Generic[V]):
    """Mapping from absolute paths to cached values guarded by one lock."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.RLock()
        self._entries: dict[str, V] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        with self._lock:
            return _key(path) in self._entries

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._entries))

    def get(self, path: Path | str, default: V | None = None) -> V | None:
        with self._lock:
            return self._entries.get(_key(path), default)

    def put(self, path: Path | str, value: V) -> V:
        with self._lock:
            self._entries[_key(path)] = value
        return value

    def get_or_load(self, path: Path | str, load: Callable[[], V]) -> V:
        """Return the cached value for ``path``, loading it on a miss.

        ``load`` runs outside the lock so slow filesystem reads do not block
        other readers. When two threads race on the same miss the first
        stored value wins and both callers receive it.
        """
        key = _key(path)
        with self._lock:
            cached = self._entries.get(key, _CACHE_MISS)
            if cached is not _CACHE_MISS:
                return cached  # type: ignore[return-value]

        value = load()

        with self._lock:
            cached = self._entries.get(key, _CACHE_MISS)
            if cached is not _CACHE_MISS:
                return cached  # type: ignore[return-value]
            self._entries[key] = value
        return value

    def invalidate(self, path: Path | str) -> bool:
        """Drop the entry for ``path``; return whether one existed."""
        with self._lock:
            return self._entries.pop(_key(path), _CACHE_MISS) is not _CACHE_MISS

    def clear(self, prefix: Path | str | None = None) -> int:
        """Drop every entry, or only those at or below ``prefix``.

        Returns the number of removed entries.
        """
        with self._lock:
            if prefix is None:
                removed = len(self._entries)
                self._entries.clear()
                return removed
            prefix_key = _key(prefix)
            doomed = [key for key in self._entries if _is_under(key, prefix_key)]
            for key in doomed:
                del self._entries[key]
            return len(doomed)


__all__ = ["PathCache"]
