"""
Bounded cache in front of the definition lookup service.

One entry per (kind, file, line, character). When full, the oldest inserted
entry is dropped before the new one goes in; reads do not refresh an entry's
position, so this is FIFO rather than LRU.
"""

from __future__ import annotations

import threading
from typing import Iterator, NamedTuple, Optional

from lspcontext.config import MAX_CACHE_SIZE
from lspcontext.core.entities import Location


class LookupKey(NamedTuple):
    kind: str
    filepath: str
    line: int
    character: int


class LookupCache:
    def __init__(self, capacity: int = MAX_CACHE_SIZE):
        if capacity <= 0:
            raise ValueError(f"cache capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._entries: dict[LookupKey, tuple[Location, ...]] = {}
        self._lock = threading.Lock()

    def get(self, key: LookupKey) -> Optional[tuple[Location, ...]]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: LookupKey, locations: list[Location] | tuple[Location, ...]) -> None:
        value = tuple(locations)
        with self._lock:
            if key in self._entries:
                self._entries[key] = value
                return
            if len(self._entries) >= self.capacity:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
            self._entries[key] = value

    def keys(self) -> list[LookupKey]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __iter__(self) -> Iterator[LookupKey]:
        return iter(self.keys())


_default_cache: Optional[LookupCache] = None
_default_cache_lock = threading.Lock()


def default_cache() -> LookupCache:
    """The process-wide cache shared by providers that are not given one."""
    global _default_cache
    with _default_cache_lock:
        if _default_cache is None:
            _default_cache = LookupCache()
        return _default_cache
