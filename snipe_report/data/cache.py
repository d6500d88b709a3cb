"""In-process memoization of fetched record collections.

Each distinct (resource, filter, cohort) collection is produced at most once
for the lifetime of a cache. Producers run under a per-key lock so that
concurrent callers asking for the same key wait for the first fetch instead
of issuing their own.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Hashable, Mapping, Optional, Tuple

from ..logs import debug

CacheKey = Tuple[Any, ...]


def cache_key(
    resource: str,
    filters: Optional[Mapping[str, Any]] = None,
    cohort: Optional[str] = None,
) -> CacheKey:
    """Build a hashable key from a resource, its filter and an optional cohort."""
    frozen = tuple(sorted((str(k), str(v)) for k, v in (filters or {}).items()))
    return (resource, frozen, cohort)


class RecordCache:
    """Compute-once store for fetched collections."""

    def __init__(self):
        self._values: Dict[Hashable, Any] = {}
        self._locks: Dict[Hashable, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def get_or_fetch(self, key: Hashable, producer: Callable[[], Any]) -> Any:
        """Return the cached value for ``key``, running ``producer`` on a miss.

        A producer that raises leaves the key unset, so the next call retries.
        """
        if key in self._values:
            debug("cache", f"hit {key!r}")
            return self._values[key]

        with self._lock_for(key):
            if key in self._values:
                return self._values[key]
            debug("cache", f"miss {key!r}")
            value = producer()
            self._values[key] = value
            return value

    def __contains__(self, key: Hashable) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def clear(self) -> None:
        with self._locks_guard:
            self._values.clear()
            self._locks.clear()
