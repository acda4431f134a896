"""Cache capability for repository snapshots."""

from __future__ import annotations

import time
from collections import OrderedDict
from threading import Lock
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

from ..logging import get_logger

_LOGGER = get_logger("stores.cache")


class Cache(Protocol):
    """Key/value store with per-entry expiry supplied by the caller."""

    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any, ttl: float) -> None:
        ...


class MemoryCache:
    """In-process cache with TTL expiry and a bounded number of entries.

    Oldest entries are evicted first once ``max_entries`` is reached. Each
    instance guards its own state; share one explicitly when several analyzers
    should see the same entries.
    """

    def __init__(
        self,
        *,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self._max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, Any]]" = OrderedDict()
        self._lock = Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            expires_at, value = item
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: float) -> None:
        if ttl <= 0:
            return
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = (self._clock() + ttl, value)
            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                _LOGGER.debug("Evicted cache entry %s", evicted)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def snapshot(self) -> Dict[str, Any]:
        """Return the live entries, mainly for diagnostics."""
        now = self._clock()
        with self._lock:
            return {key: value for key, (expires_at, value) in self._entries.items() if expires_at > now}
