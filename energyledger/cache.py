"""
Time- and capacity-bounded result cache

Used to memoize balance and statistics queries against the sealed chain.
Expiry is checked on read; nothing sweeps in the background.
"""

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Hashable, Optional


class ResultCache:
    """
    Key/value memo with a fixed time-to-live and maximum entry count.

    When full, the oldest-inserted entry is evicted to make room.
    """

    def __init__(self, max_size: int = 100, ttl: float = 5.0,
                 clock: Callable[[], float] = time.monotonic, enabled: bool = True):
        self.max_size = max_size
        self.ttl = ttl
        self.enabled = enabled
        self._clock = clock
        self._entries: 'OrderedDict[Hashable, tuple]' = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value, or None if absent or expired."""
        if not self.enabled:
            return None
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None

            value, inserted_at = entry
            if self._clock() - inserted_at >= self.ttl:
                del self._entries[key]
                self.misses += 1
                return None

            self.hits += 1
            return value

    def set(self, key: Hashable, value: Any) -> None:
        if not self.enabled:
            return
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self.max_size:
                self._entries.popitem(last=False)
            self._entries[key] = (value, self._clock())

    def has(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'size': len(self._entries),
                'max_size': self.max_size,
                'ttl': self.ttl,
                'hits': self.hits,
                'misses': self.misses,
                'enabled': self.enabled
            }

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ResultCache({len(self)}/{self.max_size}, ttl={self.ttl}s)"
