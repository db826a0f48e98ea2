"""
Market Context: Generic TTL Cache
──────────────────────────────────
Process-wide key → value store with per-entry expiry.

  - get() returns None for unknown keys and for expired entries;
    an expired entry is deleted on that read (no background sweeper).
  - set() always overwrites, whatever TTL the old entry had.
  - invalidate(pattern) drops every key containing `pattern`.

Unbounded on purpose: volumes are a few dozen keys and TTL keeps it finite.
Nothing survives a restart.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from market_context.cache.ttl_config import DEFAULT_TTL

log = logging.getLogger("mc.cache")

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    data:       T
    stored_at:  float
    expires_at: float


class TTLCache:

    def __init__(self, default_ttl: float = DEFAULT_TTL, clock: Callable[[], float] = time.time):
        self.default_ttl = default_ttl
        self._clock      = clock
        self._entries:   Dict[str, CacheEntry] = {}
        self._lock       = threading.RLock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() > entry.expires_at:
                del self._entries[key]
                log.debug(f"Expired: {key}")
                return None
            return entry.data

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        now = self._clock()
        with self._lock:
            self._entries[key] = CacheEntry(data=value, stored_at=now, expires_at=now + ttl)

    def invalidate(self, pattern: str) -> int:
        """Remove every key containing `pattern`. Returns how many were removed."""
        with self._lock:
            doomed = [k for k in self._entries if pattern in str(k)]
            for k in doomed:
                del self._entries[k]
        if doomed:
            log.info(f"Invalidated {len(doomed)} cache entries matching '{pattern}'")
        return len(doomed)

    def entry(self, key: str) -> Optional[CacheEntry]:
        """Raw entry for diagnostics. Does not apply expiry."""
        with self._lock:
            return self._entries.get(key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> dict:
        with self._lock:
            return {"size": len(self._entries), "keys": list(self._entries)}
