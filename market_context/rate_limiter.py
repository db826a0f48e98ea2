"""
Market Context: Rate Limiter
─────────────────────────────
Per-provider token buckets so a burst of cache misses (cold start, a forced
refresh of every tier) stays inside vendor quotas.

Limits enforced:
  FRED:           120 req/min, burst 10
  Alpha Vantage:    5 req/min, burst 5   (free key)
  Brave Search:    60 req/min, burst 5

Callers reserve a slot and sleep until it comes due. Reservations can run
the balance negative, so queued callers are spaced out instead of all
waking at once.
"""

import asyncio
import logging
import time
from typing import Callable, Dict, Optional, Tuple

from market_context.sources import rate_limits_per_minute

log = logging.getLogger("mc.rate_limiter")

# provider id → (burst capacity, refill per second)
PROVIDER_LIMITS: Dict[str, Tuple[float, float]] = {
    "fred":          (10, 120 / 60),
    "alpha-vantage": (5,  5 / 60),
    "brave":         (5,  60 / 60),
}
UNKNOWN_PROVIDER_LIMIT = (5, 1 / 60)


class TokenBucket:

    def __init__(self, capacity: float, per_second: float,
                 clock: Callable[[], float] = time.monotonic):
        self.capacity   = capacity
        self.per_second = per_second
        self._clock     = clock
        self._balance   = float(capacity)
        self._updated   = clock()
        self._lock      = asyncio.Lock()

    def _refill(self):
        now = self._clock()
        self._balance = min(self.capacity, self._balance + (now - self._updated) * self.per_second)
        self._updated = now

    @property
    def available(self) -> float:
        self._refill()
        return max(self._balance, 0.0)

    async def reserve(self, tokens: float = 1.0) -> float:
        """Book `tokens` and return the delay (s) before the caller may use them."""
        async with self._lock:
            self._refill()
            self._balance -= tokens
            if self._balance >= 0:
                return 0.0
            return -self._balance / self.per_second

    async def wait(self, tokens: float = 1.0):
        delay = await self.reserve(tokens)
        if delay > 0:
            log.debug(f"Throttled for {delay:.1f}s")
            await asyncio.sleep(delay)


class RateLimiter:
    """One bucket per provider id, created on first use."""

    def __init__(self, limits: Optional[Dict[str, Tuple[float, float]]] = None):
        self._limits = dict(PROVIDER_LIMITS if limits is None else limits)
        self._buckets: Dict[str, TokenBucket] = {}

    @classmethod
    def from_registry(cls) -> "RateLimiter":
        """Built-in limits, lowered wherever the source registry declares a stricter per-minute rate."""
        limits = dict(PROVIDER_LIMITS)
        for provider, per_minute in rate_limits_per_minute().items():
            capacity, per_second = limits.get(provider, UNKNOWN_PROVIDER_LIMIT)
            limits[provider] = (min(capacity, per_minute), min(per_second, per_minute / 60))
        return cls(limits)

    def limit(self, provider: str) -> Tuple[float, float]:
        return self._limits.get(provider, UNKNOWN_PROVIDER_LIMIT)

    def bucket(self, provider: str) -> TokenBucket:
        if provider not in self._buckets:
            self._buckets[provider] = TokenBucket(*self.limit(provider))
        return self._buckets[provider]

    async def acquire(self, provider: str, tokens: float = 1.0):
        await self.bucket(provider).wait(tokens)
