"""
Market Context: Provider Base
──────────────────────────────
Every upstream integration inherits from UpstreamProvider, which owns the
shared plumbing: API key, generic cache, optional rate limiter and the
HTTP client.

Market data providers additionally implement MarketDataProvider, the
interface the orchestrator depends on:

  - get_economic_indicators() -> EconomicIndicator
  - get_live_market_data(tier) -> LiveMarketData | None

A provider that does not serve one of the two raises ProviderError for it.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from market_context.cache import TTLCache
from market_context.config import is_placeholder_key
from market_context.errors import UpstreamError
from market_context.models import EconomicIndicator, LiveMarketData, Tier
from market_context.rate_limiter import RateLimiter

log = logging.getLogger("mc.providers")

REQUEST_TIMEOUT = 10
HEADERS = {
    "User-Agent": "market-context/1.0",
    "Accept": "application/json",
}


def build_client(timeout: float = REQUEST_TIMEOUT) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
        timeout=timeout,
        headers=HEADERS,
    )


class UpstreamProvider:
    """
    Shared HTTP + cache plumbing.

    A client passed in is borrowed and never closed here; without one, the
    provider opens its own on first use and closes it in aclose().
    """

    provider_id = "upstream"

    def __init__(
        self,
        api_key: str,
        cache: TTLCache,
        client: Optional[httpx.AsyncClient] = None,
        limiter: Optional[RateLimiter] = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.api_key  = (api_key or "").strip()
        self.cache    = cache
        self.limiter  = limiter
        self.timeout  = timeout
        self._client  = client
        self._owns_client = client is None

    @property
    def has_credentials(self) -> bool:
        return not is_placeholder_key(self.api_key)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = build_client(self.timeout)
            self._owns_client = True
        return self._client

    async def _get_json(self, url: str, params: dict = None, headers: dict = None) -> dict:
        """GET and decode JSON. Anything but a 200 with a JSON body raises UpstreamError."""
        if self.limiter:
            await self.limiter.acquire(self.provider_id)
        try:
            r = await self._get_client().get(url, params=params, headers=headers, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise UpstreamError(self.provider_id, f"timeout after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise UpstreamError(self.provider_id, f"transport error: {e}") from e

        if r.status_code != 200:
            raise UpstreamError(self.provider_id, "unexpected status", status=r.status_code)
        try:
            return r.json()
        except ValueError as e:
            raise UpstreamError(self.provider_id, "response was not JSON", status=r.status_code) from e

    async def aclose(self):
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()


class MarketDataProvider(UpstreamProvider, ABC):

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    async def get_economic_indicators(self) -> EconomicIndicator: ...

    @abstractmethod
    async def get_live_market_data(self, tier: Tier) -> Optional[LiveMarketData]: ...
