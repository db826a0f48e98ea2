"""
Market Context: Tiered Orchestrator
────────────────────────────────────
Decides which providers a tier may use, calls them in parallel, and turns
whatever came back into one context string for the completion engine.

Usage:
    orchestrator = MarketContextOrchestrator(economic=fred, live=alpha_vantage, cache=cache)
    text = await orchestrator.get_market_context_summary("standard", demo=False)

Composed summaries are cached per (tier, demo) for `refresh_interval`
seconds (default one hour), on top of each provider's own cache:

    absent / stale ──request──▶ refreshing ──▶ fresh ──(interval elapses)──▶ stale

A provider failure or timeout is logged and its section is left out.
Nothing a provider raises ever reaches the caller.
"""

import asyncio
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from market_context.cache import TTLCache
from market_context.cache.ttl_config import CONTEXT_REFRESH_INTERVAL
from market_context.config import DEFAULT_CONTEXT_TIMEOUT
from market_context.insights import (
    DEFAULT_THRESHOLDS, InsightThresholds, economic_summary, format_context,
    generate_insights, market_summary,
)
from market_context.models import (
    ContextKey, MarketContext, MarketContextSummary, SearchContext, Tier, TierAccess,
    TierAwareContext, TierInfo, tier_access,
)
from market_context.providers.base import MarketDataProvider
from market_context.providers.search import (
    BraveSearchProvider, enhance_financial_query, filter_financial_results,
)
from market_context import sources

log = logging.getLogger("mc.orchestrator")

DEMO_MODES = (False, True)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MarketContextOrchestrator:

    def __init__(
        self,
        economic: MarketDataProvider,
        live: MarketDataProvider,
        cache: TTLCache,
        search: Optional[BraveSearchProvider] = None,
        refresh_interval: float = CONTEXT_REFRESH_INTERVAL,
        provider_timeout: float = DEFAULT_CONTEXT_TIMEOUT,
        thresholds: InsightThresholds = DEFAULT_THRESHOLDS,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.economic         = economic
        self.live             = live
        self.search           = search
        self.cache            = cache
        self.refresh_interval = refresh_interval
        self.provider_timeout = provider_timeout
        self.thresholds       = thresholds
        self._clock           = clock

        self._summaries: Dict[ContextKey, MarketContextSummary] = {}
        self._summaries_lock = threading.RLock()
        self._refresh_locks: Dict[ContextKey, asyncio.Lock] = {}
        self.last_refresh: Optional[datetime] = None

    # ── Entitlements ──────────────────────────────────────────

    def get_tier_access(self, tier: Any) -> TierAccess:
        return tier_access(tier)

    # ── Provider fan-out ──────────────────────────────────────

    async def _guarded(self, label: str, call: Awaitable) -> Optional[Any]:
        """Await one provider call with a timeout. Failures are logged and become None."""
        try:
            return await asyncio.wait_for(call, timeout=self.provider_timeout)
        except asyncio.TimeoutError:
            log.warning(f"{label} timed out after {self.provider_timeout}s, section omitted")
        except Exception as e:
            log.error(f"{label} failed, section omitted: {e}")
        return None

    async def _nothing(self) -> None:
        return None

    async def get_market_context(self, tier: Any, demo: bool = False) -> MarketContext:
        """Raw indicators and live data this tier is entitled to. Missing pieces stay None."""
        access = self.get_tier_access(tier)
        log.debug(f"Fetching market context for {access.tier.value} (demo={demo})")

        economic_call = (
            self._guarded("Economic indicators", self.economic.get_economic_indicators())
            if access.has_economic_context else self._nothing()
        )
        live_call = (
            self._guarded("Live market data", self.live.get_live_market_data(access.tier))
            if access.has_live_data else self._nothing()
        )
        economic, live = await asyncio.gather(economic_call, live_call)
        return MarketContext(economic_indicators=economic, live_market_data=live)

    # ── Summary cache ─────────────────────────────────────────

    def _key(self, tier: Any, demo: bool) -> ContextKey:
        return ContextKey(Tier.parse(tier), bool(demo))

    def _fresh_summary(self, key: ContextKey) -> Optional[MarketContextSummary]:
        with self._summaries_lock:
            summary = self._summaries.get(key)
        if summary is not None and summary.age_seconds(self._clock()) < self.refresh_interval:
            return summary
        return None

    def _refresh_lock(self, key: ContextKey) -> asyncio.Lock:
        with self._summaries_lock:
            return self._refresh_locks.setdefault(key, asyncio.Lock())

    async def refresh_market_context(self, tier: Any, demo: bool = False) -> MarketContextSummary:
        """Fetch, compose and store a new summary regardless of the cached one's age."""
        key = self._key(tier, demo)
        context = await self.get_market_context(key.tier, key.demo)

        summary = MarketContextSummary(
            last_update=self._clock(),
            economic_summary=economic_summary(context.economic_indicators),
            market_summary=market_summary(context.live_market_data),
            insights=generate_insights(context.economic_indicators, context.live_market_data, self.thresholds),
            cache_key=str(key),
        )
        with self._summaries_lock:
            self._summaries[key] = summary
            self.last_refresh = summary.last_update
        log.info(f"Refreshed {key}: {len(summary.insights)} insights")
        return summary

    async def get_summary(self, tier: Any, demo: bool = False) -> MarketContextSummary:
        key = self._key(tier, demo)
        summary = self._fresh_summary(key)
        if summary is not None:
            return summary

        # Concurrent requests for the same key share one refresh
        async with self._refresh_lock(key):
            summary = self._fresh_summary(key)
            if summary is not None:
                return summary
            return await self.refresh_market_context(key.tier, key.demo)

    async def get_market_context_summary(self, tier: Any, demo: bool = False) -> str:
        """The formatted context block for the completion engine."""
        return format_context(await self.get_summary(tier, demo))

    async def force_refresh_all_context(self) -> int:
        """Refresh every (tier, demo) pair. Returns how many summaries were rebuilt."""
        refreshed = 0
        for tier in Tier:
            for demo in DEMO_MODES:
                key = ContextKey(tier, demo)
                async with self._refresh_lock(key):
                    await self.refresh_market_context(tier, demo)
                refreshed += 1
        log.info(f"Force-refreshed {refreshed} market contexts")
        return refreshed

    def invalidate_cache(self, pattern: str) -> dict:
        """
        Drop provider cache entries and composed summaries whose key contains
        `pattern`. Every summary key starts with "market_context_", so
        "market" clears them all.
        """
        removed_data = self.cache.invalidate(pattern)
        with self._summaries_lock:
            doomed = [k for k in self._summaries if pattern in str(k)]
            for k in doomed:
                del self._summaries[k]
        log.info(f"Invalidated '{pattern}': {removed_data} data entries, {len(doomed)} summaries")
        return {"data_entries": removed_data, "summaries": len(doomed)}

    def get_cache_stats(self) -> dict:
        stats = self.cache.stats()
        with self._summaries_lock:
            stats["market_context_cache"] = {
                "size":         len(self._summaries),
                "keys":         [str(k) for k in self._summaries],
                "last_refresh": self.last_refresh.isoformat() if self.last_refresh else None,
            }
        return stats

    # ── Structured context ────────────────────────────────────

    async def build_tier_aware_context(
        self,
        tier: Any,
        accounts: Optional[List[Any]] = None,
        transactions: Optional[List[Any]] = None,
        demo: bool = False,
    ) -> TierAwareContext:
        tier = Tier.parse(tier)
        available   = sources.sources_for_tier(tier)
        unavailable = sources.unavailable_sources_for_tier(tier)

        market_context = await self.get_market_context(tier, demo)

        context = TierAwareContext(
            accounts=list(accounts or []),
            transactions=list(transactions or []),
            market_context=market_context,
            tier_info=TierInfo(
                current_tier=tier,
                available_sources=[s.name for s in available],
                unavailable_sources=[s.name for s in unavailable],
                upgrade_suggestions=sources.upgrade_suggestions(tier),
                limitations=sources.tier_limitations(tier),
            ),
            upgrade_hints=sources.upgrade_hints(tier),
        )
        log.info(
            f"Tier-aware context for {tier.value}: {len(available)} sources available, "
            f"{len(unavailable)} locked"
        )
        return context

    # ── Search ────────────────────────────────────────────────

    async def get_search_context(self, query: str, tier: Any) -> Optional[SearchContext]:
        """Web search results for entitled tiers. None when not entitled or the search failed."""
        access = self.get_tier_access(tier)
        if not access.has_search_context or self.search is None:
            return None

        cache_key = f"search_{access.tier.value}_{query.strip().lower()}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        results = await self._guarded("Search", self.search.search(enhance_financial_query(query)))
        if results is None:
            return None

        results = filter_financial_results(results) or results
        if results:
            lines = [f"Latest real-time information for \"{query}\":"]
            lines += [f"{i}. {r.title}: {r.snippet}" for i, r in enumerate(results, 1)]
            summary = "\n".join(lines)
        else:
            summary = f"No recent information found for \"{query}\"."

        context = SearchContext(query=query, results=results, summary=summary)
        self.cache.set(cache_key, context, sources.get_source("brave-search").cache_duration)
        return context
