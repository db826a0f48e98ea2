"""
Market Context: FRED Economic Indicator Provider
─────────────────────────────────────────────────
Point-in-time macro indicators from the St. Louis Fed.

FRED series used:
  FEDFUNDS        Federal funds effective rate (policy rate)
  CPIAUCSL        CPI, requested as percent change from a year ago (units=pc1)
  MORTGAGE30US    30-year fixed mortgage average
  TERMCBCCALLNS   Commercial bank credit card plan APR

Each series is cached on its own. One failing series never blocks the
others: it is replaced by the last value this process saw for it, or by a
reference value, and labelled "FRED (fallback)".

Tier gating is not done here; that is the orchestrator's job.
"""

import asyncio
import logging
from typing import Dict, Optional, Tuple

from market_context.cache.ttl_config import FRED_SERIES_TTL
from market_context.errors import ProviderError, UpstreamError
from market_context.models import EconomicIndicator, MarketDataPoint, Tier, utc_now_iso
from market_context.providers.base import MarketDataProvider

log = logging.getLogger("mc.providers.fred")

FRED_BASE_URL = "https://api.stlouisfed.org/fred/series/observations"

# indicator field → (series id, extra request params)
SERIES: Dict[str, Tuple[str, dict]] = {
    "fed_rate":        ("FEDFUNDS",      {}),
    "cpi":             ("CPIAUCSL",      {"units": "pc1"}),
    "mortgage_rate":   ("MORTGAGE30US",  {}),
    "credit_card_apr": ("TERMCBCCALLNS", {}),
}

# Used when a series has never been fetched successfully in this process.
REFERENCE_VALUES: Dict[str, Tuple[float, str]] = {
    "FEDFUNDS":      (5.25,  "2024-01-01"),
    "CPIAUCSL":      (3.1,   "2024-01-01"),
    "MORTGAGE30US":  (6.85,  "2024-01-04"),
    "TERMCBCCALLNS": (24.59, "2024-01-01"),
}

SOURCE          = "FRED"
SOURCE_FALLBACK = "FRED (fallback)"
SOURCE_PLACEHOLDER = "FRED (placeholder)"


def cache_key(series_id: str) -> str:
    return f"fred_{series_id}"


class FREDProvider(MarketDataProvider):

    provider_id = "fred"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._last_known: Dict[str, MarketDataPoint] = {}

    @property
    def name(self) -> str:
        return "FRED"

    async def get_economic_indicators(self) -> EconomicIndicator:
        if not self.has_credentials:
            log.debug("No FRED key, returning placeholder indicators")
            return EconomicIndicator(**{
                field: self._reference_point(series_id, SOURCE_PLACEHOLDER)
                for field, (series_id, _) in SERIES.items()
            })

        fields = list(SERIES)
        results = await asyncio.gather(
            *[self._get_data_point_within_timeout(SERIES[f][0]) for f in fields],
            return_exceptions=True,
        )

        points = {}
        for field, result in zip(fields, results):
            series_id = SERIES[field][0]
            if isinstance(result, Exception):
                log.warning(f"FRED {series_id} failed, using fallback: {result!r}")
                points[field] = self._fallback_point(series_id)
            else:
                points[field] = result
        return EconomicIndicator(**points)

    async def _get_data_point_within_timeout(self, series_id: str) -> MarketDataPoint:
        # Per-series deadline: a hung series falls back on its own
        return await asyncio.wait_for(self.get_data_point(series_id), timeout=self.timeout)

    async def get_live_market_data(self, tier: Tier):
        raise ProviderError("FRED does not provide live market data")

    async def get_data_point(self, series_id: str) -> MarketDataPoint:
        """Latest observation for one series, cached for that series' TTL."""
        key = cache_key(series_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        extra = next((p for s, p in SERIES.values() if s == series_id), {})
        params = {
            "series_id":  series_id,
            "api_key":    self.api_key,
            "file_type":  "json",
            "sort_order": "desc",
            "limit":      5,
            **extra,
        }
        data = await self._get_json(FRED_BASE_URL, params=params)
        if "error_message" in data:
            raise UpstreamError(self.provider_id, data["error_message"])

        point = self._latest_observation(series_id, data.get("observations", []))
        if point is None:
            raise UpstreamError(self.provider_id, f"no usable observations for {series_id}")

        self.cache.set(key, point, FRED_SERIES_TTL.get(series_id))
        self._last_known[series_id] = point
        log.info(f"FRED {series_id} = {point.value} ({point.date})")
        return point

    @staticmethod
    def _latest_observation(series_id: str, observations: list) -> Optional[MarketDataPoint]:
        # FRED reports missing values as "."
        for o in observations:
            try:
                value = float(o["value"])
            except (ValueError, KeyError, TypeError):
                continue
            return MarketDataPoint(value=value, date=o.get("date", ""), source=SOURCE)
        return None

    def _fallback_point(self, series_id: str) -> MarketDataPoint:
        known = self._last_known.get(series_id)
        if known is not None:
            return MarketDataPoint(
                value=known.value, date=known.date,
                source=SOURCE_FALLBACK, last_updated=known.last_updated,
            )
        return self._reference_point(series_id, SOURCE_FALLBACK)

    @staticmethod
    def _reference_point(series_id: str, source: str) -> MarketDataPoint:
        value, date = REFERENCE_VALUES[series_id]
        return MarketDataPoint(value=value, date=date, source=source, last_updated=utc_now_iso())
