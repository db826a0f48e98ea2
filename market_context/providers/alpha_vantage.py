"""
Market Context: Alpha Vantage Live Market Data Provider
────────────────────────────────────────────────────────
Short-horizon rates for Premium users:

  Treasury yields   Alpha Vantage TREASURY_YIELD, one request per maturity
  CD rates          national-average reference table
  Mortgage rates    national-average reference table

Alpha Vantage has no CD or mortgage feed, so those two lists come from the
reference tables and are stamped with the fetch time like the yields.
Without a key the yields come from a reference table too, and the bundle is
labelled "Alpha Vantage (placeholder)".

The whole bundle lives under one cache key for five minutes. Errors are
raised, not swallowed: live data is a paid guarantee and the caller has to
know when it is missing.
"""

import asyncio
import logging
from typing import List, Optional, Tuple

from market_context.cache.ttl_config import LIVE_MARKET_DATA_TTL
from market_context.errors import ProviderError, UpstreamError
from market_context.models import (
    CDRate, LiveMarketData, MortgageRate, Tier, TreasuryYield, utc_now_iso,
)
from market_context.providers.base import MarketDataProvider

log = logging.getLogger("mc.providers.alpha_vantage")

AV_BASE_URL = "https://www.alphavantage.co/query"
CACHE_KEY   = "live_market_data"

# (API maturity, display term)
TREASURY_MATURITIES: List[Tuple[str, str]] = [
    ("3month", "3-month"),
    ("2year",  "2-year"),
    ("5year",  "5-year"),
    ("10year", "10-year"),
    ("30year", "30-year"),
]

REFERENCE_CD_RATES: List[Tuple[str, float]] = [
    ("3-month", 5.25),
    ("6-month", 5.35),
    ("1-year",  5.45),
    ("2-year",  5.55),
]

REFERENCE_TREASURY_YIELDS: List[Tuple[str, float]] = [
    ("1-month", 5.12),
    ("3-month", 5.18),
    ("6-month", 5.25),
    ("1-year",  5.32),
    ("2-year",  5.45),
    ("5-year",  5.58),
    ("10-year", 5.65),
    ("30-year", 5.75),
]

REFERENCE_MORTGAGE_RATES: List[Tuple[str, float]] = [
    ("30-year-fixed", 6.85),
    ("15-year-fixed", 6.25),
    ("5/1-arm",       6.45),
]

NATIONAL_AVERAGE = "National Average"

SOURCE             = "Alpha Vantage"
SOURCE_PLACEHOLDER = "Alpha Vantage (placeholder)"

# Payload keys Alpha Vantage uses instead of an HTTP error status
_VENDOR_ERROR_KEYS = ("Error Message", "Note", "Information")


class AlphaVantageProvider(MarketDataProvider):

    provider_id = "alpha-vantage"

    @property
    def name(self) -> str:
        return "Alpha Vantage"

    async def get_economic_indicators(self):
        raise ProviderError("Alpha Vantage does not provide economic indicators")

    async def get_live_market_data(self, tier: Tier) -> Optional[LiveMarketData]:
        if Tier.parse(tier) == Tier.lowest():
            log.debug("Live market data requested for lowest tier, returning nothing")
            return None

        cached = self.cache.get(CACHE_KEY)
        if cached is not None:
            return cached

        if self.has_credentials:
            yields = await self._fetch_treasury_yields()
            source = SOURCE
        else:
            log.debug("No Alpha Vantage key, using reference yields")
            yields = _reference_yields()
            source = SOURCE_PLACEHOLDER

        now = utc_now_iso()
        data = LiveMarketData(
            cd_rates=[CDRate(term, rate, NATIONAL_AVERAGE, now) for term, rate in REFERENCE_CD_RATES],
            treasury_yields=yields,
            mortgage_rates=[MortgageRate(kind, rate, now) for kind, rate in REFERENCE_MORTGAGE_RATES],
            source=source,
        )
        self.cache.set(CACHE_KEY, data, LIVE_MARKET_DATA_TTL)
        return data

    async def _fetch_treasury_yields(self) -> List[TreasuryYield]:
        results = await asyncio.gather(
            *[self._fetch_treasury_yield(maturity, term) for maturity, term in TREASURY_MATURITIES],
            return_exceptions=True,
        )
        for r in results:
            if isinstance(r, Exception):
                raise r
        return list(results)

    async def _fetch_treasury_yield(self, maturity: str, term: str) -> TreasuryYield:
        params = {
            "function": "TREASURY_YIELD",
            "interval": "daily",
            "maturity": maturity,
            "apikey":   self.api_key,
        }
        data = await self._get_json(AV_BASE_URL, params=params)

        for k in _VENDOR_ERROR_KEYS:
            if k in data:
                raise UpstreamError(self.provider_id, f"{k}: {data[k]}")

        # Holidays come back as "."
        for row in data.get("data", []):
            try:
                value = float(row["value"])
            except (ValueError, KeyError, TypeError):
                continue
            return TreasuryYield(term=term, yield_=value, last_updated=utc_now_iso())
        raise UpstreamError(self.provider_id, f"no treasury yield observations for {maturity}")


def _reference_yields() -> List[TreasuryYield]:
    now = utc_now_iso()
    return [TreasuryYield(term, value, now) for term, value in REFERENCE_TREASURY_YIELDS]
