import asyncio

import httpx
import pytest

from market_context.cache import TTLCache
from market_context.errors import ProviderError, UpstreamError
from market_context.models import Tier
from market_context.providers.alpha_vantage import (
    CACHE_KEY, REFERENCE_TREASURY_YIELDS, SOURCE, SOURCE_PLACEHOLDER, TREASURY_MATURITIES,
    AlphaVantageProvider,
)

YIELDS = {"3month": "5.21", "2year": "4.71", "5year": "4.33", "10year": "4.25", "30year": "4.41"}


def av_handler(calls, payload=None, status=200):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if payload is not None:
            return httpx.Response(status, json=payload)
        maturity = request.url.params["maturity"]
        return httpx.Response(status, json={
            "name": "Treasury Yield",
            "data": [{"date": "2024-06-03", "value": YIELDS[maturity]}],
        })
    return handler


def make_provider(handler, api_key="real-av-key", cache=None):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AlphaVantageProvider(api_key, cache if cache is not None else TTLCache(), client=client)


def test_lowest_tier_gets_nothing_and_no_request():
    async def _run():
        calls = []
        cache = TTLCache()
        provider = make_provider(av_handler(calls), cache=cache)
        assert await provider.get_live_market_data(Tier.STARTER) is None
        assert await provider.get_live_market_data("starter") is None
        assert calls == []
        assert len(cache) == 0

    asyncio.run(_run())


def test_premium_fetches_yields_and_fills_reference_tables():
    async def _run():
        calls = []
        provider = make_provider(av_handler(calls))
        data = await provider.get_live_market_data(Tier.PREMIUM)

        assert len(calls) == len(TREASURY_MATURITIES)
        assert [y.term for y in data.treasury_yields] == [t for _, t in TREASURY_MATURITIES]
        assert data.treasury_yields[0].yield_ == 5.21
        assert data.cd_rates[0].term == "3-month"
        assert data.cd_rates[0].rate == 5.25
        assert data.mortgage_rates[0].type == "30-year-fixed"
        assert calls[0].url.params["function"] == "TREASURY_YIELD"
        assert data.source == SOURCE

    asyncio.run(_run())


def test_cached_bundle_skips_network():
    async def _run():
        calls = []
        cache = TTLCache()
        provider = make_provider(av_handler(calls), cache=cache)
        first = await provider.get_live_market_data(Tier.PREMIUM)
        second = await provider.get_live_market_data(Tier.STANDARD)

        assert second is first
        assert len(calls) == len(TREASURY_MATURITIES)
        entry = cache.entry(CACHE_KEY)
        assert entry.expires_at - entry.stored_at == pytest.approx(300)

    asyncio.run(_run())


def test_vendor_note_is_raised():
    async def _run():
        calls = []
        note = {"Note": "Thank you for using Alpha Vantage! Our standard API call frequency is 5 calls per minute."}
        cache = TTLCache()
        provider = make_provider(av_handler(calls, payload=note), cache=cache)
        with pytest.raises(UpstreamError):
            await provider.get_live_market_data(Tier.PREMIUM)
        assert CACHE_KEY not in cache.keys()

    asyncio.run(_run())


def test_http_error_status_is_raised():
    async def _run():
        provider = make_provider(av_handler([], payload={}, status=503))
        with pytest.raises(UpstreamError) as exc:
            await provider.get_live_market_data(Tier.PREMIUM)
        assert exc.value.status == 503
        assert exc.value.source == "alpha-vantage"

    asyncio.run(_run())


def test_without_key_uses_reference_yields():
    async def _run():
        calls = []
        provider = make_provider(av_handler(calls), api_key="")
        data = await provider.get_live_market_data(Tier.PREMIUM)

        assert calls == []
        assert [(y.term, y.yield_) for y in data.treasury_yields] == REFERENCE_TREASURY_YIELDS
        assert [y.term for y in data.treasury_yields] == [
            "1-month", "3-month", "6-month", "1-year", "2-year", "5-year", "10-year", "30-year",
        ]
        assert data.source == SOURCE_PLACEHOLDER
        assert data.to_dict()["source"] == SOURCE_PLACEHOLDER

    asyncio.run(_run())


def test_economic_indicators_not_served():
    async def _run():
        provider = make_provider(av_handler([]))
        with pytest.raises(ProviderError):
            await provider.get_economic_indicators()

    asyncio.run(_run())
