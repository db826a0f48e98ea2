import asyncio

import httpx
import pytest

from market_context.cache import TTLCache
from market_context.errors import UpstreamError
from market_context.models import SearchResult
from market_context.providers.search import (
    BraveSearchProvider, enhance_financial_query, filter_financial_results,
)


def make_provider(handler, api_key="real-brave-key"):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BraveSearchProvider(api_key, TTLCache(), client=client)


def test_enhance_financial_query():
    assert enhance_financial_query("Best CD rates this week") == "Best CD rates this week financial advice"
    assert enhance_financial_query("weather in Boston") == "weather in Boston"


def test_filter_financial_results():
    results = [
        SearchResult("a", "", "https://www.bankrate.com/x", "Brave", 1.0),
        SearchResult("b", "", "https://example.com/y", "Brave", 0.9),
    ]
    assert [r.title for r in filter_financial_results(results)] == ["a"]


def test_search_parses_web_results():
    async def _run():
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"web": {"results": [
                {"title": "CD Rates Today", "description": "Up to 5.5% APY", "url": "https://www.bankrate.com/cd"},
                {"title": "CD Ladder", "description": "Build a ladder", "url": "https://www.investopedia.com/cd"},
            ]}})

        results = await make_provider(handler).search("cd rates", max_results=5)

        assert [r.title for r in results] == ["CD Rates Today", "CD Ladder"]
        assert results[0].snippet == "Up to 5.5% APY"
        assert results[0].relevance == 1.0
        assert results[1].relevance == 0.9
        assert seen[0].headers["X-Subscription-Token"] == "real-brave-key"
        assert seen[0].url.params["count"] == "5"

    asyncio.run(_run())


def test_search_without_key_returns_nothing():
    async def _run():
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={})

        assert await make_provider(handler, api_key="test_brave_key").search("cd rates") == []
        assert seen == []

    asyncio.run(_run())


def test_search_http_error_is_raised():
    async def _run():
        provider = make_provider(lambda request: httpx.Response(429, json={}))
        with pytest.raises(UpstreamError) as exc:
            await provider.search("cd rates")
        assert exc.value.status == 429

    asyncio.run(_run())
