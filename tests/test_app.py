import pytest
from fastapi.testclient import TestClient

import app as app_module


@pytest.fixture
def client(monkeypatch):
    for name in ("FRED_API_KEY", "ALPHA_VANTAGE_API_KEY", "BRAVE_SEARCH_API_KEY"):
        monkeypatch.setenv(name, "")
    monkeypatch.setenv("ENABLE_SCHEDULER", "false")
    with TestClient(app_module.app) as c:
        yield c


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "healthy"
    assert body["scheduler"] == "disabled"
    assert body["credentials"] == {"fred": False, "alpha_vantage": False, "brave_search": False}


def test_standard_context_uses_placeholder_indicators(client):
    r = client.get("/api/context/standard")
    assert r.status_code == 200
    body = r.json()
    assert body["tier"] == "standard"
    assert body["cache_key"] == "market_context_standard_false"
    assert "Fed Funds Rate: 5.25%" in body["context"]
    assert "LIVE MARKET DATA:" not in body["context"]


def test_premium_context_has_live_data(client):
    body = client.get("/api/context/premium", params={"demo": "true"}).json()
    assert body["cache_key"] == "market_context_premium_true"
    assert "CD Rates: 3-month: 5.25%" in body["context"]


def test_unknown_tier_is_served_as_starter(client):
    body = client.get("/api/context/diamond").json()
    assert body["tier"] == "starter"
    assert "ECONOMIC INDICATORS:" not in body["context"]


def test_structured_context(client):
    r = client.post("/api/context/starter/structured", json={"accounts": [{"id": "acc-1"}]})
    assert r.status_code == 200
    body = r.json()
    assert body["accounts"] == [{"id": "acc-1"}]
    assert body["tier_info"]["current_tier"] == "starter"
    assert body["market_context"] == {"economic_indicators": None, "live_market_data": None}


def test_tier_info(client):
    body = client.get("/api/tiers/standard").json()
    assert body["access"]["has_economic_context"] is True
    assert body["access"]["has_live_data"] is False
    assert body["next_tier"] == "premium"
    assert {s["id"] for s in body["unavailable_sources"]} >= {"alpha-vantage-cd-rates"}


def test_search_is_gated_by_tier(client):
    assert client.get("/api/search", params={"q": "cd rates", "tier": "starter"}).status_code == 403

    body = client.get("/api/search", params={"q": "cd rates", "tier": "standard"}).json()
    assert body["results"] == []
    assert body["summary"] == 'No recent information found for "cd rates".'


def test_cache_stats_refresh_and_invalidate(client):
    client.get("/api/context/starter")
    client.get("/api/context/standard")
    assert client.get("/api/cache/stats").json()["market_context_cache"]["size"] == 2

    assert client.post("/api/context/refresh").json() == {"ok": True, "refreshed": 6}
    assert client.get("/api/cache/stats").json()["market_context_cache"]["size"] == 6

    r = client.post("/api/cache/invalidate", params={"pattern": "market"})
    assert r.json()["summaries"] == 6
    assert client.get("/api/cache/stats").json()["market_context_cache"]["size"] == 0


def test_scheduler_disabled(client):
    assert client.get("/api/scheduler").json() == {"running": False, "enabled": False, "jobs": []}
