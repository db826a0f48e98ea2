import logging
import time
from contextlib import asynccontextmanager
from typing import Any, List

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from market_context import sources
from market_context.cache import TTLCache
from market_context.config import Settings, is_placeholder_key
from market_context.insights import format_context
from market_context.models import Tier
from market_context.orchestrator import MarketContextOrchestrator
from market_context.providers import (
    AlphaVantageProvider, BraveSearchProvider, FREDProvider, build_client,
)
from market_context.rate_limiter import RateLimiter
from market_context.scheduler import ContextRefreshScheduler

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
log = logging.getLogger("mc.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings.from_env()
    settings.warn_missing_credentials()

    client  = build_client(settings.provider_timeout)
    cache   = TTLCache()
    limiter = RateLimiter.from_registry()
    shared  = dict(cache=cache, client=client, limiter=limiter, timeout=settings.provider_timeout)

    orchestrator = MarketContextOrchestrator(
        economic=FREDProvider(settings.fred_api_key, **shared),
        live=AlphaVantageProvider(settings.alpha_vantage_api_key, **shared),
        search=BraveSearchProvider(settings.brave_search_api_key, **shared),
        cache=cache,
        refresh_interval=settings.refresh_interval,
        provider_timeout=settings.orchestrator_timeout,
    )
    scheduler = ContextRefreshScheduler(orchestrator) if settings.enable_scheduler else None
    if scheduler:
        scheduler.start()

    app.state.settings     = settings
    app.state.orchestrator = orchestrator
    app.state.scheduler    = scheduler
    log.info("Market context service ready")
    yield

    if scheduler:
        scheduler.stop()
    await client.aclose()


app = FastAPI(
    title="Market Context API",
    description="Tier-aware market context (FRED, Alpha Vantage, Brave Search) for financial advice prompts.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class StructuredContextRequest(BaseModel):
    accounts:     List[Any] = Field(default_factory=list, description="Linked account records, passed through untouched")
    transactions: List[Any] = Field(default_factory=list, description="Recent transactions, passed through untouched")
    demo:         bool      = False


def _orchestrator() -> MarketContextOrchestrator:
    return app.state.orchestrator


@app.get("/health")
async def health():
    settings: Settings = app.state.settings
    scheduler = app.state.scheduler
    return {
        "status":    "healthy",
        "scheduler": "running" if scheduler and scheduler.running else "disabled",
        "cache_size": _orchestrator().get_cache_stats()["size"],
        "credentials": {
            "fred":          not is_placeholder_key(settings.fred_api_key),
            "alpha_vantage": not is_placeholder_key(settings.alpha_vantage_api_key),
            "brave_search":  not is_placeholder_key(settings.brave_search_api_key),
        },
        "timestamp": int(time.time()),
    }


@app.get("/api/context/{tier}", tags=["Context"])
async def get_context(tier: str, demo: bool = Query(False, description="Demo-mode users get their own cache partition")):
    orchestrator = _orchestrator()
    access = orchestrator.get_tier_access(tier)
    summary = await orchestrator.get_summary(access.tier, demo)
    return {
        "tier":      access.tier.value,
        "demo":      demo,
        "access":    access.to_dict(),
        "cache_key": summary.cache_key,
        "context":   format_context(summary),
    }


@app.post("/api/context/{tier}/structured", tags=["Context"])
async def get_structured_context(tier: str, body: StructuredContextRequest):
    context = await _orchestrator().build_tier_aware_context(
        tier, accounts=body.accounts, transactions=body.transactions, demo=body.demo,
    )
    return context.to_dict()


@app.post("/api/context/refresh", tags=["Context"])
async def refresh_all_context():
    refreshed = await _orchestrator().force_refresh_all_context()
    return {"ok": True, "refreshed": refreshed}


@app.get("/api/tiers/{tier}", tags=["Tiers"])
async def get_tier(tier: str):
    t = Tier.parse(tier)
    return {
        "tier":                t.value,
        "access":              _orchestrator().get_tier_access(t).to_dict(),
        "available_sources":   [s.to_dict() for s in sources.sources_for_tier(t)],
        "unavailable_sources": [s.to_dict() for s in sources.unavailable_sources_for_tier(t)],
        "upgrade_suggestions": sources.upgrade_suggestions(t),
        "limitations":         sources.tier_limitations(t),
        "next_tier":           sources.next_tier(t).value if sources.next_tier(t) else None,
    }


@app.get("/api/search", tags=["Search"])
async def search(
    q: str = Query(..., min_length=1, description="Free-text financial question"),
    tier: str = Query("starter"),
):
    orchestrator = _orchestrator()
    access = orchestrator.get_tier_access(tier)
    if not access.has_search_context:
        raise HTTPException(403, f"Search context is not available on the {access.tier.value} tier")

    context = await orchestrator.get_search_context(q, access.tier)
    if context is None:
        raise HTTPException(503, "Search temporarily unavailable")
    return context.to_dict()


@app.get("/api/cache/stats", tags=["Cache"])
async def cache_stats():
    return _orchestrator().get_cache_stats()


@app.post("/api/cache/invalidate", tags=["Cache"])
async def invalidate_cache(pattern: str = Query(..., min_length=1, description="Substring of the keys to drop")):
    removed = _orchestrator().invalidate_cache(pattern)
    return {"pattern": pattern, **removed}


@app.get("/api/scheduler", tags=["Scheduler"])
async def scheduler_status():
    scheduler = app.state.scheduler
    if scheduler is None:
        return {"running": False, "enabled": False, "jobs": []}
    return {"enabled": True, **scheduler.status()}


if __name__ == "__main__":
    import uvicorn
    port = Settings.from_env().port
    uvicorn.run("app:app", host="0.0.0.0", port=port, reload=False, log_level="info")
