"""
Market Context: TTL Configuration
──────────────────────────────────
Single source of truth for cache durations, in seconds.
Organised by how fast the underlying number moves.
"""

DEFAULT_TTL = 24 * 3600            # generic cache default

# Services are "live" when their data can move inside five minutes.
LIVE_THRESHOLD = 5 * 60

# ── FRED series (per metric) ──────────────────────────────────
FRED_SERIES_TTL = {
    "FEDFUNDS":      24 * 3600,    # monthly average, moves at FOMC meetings
    "CPIAUCSL":      24 * 3600,    # monthly release
    "MORTGAGE30US":  12 * 3600,    # weekly survey, published Thursdays
    "TERMCBCCALLNS": 24 * 3600,    # quarterly
}

# ── Live data bundle ──────────────────────────────────────────
LIVE_MARKET_DATA_TTL = 5 * 60

# ── Search results ────────────────────────────────────────────
SEARCH_TTL = 30 * 60

# ── Composed summaries (orchestrator's own window) ────────────
CONTEXT_REFRESH_INTERVAL = 3600
