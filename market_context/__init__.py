"""
Market Context
──────────────
Tier-aware market context for a personal-finance assistant: FRED economic
indicators, Alpha Vantage live rates and Brave web search, cached and
composed into a single text block per subscription tier.
"""

from market_context.cache import TTLCache
from market_context.config import Settings
from market_context.errors import MarketContextError, ProviderError, UpstreamError
from market_context.models import Tier, TierAccess, tier_access
from market_context.orchestrator import MarketContextOrchestrator

__all__ = [
    "TTLCache", "Settings",
    "MarketContextError", "ProviderError", "UpstreamError",
    "Tier", "TierAccess", "tier_access",
    "MarketContextOrchestrator",
]
