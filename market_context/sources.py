"""
Market Context: Data Source Registry
─────────────────────────────────────
Static catalogue of every data source the advisor can draw on, tagged with
the tiers entitled to it. All entitlement questions are answered from here
so they can be audited in one place.

  Starter  : account data only
  Standard : + economic indicators (FRED), investment holdings, search
  Premium  : + live market feeds (Alpha Vantage)

Rules the catalogue keeps:
  - a source available to a tier is available to every higher tier
  - live sources (data moves inside 5 minutes) cache for ≤ 5 minutes,
    stable sources cache for longer
  - external market feeds are Premium-only
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional

from market_context.cache.ttl_config import FRED_SERIES_TTL, LIVE_MARKET_DATA_TTL, SEARCH_TTL
from market_context.models import Tier, UpgradeHint

ALL_TIERS      = frozenset(Tier)
STANDARD_PLUS  = frozenset({Tier.STANDARD, Tier.PREMIUM})
PREMIUM_ONLY   = frozenset({Tier.PREMIUM})

CATEGORIES = ("account", "economic", "external", "search")


@dataclass(frozen=True)
class DataSourceConfig:
    id:              str
    name:            str
    description:     str
    category:        str                 # one of CATEGORIES
    provider:        str                 # "plaid" | "fred" | "alpha-vantage" | "brave"
    tiers:           FrozenSet[Tier]
    cache_duration:  int                 # seconds
    is_live:         bool
    rate_limit:      Optional[int] = None  # requests per minute
    upgrade_benefit: Optional[str] = None

    @property
    def lowest_tier(self) -> Tier:
        return min(self.tiers, key=lambda t: t.rank)

    def to_dict(self) -> dict:
        return {
            "id":              self.id,
            "name":            self.name,
            "description":     self.description,
            "category":        self.category,
            "provider":        self.provider,
            "tiers":           [t.value for t in sorted(self.tiers, key=lambda t: t.rank)],
            "cache_duration":  self.cache_duration,
            "is_live":         self.is_live,
            "rate_limit":      self.rate_limit,
            "upgrade_benefit": self.upgrade_benefit,
        }


_SOURCES: List[DataSourceConfig] = [
    # ── Account data (all tiers) ──────────────────────────────
    DataSourceConfig(
        "account-balances", "Account Balances",
        "Current and available balances for all connected accounts",
        "account", "plaid", ALL_TIERS, 5 * 60, True,
    ),
    DataSourceConfig(
        "account-transactions", "Transaction History",
        "Detailed transaction history with categories and merchants",
        "account", "plaid", ALL_TIERS, 5 * 60, True,
    ),
    DataSourceConfig(
        "account-institutions", "Financial Institutions",
        "Connected banks and financial institutions",
        "account", "plaid", ALL_TIERS, 60 * 60, False,
    ),

    # ── Investment data (Standard+) ───────────────────────────
    DataSourceConfig(
        "plaid-investments", "Investment Holdings",
        "Investment portfolio holdings and securities information",
        "account", "plaid", STANDARD_PLUS, 15 * 60, False,
        upgrade_benefit="Track your investment portfolio and get diversification insights",
    ),
    DataSourceConfig(
        "plaid-investment-transactions", "Investment Transactions",
        "Buy/sell transactions and portfolio activity history",
        "account", "plaid", STANDARD_PLUS, 15 * 60, False,
        upgrade_benefit="Analyze your investment activity and trading patterns",
    ),

    # ── Economic indicators (Standard+) ───────────────────────
    DataSourceConfig(
        "fred-cpi", "Consumer Price Index",
        "Inflation rate tracking via CPI data",
        "economic", "fred", STANDARD_PLUS, FRED_SERIES_TTL["CPIAUCSL"], False,
        upgrade_benefit="Track inflation impact on your savings",
    ),
    DataSourceConfig(
        "fred-fed-rate", "Federal Reserve Rate",
        "Current Federal Funds Rate",
        "economic", "fred", STANDARD_PLUS, FRED_SERIES_TTL["FEDFUNDS"], False,
        upgrade_benefit="Understand how Fed policy affects your loans and savings",
    ),
    DataSourceConfig(
        "fred-mortgage-rate", "Mortgage Rates",
        "Current 30-year fixed mortgage rates",
        "economic", "fred", STANDARD_PLUS, FRED_SERIES_TTL["MORTGAGE30US"], False,
        upgrade_benefit="Compare mortgage rates for refinancing decisions",
    ),
    DataSourceConfig(
        "fred-credit-card-apr", "Credit Card APR",
        "Average credit card interest rates",
        "economic", "fred", STANDARD_PLUS, FRED_SERIES_TTL["TERMCBCCALLNS"], False,
        upgrade_benefit="Understand credit card costs and debt management",
    ),

    # ── Search context (Standard+) ────────────────────────────
    DataSourceConfig(
        "brave-search", "Real-time Financial Search",
        "Search for current financial information and rates",
        "search", "brave", STANDARD_PLUS, SEARCH_TTL, False,
        rate_limit=60,
        upgrade_benefit="Get real-time financial information and current rates",
    ),

    # ── Live market data (Premium only) ───────────────────────
    DataSourceConfig(
        "alpha-vantage-cd-rates", "CD Rates",
        "Current certificate of deposit rates and APY",
        "external", "alpha-vantage", PREMIUM_ONLY, LIVE_MARKET_DATA_TTL, True,
        rate_limit=5,
        upgrade_benefit="Find the best CD rates to maximize your savings",
    ),
    DataSourceConfig(
        "alpha-vantage-treasury-yields", "Treasury Yields",
        "Current Treasury bond yields across all maturities",
        "external", "alpha-vantage", PREMIUM_ONLY, LIVE_MARKET_DATA_TTL, True,
        rate_limit=5,
        upgrade_benefit="Compare Treasury yields for safe investment options",
    ),
    DataSourceConfig(
        "alpha-vantage-mortgage-rates", "Live Mortgage Rates",
        "Real-time mortgage rates from multiple lenders",
        "external", "alpha-vantage", PREMIUM_ONLY, LIVE_MARKET_DATA_TTL, True,
        rate_limit=5,
        upgrade_benefit="Get real-time mortgage rates for home buying decisions",
    ),
    DataSourceConfig(
        "alpha-vantage-stock-data", "Stock Market Data",
        "Real-time stock prices and market data",
        "external", "alpha-vantage", PREMIUM_ONLY, 60, True,
        rate_limit=5,
        upgrade_benefit="Track your investments with real-time market data",
    ),
]

REGISTRY: Dict[str, DataSourceConfig] = {s.id: s for s in _SOURCES}

_TIER_LIMITATIONS: Dict[Tier, List[str]] = {
    Tier.STARTER: [
        "Limited to account data only",
        "No economic context for financial decisions",
        "No real-time search for current financial information",
        "No live market data for investment insights",
    ],
    Tier.STANDARD: [
        "No live CD rates or Treasury yields",
        "No stock market tracking",
        "No real-time market data feeds",
    ],
    Tier.PREMIUM: [
        "Full access to all data sources",
    ],
}


def get_source(source_id: str) -> Optional[DataSourceConfig]:
    return REGISTRY.get(source_id)


def all_sources() -> List[DataSourceConfig]:
    return list(REGISTRY.values())


def sources_for_tier(tier) -> List[DataSourceConfig]:
    tier = Tier.parse(tier)
    return [s for s in REGISTRY.values() if tier in s.tiers]


def unavailable_sources_for_tier(tier) -> List[DataSourceConfig]:
    tier = Tier.parse(tier)
    return [s for s in REGISTRY.values() if tier not in s.tiers]


def next_tier(tier) -> Optional[Tier]:
    tiers = list(Tier)
    rank = Tier.parse(tier).rank
    return tiers[rank + 1] if rank + 1 < len(tiers) else None


def upgrade_suggestions(tier) -> List[str]:
    """One line per higher tier that unlocks something, lowest upgrade first."""
    tier = Tier.parse(tier)
    missing = unavailable_sources_for_tier(tier)
    suggestions = []

    standard_gain = [s.name for s in missing if Tier.STANDARD in s.tiers]
    if tier == Tier.STARTER and standard_gain:
        suggestions.append(
            f"Upgrade to Standard to access economic indicators like {', '.join(standard_gain)}"
        )

    premium_gain = [s.name for s in missing if s.lowest_tier == Tier.PREMIUM]
    if premium_gain:
        lead = "live market data" if tier == Tier.STARTER else "real-time market data"
        suggestions.append(f"Upgrade to Premium for {lead} including {', '.join(premium_gain)}")

    return suggestions


def tier_limitations(tier) -> List[str]:
    return list(_TIER_LIMITATIONS[Tier.parse(tier)])


def upgrade_hints(tier) -> List[UpgradeHint]:
    return [
        UpgradeHint(
            feature=s.name,
            benefit=s.upgrade_benefit or s.description,
            required_tier=s.lowest_tier,
        )
        for s in unavailable_sources_for_tier(tier)
    ]


def rate_limits_per_minute() -> Dict[str, int]:
    """Tightest declared rate limit for each provider."""
    limits: Dict[str, int] = {}
    for s in REGISTRY.values():
        if s.rate_limit is not None:
            limits[s.provider] = min(limits.get(s.provider, s.rate_limit), s.rate_limit)
    return limits
