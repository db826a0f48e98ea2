"""
Market Context: Data Model
───────────────────────────
Canonical shapes passed between the providers, the orchestrator and the
HTTP surface. Everything here is plain data; no I/O.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ── Tiers ─────────────────────────────────────────────────────

class Tier(str, Enum):
    """Subscription tiers, declared lowest entitlement first."""
    STARTER  = "starter"
    STANDARD = "standard"
    PREMIUM  = "premium"

    @property
    def rank(self) -> int:
        return list(Tier).index(self)

    @classmethod
    def lowest(cls) -> "Tier":
        return list(cls)[0]

    @classmethod
    def parse(cls, value: Any) -> "Tier":
        """Normalise a tier from the billing service. Anything unknown is Starter."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.STARTER


@dataclass(frozen=True)
class TierAccess:
    tier:                  Tier
    has_economic_context:  bool
    has_live_data:         bool
    has_scenario_planning: bool
    has_search_context:    bool

    def to_dict(self) -> dict:
        d = asdict(self)
        d["tier"] = self.tier.value
        return d


_TIER_ACCESS: Dict[Tier, TierAccess] = {
    Tier.STARTER:  TierAccess(Tier.STARTER,  False, False, False, False),
    Tier.STANDARD: TierAccess(Tier.STANDARD, True,  False, False, True),
    Tier.PREMIUM:  TierAccess(Tier.PREMIUM,  True,  True,  True,  True),
}


def tier_access(tier: Any) -> TierAccess:
    return _TIER_ACCESS[Tier.parse(tier)]


# ── Economic indicators ───────────────────────────────────────

@dataclass
class MarketDataPoint:
    value:        float
    date:         str
    source:       str
    last_updated: str = field(default_factory=utc_now_iso)


@dataclass
class EconomicIndicator:
    fed_rate:        MarketDataPoint
    cpi:             MarketDataPoint   # year-over-year inflation, %
    mortgage_rate:   MarketDataPoint
    credit_card_apr: MarketDataPoint

    def to_dict(self) -> dict:
        return asdict(self)


# ── Live market data ──────────────────────────────────────────

@dataclass
class CDRate:
    term:         str                  # "3-month", "1-year", ...
    rate:         float
    institution:  str
    last_updated: str = field(default_factory=utc_now_iso)


@dataclass
class TreasuryYield:
    term:         str                  # "3-month", "10-year", ...
    yield_:       float
    last_updated: str = field(default_factory=utc_now_iso)


@dataclass
class MortgageRate:
    type:         str                  # "30-year-fixed", "5/1-arm", ...
    rate:         float
    last_updated: str = field(default_factory=utc_now_iso)


@dataclass
class LiveMarketData:
    cd_rates:        List[CDRate]        = field(default_factory=list)
    treasury_yields: List[TreasuryYield] = field(default_factory=list)
    mortgage_rates:  List[MortgageRate]  = field(default_factory=list)
    source:          str                 = "Alpha Vantage"

    def to_dict(self) -> dict:
        return {
            "cd_rates":        [asdict(r) for r in self.cd_rates],
            "treasury_yields": [
                {"term": y.term, "yield": y.yield_, "last_updated": y.last_updated}
                for y in self.treasury_yields
            ],
            "mortgage_rates":  [asdict(r) for r in self.mortgage_rates],
            "source":          self.source,
        }


# ── Orchestrator artifacts ────────────────────────────────────

class ContextKey(NamedTuple):
    """Partition key for composed summaries: one entry per (tier, demo mode)."""
    tier: Tier
    demo: bool

    def __str__(self) -> str:
        return f"market_context_{self.tier.value}_{str(self.demo).lower()}"


@dataclass
class MarketContext:
    """Raw provider output for one tier. Missing sections stay None."""
    economic_indicators: Optional[EconomicIndicator] = None
    live_market_data:    Optional[LiveMarketData]    = None

    def to_dict(self) -> dict:
        return {
            "economic_indicators": self.economic_indicators.to_dict() if self.economic_indicators else None,
            "live_market_data":    self.live_market_data.to_dict() if self.live_market_data else None,
        }


@dataclass
class MarketContextSummary:
    last_update:      datetime
    economic_summary: str
    market_summary:   str
    insights:         List[str]
    cache_key:        str

    def age_seconds(self, now: datetime) -> float:
        return (now - self.last_update).total_seconds()

    def to_dict(self) -> dict:
        d = asdict(self)
        d["last_update"] = self.last_update.isoformat()
        return d


@dataclass
class UpgradeHint:
    feature:       str
    benefit:       str
    required_tier: Tier


@dataclass
class TierInfo:
    current_tier:        Tier
    available_sources:   List[str]
    unavailable_sources: List[str]
    upgrade_suggestions: List[str]
    limitations:         List[str]


@dataclass
class TierAwareContext:
    accounts:       List[Any]
    transactions:   List[Any]
    market_context: MarketContext
    tier_info:      TierInfo
    upgrade_hints:  List[UpgradeHint] = field(default_factory=list)

    def to_dict(self) -> dict:
        info = asdict(self.tier_info)
        info["current_tier"] = self.tier_info.current_tier.value
        return {
            "accounts":       self.accounts,
            "transactions":   self.transactions,
            "market_context": self.market_context.to_dict(),
            "tier_info":      info,
            "upgrade_hints":  [
                {"feature": h.feature, "benefit": h.benefit, "required_tier": h.required_tier.value}
                for h in self.upgrade_hints
            ],
        }


# ── Search ────────────────────────────────────────────────────

@dataclass
class SearchResult:
    title:     str
    snippet:   str
    url:       str
    source:    str
    relevance: float


@dataclass
class SearchContext:
    query:        str
    results:      List[SearchResult]
    summary:      str
    last_updated: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict:
        return asdict(self)
