"""
Market Context: Insights & Context Text
────────────────────────────────────────
Pure functions that turn provider output into the text block handed to
the completion engine.

Layout (sections are left out entirely when they have nothing in them;
tests and downstream callers look for the headings):

    CURRENT MARKET CONTEXT (Updated: 8/1/2025, 5:57:37 AM):

    ECONOMIC INDICATORS:
    Fed Funds Rate: 5.25%
    ...

    LIVE MARKET DATA:
    CD Rates: 3-month: 5.25%, 6-month: 5.35%
    ...

    KEY INSIGHTS:
    - High interest rates favor savers: ...

    Use this current market context to provide informed financial advice. ...
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from market_context.models import EconomicIndicator, LiveMarketData, MarketContextSummary

HEADER_TITLE        = "CURRENT MARKET CONTEXT"
ECONOMIC_HEADING    = "ECONOMIC INDICATORS:"
LIVE_HEADING        = "LIVE MARKET DATA:"
INSIGHTS_HEADING    = "KEY INSIGHTS:"
CLOSING_INSTRUCTION = (
    "Use this current market context to provide informed financial advice. "
    "Reference specific rates and trends when they are relevant to the user's question."
)

INSIGHT_HIGH_RATES     = "High interest rates favor savers: consider high-yield savings accounts and CDs"
INSIGHT_HIGH_INFLATION = "Elevated inflation suggests TIPS or I-bonds: inflation-protected investments may be beneficial"
INSIGHT_HIGH_MORTGAGE  = "High mortgage rates suggest waiting for refinancing opportunities"
INSIGHT_HIGH_CD        = "High-yield CD rates available: consider laddering CDs for steady income"


@dataclass(frozen=True)
class InsightThresholds:
    """Percent levels above which an insight fires. Comparisons are strict (>)."""
    fed_rate:      float = 5.0
    inflation:     float = 3.0
    mortgage_rate: float = 6.0
    cd_rate:       float = 4.0


DEFAULT_THRESHOLDS = InsightThresholds()


def pct(value: float) -> str:
    """5.25 → '5.25%', 5.0 → '5%'."""
    return f"{round(value, 2):g}%"


def format_timestamp(ts: datetime) -> str:
    """M/D/YYYY, h:MM:SS AM"""
    hour = ts.hour % 12 or 12
    meridiem = "AM" if ts.hour < 12 else "PM"
    return f"{ts.month}/{ts.day}/{ts.year}, {hour}:{ts.minute:02d}:{ts.second:02d} {meridiem}"


def economic_summary(indicators: Optional[EconomicIndicator]) -> str:
    if indicators is None:
        return ""
    return "\n".join([
        f"Fed Funds Rate: {pct(indicators.fed_rate.value)}",
        f"CPI (YoY): {pct(indicators.cpi.value)}",
        f"30-Year Mortgage: {pct(indicators.mortgage_rate.value)}",
        f"Credit Card APR: {pct(indicators.credit_card_apr.value)}",
    ])


def market_summary(live: Optional[LiveMarketData]) -> str:
    if live is None:
        return ""
    lines = []
    if live.cd_rates:
        lines.append("CD Rates: " + ", ".join(f"{r.term}: {pct(r.rate)}" for r in live.cd_rates))
    if live.treasury_yields:
        lines.append("Treasury Yields: " + ", ".join(f"{y.term}: {pct(y.yield_)}" for y in live.treasury_yields))
    if live.mortgage_rates:
        lines.append("Mortgage Rates: " + ", ".join(f"{m.type}: {pct(m.rate)}" for m in live.mortgage_rates))
    return "\n".join(lines)


def generate_insights(
    indicators: Optional[EconomicIndicator],
    live: Optional[LiveMarketData],
    thresholds: InsightThresholds = DEFAULT_THRESHOLDS,
) -> List[str]:
    insights = []
    if indicators is not None:
        if indicators.fed_rate.value > thresholds.fed_rate:
            insights.append(INSIGHT_HIGH_RATES)
        if indicators.cpi.value > thresholds.inflation:
            insights.append(INSIGHT_HIGH_INFLATION)
        if indicators.mortgage_rate.value > thresholds.mortgage_rate:
            insights.append(INSIGHT_HIGH_MORTGAGE)
    if live is not None and any(r.rate > thresholds.cd_rate for r in live.cd_rates):
        insights.append(INSIGHT_HIGH_CD)
    return insights


def format_context(summary: MarketContextSummary) -> str:
    blocks = [f"{HEADER_TITLE} (Updated: {format_timestamp(summary.last_update)}):"]
    if summary.economic_summary:
        blocks.append(f"{ECONOMIC_HEADING}\n{summary.economic_summary}")
    if summary.market_summary:
        blocks.append(f"{LIVE_HEADING}\n{summary.market_summary}")
    if summary.insights:
        blocks.append(INSIGHTS_HEADING + "\n" + "\n".join(f"- {i}" for i in summary.insights))
    blocks.append(CLOSING_INSTRUCTION)
    return "\n\n".join(blocks)
