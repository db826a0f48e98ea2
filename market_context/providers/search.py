"""
Market Context: Brave Search Provider
──────────────────────────────────────
Real-time web search for questions the indicator feeds cannot answer
("best CD rates this week", "current auto loan rates").

Results are ranked in the order Brave returns them; relevance falls by
0.1 per position.
"""

import logging
from typing import List

from market_context.models import SearchResult
from market_context.providers.base import UpstreamProvider

log = logging.getLogger("mc.providers.search")

BRAVE_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"
MAX_RESULTS = 10

FINANCIAL_KEYWORDS = [
    "mortgage rates", "cd rates", "savings rates", "investment advice",
    "retirement planning", "tax strategies", "budgeting tips",
    "credit card rates", "loan rates", "financial planning",
    "auto loan rate", "personal loan rate", "student loan rate",
    "home equity rate", "heloc rate", "money market rate",
    "ira rate", "401k rate", "annuity rate",
    "inflation", "unemployment rate", "tariffs",
]

FINANCIAL_DOMAINS = [
    "bankrate.com", "nerdwallet.com", "investopedia.com",
    "fool.com", "morningstar.com", "yahoo.com/finance",
    "marketwatch.com", "wsj.com", "bloomberg.com",
    "reuters.com", "cnbc.com", "forbes.com",
]


def enhance_financial_query(query: str) -> str:
    """Bias recognised money questions towards advice pages."""
    q = query.lower()
    if any(k in q for k in FINANCIAL_KEYWORDS):
        return f"{query} financial advice"
    return query


def filter_financial_results(results: List[SearchResult]) -> List[SearchResult]:
    return [r for r in results if any(d in r.url.lower() for d in FINANCIAL_DOMAINS)]


class BraveSearchProvider(UpstreamProvider):

    provider_id = "brave"

    async def search(self, query: str, max_results: int = MAX_RESULTS,
                     country: str = "US", language: str = "en") -> List[SearchResult]:
        if not self.has_credentials:
            log.debug("No Brave key, search returns nothing")
            return []

        params = {
            "q":             query,
            "count":         max_results,
            "country":       country,
            "search_lang":   language,
        }
        headers = {"X-Subscription-Token": self.api_key}
        data = await self._get_json(BRAVE_SEARCH_URL, params=params, headers=headers)

        raw = (data.get("web") or {}).get("results") or []
        results = [
            SearchResult(
                title=item.get("title", ""),
                snippet=item.get("description", ""),
                url=item.get("url", ""),
                source="Brave",
                relevance=round(1 - i * 0.1, 2),
            )
            for i, item in enumerate(raw[:max_results])
        ]
        log.info(f"Brave search '{query[:40]}' → {len(results)} results")
        return results
