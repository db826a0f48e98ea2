"""
Market Context: Configuration
──────────────────────────────
Environment variables (.env or host settings):

    FRED_API_KEY              = <fred key>           economic indicators
    ALPHA_VANTAGE_API_KEY     = <alpha vantage key>  live treasury yields
    BRAVE_SEARCH_API_KEY      = <brave key>          real-time search context
    CONTEXT_REFRESH_INTERVAL  = 3600                 summary freshness window (s)
    PROVIDER_TIMEOUT          = 10                   per upstream call (s)
    CONTEXT_TIMEOUT           = 15                   whole provider call in the orchestrator (s)
    ENABLE_SCHEDULER          = true                 hourly context refresh
    PORT                      = 8000

Missing keys are not fatal: providers fall back to labelled placeholder data.
"""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from market_context.cache.ttl_config import CONTEXT_REFRESH_INTERVAL as DEFAULT_REFRESH_INTERVAL

log = logging.getLogger("mc.config")

DEFAULT_PROVIDER_TIMEOUT = 10.0
DEFAULT_CONTEXT_TIMEOUT  = 15.0
# Orchestrator budget always exceeds the per-request timeout by at least this much
CONTEXT_TIMEOUT_MARGIN   = 2.0

_PLACEHOLDER_PREFIXES = ("test_", "your_")


def is_placeholder_key(key: str) -> bool:
    """True for absent keys and the sample values shipped in .env templates."""
    k = (key or "").strip()
    return not k or k.lower().startswith(_PLACEHOLDER_PREFIXES)


@dataclass
class Settings:
    fred_api_key:          str   = ""
    alpha_vantage_api_key: str   = ""
    brave_search_api_key:  str   = ""
    refresh_interval:      float = DEFAULT_REFRESH_INTERVAL
    provider_timeout:      float = DEFAULT_PROVIDER_TIMEOUT
    context_timeout:       float = DEFAULT_CONTEXT_TIMEOUT
    enable_scheduler:      bool  = True
    port:                  int   = 8000

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv()
        return cls(
            fred_api_key          = os.getenv("FRED_API_KEY", ""),
            alpha_vantage_api_key = os.getenv("ALPHA_VANTAGE_API_KEY", ""),
            brave_search_api_key  = os.getenv("BRAVE_SEARCH_API_KEY", ""),
            refresh_interval      = float(os.getenv("CONTEXT_REFRESH_INTERVAL", str(DEFAULT_REFRESH_INTERVAL))),
            provider_timeout      = float(os.getenv("PROVIDER_TIMEOUT", str(DEFAULT_PROVIDER_TIMEOUT))),
            context_timeout       = float(os.getenv("CONTEXT_TIMEOUT", str(DEFAULT_CONTEXT_TIMEOUT))),
            enable_scheduler      = os.getenv("ENABLE_SCHEDULER", "true").lower() == "true",
            port                  = int(os.getenv("PORT", "8000")),
        )

    @property
    def orchestrator_timeout(self) -> float:
        """Budget for one provider call as seen by the orchestrator, above the provider's own timeout."""
        return max(self.context_timeout, self.provider_timeout + CONTEXT_TIMEOUT_MARGIN)

    def warn_missing_credentials(self) -> int:
        """Log one warning per missing upstream key. Returns how many were missing."""
        missing = 0
        for env_name, value, effect in (
            ("FRED_API_KEY",          self.fred_api_key,          "economic indicators will use placeholder data"),
            ("ALPHA_VANTAGE_API_KEY", self.alpha_vantage_api_key, "live market data will use reference rates"),
            ("BRAVE_SEARCH_API_KEY",  self.brave_search_api_key,  "search context will be empty"),
        ):
            if is_placeholder_key(value):
                log.warning(f"{env_name} not set, {effect}")
                missing += 1
        return missing
