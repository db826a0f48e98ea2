"""
Market Context: Errors
───────────────────────
Raised by providers. The orchestrator catches all of them and degrades the
context instead of letting them reach the chat request.
"""

from typing import Optional


class MarketContextError(Exception):
    """Base class for every error raised inside market_context."""


class ProviderError(MarketContextError):
    """A provider was asked for something it does not serve."""


class UpstreamError(MarketContextError):
    """An upstream endpoint failed: transport error, bad status or vendor error payload."""

    def __init__(self, source: str, message: str, status: Optional[int] = None):
        self.source = source
        self.status = status
        detail = f"{source}: {message}"
        if status is not None:
            detail = f"{detail} (HTTP {status})"
        super().__init__(detail)
