from .base import MarketDataProvider, UpstreamProvider, build_client
from .alpha_vantage import AlphaVantageProvider
from .fred import FREDProvider
from .search import BraveSearchProvider

__all__ = [
    "MarketDataProvider", "UpstreamProvider", "build_client",
    "AlphaVantageProvider", "FREDProvider", "BraveSearchProvider",
]
