"""Prediction market search providers."""

from decision_futures.market_data.base import (
    MarketSearchProvider,
    filter_markets_by_relevance,
)
from decision_futures.market_data.polymarket import PolymarketSearch

__all__ = [
    "MarketSearchProvider",
    "filter_markets_by_relevance",
    "PolymarketSearch",
]
