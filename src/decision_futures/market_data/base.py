"""Abstract base class for prediction market search providers."""

import logging
from abc import ABC, abstractmethod

from decision_futures.models import Market

logger = logging.getLogger(__name__)

# Maximum number of markets kept by the relevance filter
MAX_RELEVANT_MARKETS = 30


def filter_markets_by_relevance(
    markets: list[Market],
    min_volume: float = 100,
    min_probability: int | None = None,
    max_probability: int | None = None,
) -> list[Market]:
    """Keep active markets with enough volume and, optionally, bounded probability.

    Input order is preserved; at most MAX_RELEVANT_MARKETS are returned.

    Args:
        markets: Candidate markets
        min_volume: Minimum traded volume
        min_probability: Lower probability bound (inclusive), or None
        max_probability: Upper probability bound (inclusive), or None
    """
    filtered = []
    for market in markets:
        if not market.active:
            logger.debug(f"Filtered out {market.question!r}: not active")
            continue
        if market.volume < min_volume:
            continue
        if min_probability is not None and market.probability < min_probability:
            continue
        if max_probability is not None and market.probability > max_probability:
            continue
        filtered.append(market)

    logger.info(f"Filtered markets: {len(markets)} -> {len(filtered)}")
    return filtered[:MAX_RELEVANT_MARKETS]


class MarketSearchProvider(ABC):
    """Abstract base for keyword-driven prediction market search.

    Implementations turn free-text keywords into a deduplicated pool of
    Market snapshots. Transient provider failures must degrade to empty
    results rather than propagate.

    Example:
        class MyPlatformSearch(MarketSearchProvider):
            name = "myplatform"

            async def search_by_keywords(self, keywords):
                ...
    """

    name: str

    @abstractmethod
    async def search_by_keywords(self, keywords: list[str]) -> list[Market]:
        """Search markets for each keyword and merge the results.

        Args:
            keywords: Free-text search phrases (English)

        Returns:
            Markets deduplicated by id, first occurrence wins
        """
        ...

    @abstractmethod
    async def get_trending(self, limit: int = 30) -> list[Market]:
        """Fetch popular, active, non-expired markets across broad topics."""
        ...

    def filter_by_relevance(
        self,
        markets: list[Market],
        min_volume: float = 100,
        min_probability: int | None = None,
        max_probability: int | None = None,
    ) -> list[Market]:
        """See filter_markets_by_relevance."""
        return filter_markets_by_relevance(markets, min_volume, min_probability, max_probability)

    async def close(self) -> None:
        """Clean up resources (HTTP client, etc.)."""
        pass
