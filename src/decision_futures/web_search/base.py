"""Abstract base class for web search providers."""

import logging
from abc import ABC, abstractmethod

from decision_futures.models import SearchResult

logger = logging.getLogger(__name__)

# Maximum number of results kept by the relevance filter
MAX_RELEVANT_RESULTS = 15


def filter_results_by_relevance(
    results: list[SearchResult], min_score: float = 0.5
) -> list[SearchResult]:
    """Keep results scoring at least ``min_score``, best first, at most MAX_RELEVANT_RESULTS."""
    kept = [r for r in results if r.score >= min_score]
    kept.sort(key=lambda r: r.score, reverse=True)
    logger.info(f"Filtered search results: {len(results)} -> {len(kept[:MAX_RELEVANT_RESULTS])}")
    return kept[:MAX_RELEVANT_RESULTS]


class WebSearchProvider(ABC):
    """Abstract base for web search used as grounding evidence.

    Implementations must degrade a failing query to an empty result
    instead of raising.
    """

    name: str

    @abstractmethod
    async def search_multiple(self, queries: list[str]) -> list[SearchResult]:
        """Run all queries concurrently and merge the results.

        Returns:
            Results deduplicated by URL (first occurrence wins), best score first
        """
        ...

    def filter_by_relevance(
        self, results: list[SearchResult], min_score: float = 0.5
    ) -> list[SearchResult]:
        """See filter_results_by_relevance."""
        return filter_results_by_relevance(results, min_score)

    async def close(self) -> None:
        """Clean up resources (HTTP client, etc.)."""
        pass
