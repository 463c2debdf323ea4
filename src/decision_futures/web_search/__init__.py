"""Web search providers used as grounding evidence."""

from decision_futures.web_search.base import (
    WebSearchProvider,
    filter_results_by_relevance,
)
from decision_futures.web_search.tavily import TavilySearch

__all__ = [
    "WebSearchProvider",
    "filter_results_by_relevance",
    "TavilySearch",
]
