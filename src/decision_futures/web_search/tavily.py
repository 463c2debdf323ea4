"""Tavily web search provider."""

import asyncio
import json
import logging

import httpx
from pydantic import ValidationError

from decision_futures.http_utils import HTTPClientMixin
from decision_futures.models import SearchResult
from decision_futures.web_search.base import WebSearchProvider

logger = logging.getLogger(__name__)

TAVILY_API_URL = "https://api.tavily.com/search"

# Results requested per query when fanning out over several queries
RESULTS_PER_QUERY = 3


class TavilySearch(HTTPClientMixin, WebSearchProvider):
    """Tavily search API client.

    Without an API key every search returns no results, so the pipeline
    simply runs without web grounding.
    """

    name = "tavily"

    def __init__(
        self,
        api_key: str | None,
        http_client: httpx.AsyncClient | None = None,
        *,
        api_url: str = TAVILY_API_URL,
        timeout: float = 5.0,
    ):
        """Initialize Tavily search.

        Args:
            api_key: Tavily API key.
            http_client: Optional httpx client for connection reuse.
            api_url: Search endpoint.
            timeout: Per-request timeout in seconds.
        """
        self._init_client(http_client, timeout=timeout)
        self.api_key = api_key
        self.api_url = api_url
        if not api_key:
            logger.warning("TAVILY_API_KEY not set, web search is disabled")

    async def search(self, query: str, max_results: int = 5) -> list[SearchResult]:
        """Run a single search.

        Raises:
            httpx.HTTPError: On network errors, timeouts and non-2xx responses.
        """
        payload = {
            "api_key": self.api_key,
            "query": query,
            "search_depth": "basic",
            "include_answer": True,
            "include_images": False,
            "max_results": max_results,
        }
        data = await self._post_json(self.api_url, payload)

        results = []
        for item in data.get("results") or []:
            try:
                results.append(
                    SearchResult(
                        title=item.get("title") or "",
                        url=item["url"],
                        content=item.get("content") or "",
                        score=min(1.0, max(0.0, float(item.get("score") or 0.0))),
                        published_date=item.get("published_date") or item.get("publishedDate"),
                    )
                )
            except (KeyError, TypeError, ValueError, ValidationError) as e:
                logger.debug(f"Skipping malformed search result for {query!r}: {e}")
        return results

    async def _search_or_empty(self, query: str) -> list[SearchResult]:
        try:
            return await self.search(query, max_results=RESULTS_PER_QUERY)
        except (httpx.HTTPError, json.JSONDecodeError) as e:
            logger.warning(f"Error searching Tavily for {query!r}: {e}")
            return []

    async def search_multiple(self, queries: list[str]) -> list[SearchResult]:
        """Search all queries concurrently; failed queries contribute nothing."""
        queries = [q.strip() for q in queries if q and q.strip()]
        if not queries or not self.api_key:
            return []

        per_query = await asyncio.gather(*(self._search_or_empty(q) for q in queries))

        merged: list[SearchResult] = []
        seen_urls: set[str] = set()
        for results in per_query:
            for result in results:
                if result.url in seen_urls:
                    continue
                merged.append(result)
                seen_urls.add(result.url)

        logger.info(f"Found {len(merged)} unique web results from {len(queries)} queries")
        return sorted(merged, key=lambda r: r.score, reverse=True)
