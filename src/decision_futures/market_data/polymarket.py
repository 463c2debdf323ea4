"""Polymarket search provider (Gamma public-search API)."""

import asyncio
import json
import logging
import math
from typing import Any

import httpx
from pydantic import ValidationError

from decision_futures.date_utils import is_expired, utc_now
from decision_futures.http_utils import HTTPClientMixin
from decision_futures.market_data.base import MarketSearchProvider
from decision_futures.models import Market, round_half_up

logger = logging.getLogger(__name__)

GAMMA_API_URL = "https://gamma-api.polymarket.com"
EVENT_URL = "https://polymarket.com/event/{slug}"

# Keywords searched concurrently per batch
KEYWORD_BATCH_SIZE = 4

# Retry schedule for a single keyword search
KEYWORD_MAX_RETRIES = 1
RETRY_BASE_DELAY = 1.0
RETRY_MAX_DELAY = 3.0

# Broad topics used to surface currently popular markets
TRENDING_KEYWORDS = [
    "trump",
    "election",
    "politics",
    "economy",
    "stock market",
    "crypto",
    "bitcoin",
    "AI",
    "technology",
    "sports",
    "world",
    "war",
    "climate",
]
TRENDING_MIN_VOLUME = 100


def _decode_list(value: Any) -> list | None:
    """Gamma returns some list fields as JSON-encoded strings."""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            return None
    return value if isinstance(value, list) else None


def _to_float(value: Any, default: float = 0.0) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def _price(value: Any) -> float | None:
    """A finite price, or None when the field is missing or unusable."""
    number = _to_float(value, math.nan)
    return None if math.isnan(number) else number


def market_probability(raw: dict) -> int:
    """Market-implied probability in percent.

    Preference order: lastTradePrice, then the first outcome price,
    then 50 when the market carries no price data.
    """
    price = _price(raw.get("lastTradePrice"))
    if price is None:
        prices = _decode_list(raw.get("outcomePrices"))
        if prices:
            price = _price(prices[0])
    if price is None:
        logger.debug(f"No price data for market {raw.get('id')}, using 50%")
        return 50
    return max(0, min(100, round_half_up(price * 100)))


class PolymarketSearch(HTTPClientMixin, MarketSearchProvider):
    """Polymarket keyword search over the Gamma public-search endpoint.

    Example:
        search = PolymarketSearch()
        markets = await search.search_by_keywords(["fed rate cut", "recession 2026"])
        relevant = search.filter_by_relevance(markets, min_volume=1000)
        await search.close()
    """

    name = "polymarket"

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        base_url: str = GAMMA_API_URL,
        timeout: float = 10.0,
    ):
        """Initialize Polymarket search.

        Args:
            http_client: Optional httpx client for connection reuse.
            base_url: Gamma API base URL.
            timeout: Per-request timeout in seconds.
        """
        self._init_client(http_client, timeout=timeout, headers={"Accept": "application/json"})
        self.base_url = base_url.rstrip("/")

    async def search_markets(self, query: str, limit_per_type: int = 15) -> dict:
        """Run one public-search request and return the raw response.

        Raises:
            ValueError: If query is empty.
            httpx.HTTPError: On network errors, timeouts and non-2xx responses.
        """
        if not query or not query.strip():
            raise ValueError("Polymarket search requires a non-empty query")

        params = {
            "q": query,
            "limit_per_type": limit_per_type,
            "keep_closed_markets": 0,
            "search_tags": "false",
            "search_profiles": "false",
        }
        return await self._get_json(f"{self.base_url}/public-search", params=params)

    async def _search_keyword_with_retry(
        self, keyword: str, max_retries: int = KEYWORD_MAX_RETRIES
    ) -> dict | None:
        """Search a single keyword, retrying with exponential backoff.

        Returns None once all attempts have failed.
        """
        for attempt in range(max_retries + 1):
            if attempt > 0:
                delay = min(RETRY_BASE_DELAY * 2 ** (attempt - 1), RETRY_MAX_DELAY)
                logger.info(
                    f"Retrying {keyword!r} after {delay:.0f}s (attempt {attempt + 1}/{max_retries + 1})"
                )
                await asyncio.sleep(delay)
            try:
                return await self.search_markets(keyword)
            except (httpx.HTTPError, json.JSONDecodeError) as e:
                if attempt == max_retries:
                    logger.warning(
                        f"Failed to search {keyword!r} after {max_retries + 1} attempts: {e}"
                    )
        return None

    async def search_by_keywords(self, keywords: list[str]) -> list[Market]:
        """Search keywords in bounded concurrent batches and merge the results.

        A failing keyword contributes nothing; it never aborts its batch.
        Markets are deduplicated by id (first occurrence wins) and sorted
        by volume, highest first.
        """
        keywords = [k.strip() for k in keywords if k and k.strip()]
        if not keywords:
            return []

        logger.info(f"Searching {len(keywords)} keywords in batches of {KEYWORD_BATCH_SIZE}")
        markets: list[Market] = []
        seen_ids: set[str] = set()

        for start in range(0, len(keywords), KEYWORD_BATCH_SIZE):
            batch = keywords[start:start + KEYWORD_BATCH_SIZE]
            logger.debug(f"Batch {start // KEYWORD_BATCH_SIZE + 1}: {', '.join(batch)}")
            results = await asyncio.gather(
                *(self._search_keyword_with_retry(keyword) for keyword in batch)
            )

            for result in results:
                if not isinstance(result, dict):
                    continue
                for event in result.get("events") or []:
                    if not isinstance(event, dict):
                        continue
                    for raw in event.get("markets") or []:
                        if not isinstance(raw, dict):
                            continue
                        market_id = str(raw.get("id", ""))
                        if not market_id or market_id in seen_ids:
                            continue
                        market = self._parse_market(raw, event)
                        if market is not None:
                            markets.append(market)
                            seen_ids.add(market_id)

        logger.info(f"Found {len(markets)} unique markets from {len(keywords)} keywords")
        return sorted(markets, key=lambda m: m.volume, reverse=True)

    async def get_trending(self, limit: int = 30) -> list[Market]:
        """Popular markets across broad topics: active, traded, not yet ended."""
        markets = await self.search_by_keywords(TRENDING_KEYWORDS)
        now = utc_now()

        trending = [
            m
            for m in markets
            if m.active and m.volume > TRENDING_MIN_VOLUME and not is_expired(m.end_date, now)
        ]
        trending.sort(key=lambda m: m.volume, reverse=True)
        logger.info(f"Found {len(trending[:limit])} trending markets")
        return trending[:limit]

    def _parse_market(self, raw: dict, event: dict) -> Market | None:
        """Parse a raw market (and its parent event) into a Market."""
        volume = raw.get("volumeNum")
        if volume is None:
            volume = _to_float(raw.get("volume") or "0")
        liquidity = raw.get("liquidityNum")
        if liquidity is None:
            liquidity = _to_float(raw.get("liquidity") or "0")

        if raw.get("active") is not None:
            active = bool(raw["active"])
        elif raw.get("closed") is not None:
            active = not raw["closed"]
        else:
            active = True

        outcomes = _decode_list(raw.get("outcomes"))

        try:
            return Market(
                id=str(raw["id"]),
                question=raw.get("question") or event.get("title") or "",
                description=raw.get("description") or event.get("description"),
                probability=market_probability(raw),
                volume=max(0.0, _to_float(volume)),
                liquidity=max(0.0, _to_float(liquidity)),
                end_date=raw.get("endDate") or event.get("endDate") or "",
                url=EVENT_URL.format(slug=event.get("slug", "")),
                active=active,
                outcomes=[str(o) for o in outcomes] if outcomes is not None else None,
            )
        except (KeyError, ValueError, OverflowError, ValidationError) as e:
            logger.warning(f"Skipping malformed market {raw.get('id')}: {e}")
            return None
