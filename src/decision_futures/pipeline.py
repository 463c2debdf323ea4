"""Pipeline orchestrator for grounded consequence generation.

Pipeline:
1. Derive: market keywords and web search queries, concurrently
2. Evidence: market search and web search, concurrently
3. Context: format the filtered evidence into a grounding block
4. Generate: classify the input and generate scenarios (bounded retries)
5. Reconcile: resolve cited market ids and align probabilities with them

Only step 4 can fail the pipeline. Every other step degrades to an empty
result and the run continues with less evidence.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from decision_futures.config import Settings
from decision_futures.llm import LiteLLMBackend, LLMBackend
from decision_futures.market_data import MarketSearchProvider, PolymarketSearch
from decision_futures.models import InputType, Market, Scenario, SearchResult
from decision_futures.phases.context import build_evidence_context
from decision_futures.phases.generate import DEFAULT_POLICY, RetryPolicy, generate_scenarios
from decision_futures.phases.queries import derive_market_keywords, derive_search_queries
from decision_futures.phases.reconcile import reconcile_scenarios
from decision_futures.web_search import TavilySearch, WebSearchProvider

logger = logging.getLogger(__name__)

# Markets priced at 0% or 100% are effectively resolved and carry no signal
MIN_MARKET_PROBABILITY = 1
MAX_MARKET_PROBABILITY = 99


@dataclass
class PipelineResult:
    """Scenarios for one input, with the evidence they were grounded in."""
    input_type: InputType
    scenarios: list[Scenario]
    markets: list[Market] = field(default_factory=list)
    search_results: list[SearchResult] = field(default_factory=list)
    attempts: int = 1
    model: str | None = None


class ConsequencePipeline:
    """Runs the derive -> evidence -> generate -> reconcile pipeline.

    Collaborators are injected; the pipeline never consults global
    settings. Use build_pipeline() to assemble one from configuration.
    """

    def __init__(
        self,
        llm: LLMBackend,
        markets: MarketSearchProvider,
        web: WebSearchProvider,
        *,
        market_min_volume: float = 100.0,
        search_min_score: float = 0.5,
        policy: RetryPolicy = DEFAULT_POLICY,
    ):
        self.llm = llm
        self.markets = markets
        self.web = web
        self.market_min_volume = market_min_volume
        self.search_min_score = search_min_score
        self.policy = policy

    async def gather_evidence(self, user_input: str) -> tuple[list[Market], list[SearchResult]]:
        """Derive queries and search both evidence sources.

        Never raises: a failing source contributes nothing.
        """
        keywords, queries = await asyncio.gather(
            derive_market_keywords(self.llm, user_input),
            derive_search_queries(self.llm, user_input),
        )

        market_outcome, web_outcome = await asyncio.gather(
            self.markets.search_by_keywords(keywords),
            self.web.search_multiple(queries),
            return_exceptions=True,
        )

        markets: list[Market] = []
        if isinstance(market_outcome, Exception):
            logger.warning(f"Market search failed, continuing without markets: {market_outcome}")
        else:
            markets = self.markets.filter_by_relevance(
                market_outcome,
                min_volume=self.market_min_volume,
                min_probability=MIN_MARKET_PROBABILITY,
                max_probability=MAX_MARKET_PROBABILITY,
            )

        results: list[SearchResult] = []
        if isinstance(web_outcome, Exception):
            logger.warning(f"Web search failed, continuing without web results: {web_outcome}")
        else:
            results = self.web.filter_by_relevance(web_outcome, min_score=self.search_min_score)

        logger.info(f"Evidence pool: {len(markets)} markets, {len(results)} web results")
        return markets, results

    async def run(self, user_input: str) -> PipelineResult:
        """Generate grounded scenarios for a decision or question.

        Raises:
            GenerationExhaustedError: If every generation attempt failed.
        """
        markets, results = await self.gather_evidence(user_input)
        context = build_evidence_context(markets, results)

        generation = await generate_scenarios(self.llm, user_input, context, self.policy)
        # Reconcile against the same pool the prompt showed the model
        scenarios = reconcile_scenarios(generation.drafts, markets)

        return PipelineResult(
            input_type=generation.input_type,
            scenarios=scenarios,
            markets=markets,
            search_results=results,
            attempts=generation.attempts,
            model=generation.model,
        )

    async def close(self) -> None:
        await asyncio.gather(self.markets.close(), self.web.close())


def build_pipeline(config: Settings) -> ConsequencePipeline:
    """Assemble a pipeline from settings."""
    llm = LiteLLMBackend(config.llm_models, max_tokens=config.llm_max_tokens)
    markets = PolymarketSearch(base_url=config.polymarket_api_url, timeout=config.polymarket_timeout)
    web = TavilySearch(api_key=config.tavily_api_key, timeout=config.tavily_timeout)
    return ConsequencePipeline(
        llm,
        markets,
        web,
        market_min_volume=config.market_min_volume,
        search_min_score=config.search_min_score,
    )
