"""Pytest configuration and fixtures."""

import json
from collections.abc import Callable
from pathlib import Path

import pytest
from dotenv import load_dotenv

from decision_futures.llm import GenerationRequest, GenerationResponse, LLMBackend
from decision_futures.market_data import MarketSearchProvider
from decision_futures.models import Market, Scenario, SearchResult
from decision_futures.pipeline import ConsequencePipeline
from decision_futures.web_search import WebSearchProvider

# Load .env file so API keys are available to integration tests
load_dotenv(override=True)


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires network access and API keys)",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (requires --integration to run)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is passed."""
    if config.getoption("--integration"):
        return

    skip_integration = pytest.mark.skip(reason="use --integration to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


class FakeLLM(LLMBackend):
    """Scripted backend.

    ``script`` is either a list of replies consumed in call order or a
    function of the request. A reply that is an exception is raised.
    """

    def __init__(self, script: list | Callable[[GenerationRequest], str | Exception]):
        self.script = script
        self.requests: list[GenerationRequest] = []

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        self.requests.append(request)
        if callable(self.script):
            reply = self.script(request)
        else:
            reply = self.script.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return GenerationResponse(text=reply, model="fake-model", usage={"total_tokens": 10})


@pytest.fixture
def fake_llm() -> type[FakeLLM]:
    return FakeLLM


@pytest.fixture
def tmp_db_path(tmp_path: Path) -> Path:
    """Provide a temporary database path."""
    return tmp_path / "test.db"


def make_market(market_id: str, probability: int = 50, volume: float = 1000.0, **kwargs) -> Market:
    return Market(
        id=market_id,
        question=kwargs.pop("question", f"Market {market_id}?"),
        probability=probability,
        volume=volume,
        url=f"https://polymarket.com/event/{market_id}",
        **kwargs,
    )


def make_scenario(name: str, probability: int = 50, **kwargs) -> Scenario:
    return Scenario(
        name=name,
        description=kwargs.pop("description", f"{name} happens"),
        probability=probability,
        impacts=kwargs.pop("impacts", ["impact"]),
        **kwargs,
    )


@pytest.fixture
def market_factory():
    return make_market


@pytest.fixture
def scenario_factory():
    return make_scenario


@pytest.fixture
def search_results() -> list[SearchResult]:
    return [
        SearchResult(title="Rates outlook", url="https://example.com/a", content="ECB expected to cut.", score=0.9),
        SearchResult(title="Housing report", url="https://example.com/b", content="Prices rose 8%.", score=0.7),
    ]


class FakeMarkets(MarketSearchProvider):
    name = "fake-markets"

    def __init__(self, markets: list[Market] | Exception):
        self.markets = markets
        self.keywords: list[list[str]] = []
        self.closed = False

    async def search_by_keywords(self, keywords: list[str]) -> list[Market]:
        self.keywords.append(keywords)
        if isinstance(self.markets, Exception):
            raise self.markets
        return list(self.markets) if keywords else []

    async def get_trending(self, limit: int = 30) -> list[Market]:
        return list(self.markets)[:limit]

    async def close(self) -> None:
        self.closed = True


class FakeWeb(WebSearchProvider):
    name = "fake-web"

    def __init__(self, results: list[SearchResult] | Exception):
        self.results = results
        self.queries: list[list[str]] = []
        self.closed = False

    async def search_multiple(self, queries: list[str]) -> list[SearchResult]:
        self.queries.append(queries)
        if isinstance(self.results, Exception):
            raise self.results
        return list(self.results) if queries else []

    async def close(self) -> None:
        self.closed = True


def scenario_reply(n: int, evidence_ids: list[str] | None = None, input_type: str = "decision") -> str:
    return json.dumps(
        {
            "input_type": input_type,
            "scenarios": [
                {
                    "name": f"Scenario {i}",
                    "description": f"Scenario {i} unfolds",
                    "probability": 10 + i,
                    "impacts": [f"impact {i}"],
                    "evidence_ids": evidence_ids if i == 0 and evidence_ids else [],
                    "evidence_used": bool(evidence_ids) and i == 0,
                }
                for i in range(n)
            ],
        }
    )


def route_by_prompt(request: GenerationRequest) -> str:
    """Answer each pipeline prompt with a plausible reply."""
    system = request.system_prompt or ""
    if '"keywords"' in system:
        return json.dumps({"keywords": ["ECB rate cut", "Eurozone recession"]})
    if '"queries"' in system:
        return json.dumps({"queries": ["precio vivienda Madrid 2026"]})
    if "HAS ALREADY HAPPENED" in system:
        return scenario_reply(10)
    return "```json\n" + scenario_reply(20, evidence_ids=["M1", "M2", "ghost"]) + "\n```"


@pytest.fixture
def evidence_markets() -> list[Market]:
    return [
        make_market("M1", probability=40, volume=50000),
        make_market("M2", probability=60, volume=20000),
        make_market("resolved", probability=0, volume=90000),
        make_market("thin", probability=30, volume=10),
    ]


@pytest.fixture
def pipeline_factory(evidence_markets, search_results):
    """Build a ConsequencePipeline over fakes; keyword args override the defaults."""

    def build(llm=None, markets=None, web=None) -> ConsequencePipeline:
        return ConsequencePipeline(
            llm or FakeLLM(route_by_prompt),
            markets or FakeMarkets(evidence_markets),
            web or FakeWeb(search_results),
        )

    return build


@pytest.fixture
def fake_markets() -> type[FakeMarkets]:
    return FakeMarkets


@pytest.fixture
def fake_web() -> type[FakeWeb]:
    return FakeWeb
