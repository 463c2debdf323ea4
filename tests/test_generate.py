"""Tests for structured generation, drafts and the retry policy."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from decision_futures.llm import LLMError
from decision_futures.models import InputType
from decision_futures.phases.generate import (
    DEFAULT_POLICY,
    Attempt,
    GenerationExhaustedError,
    InvalidGenerationError,
    generate_scenarios,
    generate_with_policy,
    parse_generation,
)
from decision_futures.schemas import ScenarioDraft, parse_input_type

VALID = json.dumps(
    {
        "input_type": "question",
        "scenarios": [
            {"name": "Rates fall", "description": "d", "probability": 60, "impacts": ["a"]},
            {"name": "Rates hold", "description": "d", "probability": 40, "impacts": ["b"]},
        ],
    }
)


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("decision_futures.phases.generate.asyncio.sleep", new=AsyncMock()) as sleep:
        yield sleep


class TestRetryPolicy:
    def test_default_policy(self):
        assert DEFAULT_POLICY == (Attempt(0.8), Attempt(0.3, delay=1.0))

    async def test_second_attempt_succeeds_at_lower_temperature(self, fake_llm, no_sleep):
        llm = fake_llm(["Sorry, I cannot produce JSON today.", VALID])

        result = await generate_scenarios(llm, "Will the ECB cut rates?")

        assert result.attempts == 2
        assert result.input_type is InputType.QUESTION
        assert [d.name for d in result.drafts] == ["Rates fall", "Rates hold"]
        assert len(llm.requests) == 2
        assert llm.requests[1].temperature < llm.requests[0].temperature
        no_sleep.assert_awaited_once_with(1.0)

    async def test_exhaustion_after_exactly_two_attempts(self, fake_llm):
        llm = fake_llm(["not json", "still not json", VALID])

        with pytest.raises(GenerationExhaustedError) as exc_info:
            await generate_scenarios(llm, "Should I move to Lisbon?")

        assert exc_info.value.attempts == 2
        assert len(llm.requests) == 2

    async def test_backend_error_counts_as_failed_attempt(self, fake_llm):
        llm = fake_llm([LLMError("provider down"), VALID])
        result = await generate_scenarios(llm, "x")
        assert result.attempts == 2

    async def test_zero_valid_scenarios_counts_as_failed_attempt(self, fake_llm):
        empty = json.dumps({"input_type": "decision", "scenarios": [{"probability": 20}]})
        llm = fake_llm([empty, empty])
        with pytest.raises(GenerationExhaustedError, match="zero valid scenarios"):
            await generate_scenarios(llm, "x")

    async def test_first_attempt_success_does_not_sleep(self, fake_llm, no_sleep):
        result = await generate_scenarios(fake_llm([VALID]), "x")
        assert result.attempts == 1
        assert result.model == "fake-model"
        no_sleep.assert_not_awaited()

    async def test_custom_policy(self, fake_llm):
        policy = (Attempt(0.9), Attempt(0.5), Attempt(0.1, delay=2.0))
        llm = fake_llm(["bad", "bad", VALID])
        result = await generate_with_policy(llm, "prompt", "system", policy)
        assert result.attempts == 3
        assert [r.temperature for r in llm.requests] == [0.9, 0.5, 0.1]

    async def test_empty_policy_rejected(self, fake_llm):
        with pytest.raises(ValueError):
            await generate_with_policy(fake_llm([]), "p", "s", ())

    async def test_system_prompt_carries_evidence(self, fake_llm):
        llm = fake_llm([VALID])
        await generate_scenarios(llm, "x", evidence_context="\n=== PREDICTION MARKETS ===\n")
        assert "=== PREDICTION MARKETS ===" in llm.requests[0].system_prompt
        assert llm.requests[0].prompt == "x"


class TestParseGeneration:
    def test_accepts_legacy_keys(self):
        text = json.dumps(
            {
                "inputType": "decision",
                "consequences": [
                    {"nombre": "Nuevo trabajo", "descripcion": "d", "probabilidad": "65%", "impactos": ["x"]}
                ],
            }
        )
        input_type, drafts = parse_generation(text)
        assert input_type is InputType.DECISION
        assert drafts[0].name == "Nuevo trabajo"
        assert drafts[0].probability == 65
        assert drafts[0].impacts == ["x"]

    def test_missing_array(self):
        with pytest.raises(InvalidGenerationError):
            parse_generation('{"input_type": "decision"}')

    def test_invalid_items_are_dropped(self):
        text = json.dumps({"scenarios": ["junk", {"name": ""}, {"name": "Ok", "probability": 10}]})
        _, drafts = parse_generation(text)
        assert [d.name for d in drafts] == ["Ok"]


class TestScenarioDraft:
    @pytest.mark.parametrize(
        "raw, expected",
        [(65, 65), ("40%", 40), (0.25, 25), (12.5, 13), (0, 1), (250, 100), ("7", 7)],
    )
    def test_probability_coercion(self, raw, expected):
        assert ScenarioDraft.model_validate({"name": "n", "probability": raw}).probability == expected

    @pytest.mark.parametrize("raw", [None, True, "lots", float("nan"), [50]])
    def test_probability_rejected(self, raw):
        with pytest.raises(ValueError):
            ScenarioDraft.model_validate({"name": "n", "probability": raw})

    def test_evidence_aliases(self):
        draft = ScenarioDraft.model_validate(
            {"name": "n", "probability": 5, "polymarketIds": [123, "M2"], "evidenceQueries": "fed cut"}
        )
        assert draft.evidence_ids == ["123", "M2"]
        assert draft.evidence_queries == ["fed cut"]

    def test_long_names_truncated(self):
        draft = ScenarioDraft.model_validate({"name": "x" * 300, "probability": 5})
        assert len(draft.name) == 120


class TestParseInputType:
    def test_known_values(self):
        assert parse_input_type(" Question ") is InputType.QUESTION
        assert parse_input_type("decision") is InputType.DECISION

    def test_unknown_values_default_to_decision(self):
        assert parse_input_type("prediction") is InputType.DECISION
        assert parse_input_type(None) is InputType.DECISION
