"""Tests for core models and their wire format."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from decision_futures.models import Decision, Market, Scenario, round_half_up


class TestRoundHalfUp:
    @pytest.mark.parametrize("value, expected", [(12.5, 13), (12.49, 12), (0.5, 1), (50.0, 50), (99.5, 100)])
    def test_rounding(self, value, expected):
        assert round_half_up(value) == expected


class TestWireFormat:
    def test_scenario_uses_camel_case(self, market_factory):
        scenario = Scenario(
            name="A",
            probability=30,
            evidence_influenced=True,
            related_markets=[market_factory("M1", end_date="2026-12-31")],
        )
        wire = scenario.to_wire()
        assert wire["evidenceInfluenced"] is True
        assert wire["relatedMarkets"][0]["endDate"] == "2026-12-31"
        assert "expandedScenarios" not in wire

    def test_accepts_either_spelling(self):
        a = Scenario.model_validate({"name": "A", "probability": 5, "evidenceQueries": ["q"]})
        b = Scenario.model_validate({"name": "A", "probability": 5, "evidence_queries": ["q"]})
        assert a == b

    def test_nested_expansions_round_trip(self, scenario_factory):
        parent = scenario_factory("P").model_copy(update={"expanded_scenarios": [scenario_factory("C")]})
        assert Scenario.model_validate(parent.to_wire()) == parent

    def test_decision_timestamps(self, scenario_factory):
        decision = Decision(id="d1", user_id="ana@example.com", decision_text="x", scenarios=[scenario_factory("A")])
        assert decision.created_at.tzinfo == timezone.utc
        assert datetime.fromisoformat(decision.to_wire()["createdAt"]) == decision.created_at


class TestValidation:
    def test_probability_bounds(self):
        with pytest.raises(ValidationError):
            Scenario(name="A", probability=0)
        with pytest.raises(ValidationError):
            Market(id="m", question="q", probability=101)

    def test_related_markets_capped(self, market_factory):
        with pytest.raises(ValidationError):
            Scenario(name="A", probability=5, related_markets=[market_factory(f"M{i}") for i in range(6)])

    def test_models_are_frozen(self, scenario_factory):
        scenario = scenario_factory("A")
        with pytest.raises(ValidationError):
            scenario.probability = 10
