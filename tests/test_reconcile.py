"""Tests for evidence reconciliation."""

from decision_futures.phases.reconcile import MAX_RELATED_MARKETS, reconcile_scenarios
from decision_futures.schemas import ScenarioDraft


def draft(probability: int = 80, evidence_ids: list[str] | None = None, **extra) -> ScenarioDraft:
    return ScenarioDraft.model_validate(
        {"name": "Scenario", "probability": probability, "evidence_ids": evidence_ids or [], **extra}
    )


class TestReconcileScenarios:
    def test_mean_of_resolved_markets_overrides_model_probability(self, market_factory):
        pool = [market_factory("M1", probability=40), market_factory("M2", probability=60)]

        [scenario] = reconcile_scenarios([draft(90, ["M1", "M2"])], pool)

        assert scenario.probability == 50
        assert scenario.evidence_influenced is True
        assert [m.id for m in scenario.related_markets] == ["M1", "M2"]

    def test_unresolved_ids_keep_model_probability(self, market_factory):
        pool = [market_factory("M1", probability=40)]

        [scenario] = reconcile_scenarios([draft(73, ["ghost", "also-missing"])], pool)

        assert scenario.probability == 73
        assert scenario.evidence_influenced is False
        assert scenario.related_markets == []

    def test_mean_rounds_half_up(self, market_factory):
        pool = [market_factory("A", probability=12), market_factory("B", probability=13)]
        [scenario] = reconcile_scenarios([draft(50, ["A", "B"])], pool)
        assert scenario.probability == 13

    def test_mean_clamped_to_at_least_one(self, market_factory):
        pool = [market_factory("A", probability=0)]
        [scenario] = reconcile_scenarios([draft(50, ["A"])], pool)
        assert scenario.probability == 1

    def test_partial_resolution_and_duplicates(self, market_factory):
        pool = [market_factory("A", probability=30)]
        [scenario] = reconcile_scenarios([draft(90, ["A", "missing", "A"])], pool)
        assert scenario.probability == 30
        assert [m.id for m in scenario.related_markets] == ["A"]

    def test_related_markets_capped(self, market_factory):
        pool = [market_factory(f"M{i}", probability=10 * i) for i in range(1, 9)]
        [scenario] = reconcile_scenarios([draft(50, [m.id for m in pool])], pool)
        assert len(scenario.related_markets) == MAX_RELATED_MARKETS
        # Mean over the kept markets only: 10..50
        assert scenario.probability == 30

    def test_empty_pool(self):
        scenarios = reconcile_scenarios([draft(20, ["M1"]), draft(35)], [])
        assert [s.probability for s in scenarios] == [20, 35]
        assert not any(s.evidence_influenced for s in scenarios)

    def test_carries_narrative_fields(self):
        [scenario] = reconcile_scenarios(
            [draft(20, impacts=["a", "b"], evidence_queries=["fed"], description="desc")], []
        )
        assert scenario.description == "desc"
        assert scenario.impacts == ["a", "b"]
        assert scenario.evidence_queries == ["fed"]
        assert scenario.expanded_scenarios is None
        assert "evidenceIds" not in scenario.to_wire()
