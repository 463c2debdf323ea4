"""Attach market evidence to scenarios and align their probabilities with it."""

import logging
from statistics import fmean

from decision_futures.models import Market, Scenario, round_half_up
from decision_futures.schemas import ScenarioDraft

logger = logging.getLogger(__name__)

MAX_RELATED_MARKETS = 5


def index_markets(market_pool: list[Market]) -> dict[str, Market]:
    """Id -> Market lookup for one generation call's evidence pool."""
    return {market.id: market for market in market_pool}


def resolve_evidence(draft: ScenarioDraft, lookup: dict[str, Market]) -> list[Market]:
    """Markets named by the draft's evidence ids, in order, without duplicates.

    Ids missing from the pool (the model may invent them) are dropped.
    """
    resolved: list[Market] = []
    for market_id in draft.evidence_ids:
        market = lookup.get(market_id)
        if market is None:
            logger.debug(f"Scenario {draft.name!r} cites unknown market id {market_id!r}")
            continue
        if market in resolved:
            continue
        resolved.append(market)
        if len(resolved) == MAX_RELATED_MARKETS:
            break
    return resolved


def reconcile_scenario(draft: ScenarioDraft, lookup: dict[str, Market]) -> Scenario:
    related = resolve_evidence(draft, lookup)
    probability = draft.probability
    if related:
        # Market-implied probability overrides the model's own estimate
        market_mean = round_half_up(fmean(m.probability for m in related))
        probability = max(1, min(100, market_mean))
        if probability != draft.probability:
            logger.debug(
                f"Scenario {draft.name!r}: probability {draft.probability}% -> {probability}% "
                f"from {len(related)} market(s)"
            )

    return Scenario(
        name=draft.name,
        description=draft.description,
        probability=probability,
        impacts=draft.impacts,
        evidence_queries=draft.evidence_queries,
        evidence_influenced=bool(related),
        related_markets=related,
    )


def reconcile_scenarios(drafts: list[ScenarioDraft], market_pool: list[Market]) -> list[Scenario]:
    """Resolve each draft's evidence ids against the pool and build final scenarios.

    The raw evidence ids do not survive into the output; only the resolved
    Market snapshots do.
    """
    lookup = index_markets(market_pool)
    scenarios = [reconcile_scenario(draft, lookup) for draft in drafts]
    grounded = sum(1 for s in scenarios if s.evidence_influenced)
    logger.info(f"Reconciled {len(scenarios)} scenarios, {grounded} grounded in market evidence")
    return scenarios
