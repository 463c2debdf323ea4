"""Generate second-order consequences for an existing scenario."""

import logging
from datetime import datetime, timezone

from decision_futures.llm import LLMBackend
from decision_futures.models import Scenario
from decision_futures.phases.generate import SINGLE_ATTEMPT, RetryPolicy, generate_with_policy
from decision_futures.phases.reconcile import reconcile_scenarios
from decision_futures.prompts import EXPANSION_SYSTEM, EXPANSION_USER

logger = logging.getLogger(__name__)

EXPANSION_SIZE = 10


async def expand_scenario(
    llm: LLMBackend,
    scenario: Scenario,
    original_decision: str,
    policy: RetryPolicy = SINGLE_ATTEMPT,
) -> list[Scenario]:
    """Generate the consequences of ``scenario``, assuming it has happened.

    Children are not re-grounded in market evidence: they carry no related
    markets and are never evidence-influenced.

    Raises:
        GenerationExhaustedError: If generation fails.
    """
    impacts = "\n".join(f"- {impact}" for impact in scenario.impacts) or "- (none listed)"
    system_prompt = EXPANSION_SYSTEM.format(
        today=datetime.now(timezone.utc).strftime("%Y-%m-%d"),
        original_decision=original_decision,
        name=scenario.name,
        description=scenario.description,
        impacts=impacts,
    )
    result = await generate_with_policy(
        llm, EXPANSION_USER.format(name=scenario.name), system_prompt, policy
    )

    drafts = result.drafts[:EXPANSION_SIZE]
    if len(result.drafts) != EXPANSION_SIZE:
        logger.warning(
            f"Expansion of {scenario.name!r} produced {len(result.drafts)} scenarios, expected {EXPANSION_SIZE}"
        )
    return reconcile_scenarios(drafts, market_pool=[])
