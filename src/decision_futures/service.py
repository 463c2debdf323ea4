"""Decision workflows: generate, persist, expand and manage decision trees.

The service owns the ownership rules. Reads and deletes surface storage
errors to the caller; writes that follow a successful generation are
best effort, so a storage outage never costs the user their scenarios.
"""

import logging
from dataclasses import dataclass

from decision_futures.config import Settings
from decision_futures.llm import LLMBackend
from decision_futures.models import Decision, Scenario
from decision_futures.phases.expand import expand_scenario
from decision_futures.pipeline import ConsequencePipeline, PipelineResult, build_pipeline
from decision_futures.storage import (
    DecisionAccessDeniedError,
    DecisionNotFoundError,
    DecisionStore,
    SQLiteDecisionStore,
)
from decision_futures.tree import graft_children, node_at, parse_node_path

logger = logging.getLogger(__name__)


@dataclass
class StartOutcome:
    """Pipeline output plus the id it was saved under (None if saving failed)."""
    result: PipelineResult
    decision_id: str | None = None


class DecisionService:
    """Entry point for the HTTP and CLI surfaces."""

    def __init__(self, pipeline: ConsequencePipeline, store: DecisionStore, llm: LLMBackend | None = None):
        self.pipeline = pipeline
        self.store = store
        self.llm = llm or pipeline.llm

    async def start(self, message: str, user_id: str) -> StartOutcome:
        """Generate scenarios for ``message`` and save them as a new decision.

        Raises:
            GenerationExhaustedError: If generation failed.
        """
        result = await self.pipeline.run(message)

        decision_id = None
        try:
            decision = await self.store.create_decision(user_id, message, result.scenarios)
            decision_id = decision.id
        except Exception:
            logger.exception(f"Could not save decision for {user_id}, returning unsaved result")
        return StartOutcome(result=result, decision_id=decision_id)

    async def _get_owned(self, decision_id: str, user_id: str) -> Decision:
        decision = await self.store.get_decision(decision_id)
        if decision is None:
            raise DecisionNotFoundError(f"Decision {decision_id} not found")
        if decision.user_id != user_id:
            raise DecisionAccessDeniedError(f"Not allowed to access decision {decision_id}")
        return decision

    async def expand(
        self,
        decision_id: str,
        node_id: str,
        original_decision: str,
        consequence: Scenario | None,
        user_id: str,
    ) -> list[Scenario]:
        """Generate the consequences of one node and graft them under it.

        The node is looked up in the stored tree before any generation
        happens, and the stored copy is what gets expanded. A blank
        ``original_decision`` falls back to the stored decision text.

        The graft re-reads the tree at write time, so expansions of other
        branches saved in the meantime are kept.

        Raises:
            InvalidNodePathError: If ``node_id`` does not address a node.
            DecisionNotFoundError: If the decision does not exist.
            DecisionAccessDeniedError: If ``user_id`` is not the owner.
            GenerationExhaustedError: If generation failed.
        """
        path = parse_node_path(node_id)
        decision = await self._get_owned(decision_id, user_id)
        node = node_at(decision.scenarios, path)
        if consequence is not None and consequence.name != node.name:
            logger.warning(
                f"Node {node_id} of decision {decision_id} is {node.name!r}, not {consequence.name!r}; "
                "expanding the stored node"
            )
        context = (original_decision or "").strip() or decision.decision_text

        children = await expand_scenario(self.llm, node, context)

        try:
            await self.store.update_scenarios(
                decision_id,
                user_id,
                lambda scenarios: graft_children(scenarios, path, children),
            )
        except Exception:
            logger.exception(f"Could not save expansion of {node_id} in decision {decision_id}")
        return children

    async def get_decision(self, decision_id: str, user_id: str) -> Decision:
        """Raises DecisionNotFoundError / DecisionAccessDeniedError."""
        return await self._get_owned(decision_id, user_id)

    async def list_decisions(self, user_id: str, limit: int = 50) -> list[Decision]:
        return await self.store.list_decisions(user_id, limit=limit)

    async def delete_decision(self, decision_id: str, user_id: str) -> None:
        await self.store.delete_decision(decision_id, user_id)

    async def close(self) -> None:
        await self.pipeline.close()
        await self.store.close()


def build_service(config: Settings) -> DecisionService:
    """Assemble a service (pipeline and SQLite store) from settings."""
    pipeline = build_pipeline(config)
    store = SQLiteDecisionStore(config.database_path)
    return DecisionService(pipeline, store)
