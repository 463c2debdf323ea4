"""Abstract base class for decision storage backends."""

from abc import ABC, abstractmethod
from collections.abc import Callable

from decision_futures.models import Decision, Scenario

TreeMutation = Callable[[list[Scenario]], list[Scenario]]


class DecisionNotFoundError(LookupError):
    """Raised when a decision id does not exist."""
    pass


class DecisionAccessDeniedError(PermissionError):
    """Raised when a user other than the owner touches a decision."""
    pass


class DecisionConflictError(RuntimeError):
    """Raised when concurrent writers keep invalidating an update."""
    pass


class DecisionStore(ABC):
    """Document-style storage for decisions and their scenario trees.

    Updates are read-modify-write against the current stored document,
    never against a copy the caller read earlier.
    """

    @abstractmethod
    async def create_decision(
        self, user_id: str, decision_text: str, scenarios: list[Scenario]
    ) -> Decision:
        """Store a new decision under a generated id."""
        ...

    @abstractmethod
    async def get_decision(self, decision_id: str) -> Decision | None:
        """Get a decision by id, regardless of owner."""
        ...

    @abstractmethod
    async def list_decisions(self, user_id: str, limit: int = 50) -> list[Decision]:
        """Decisions owned by ``user_id``, newest first."""
        ...

    @abstractmethod
    async def update_scenarios(
        self, decision_id: str, user_id: str, mutate: TreeMutation
    ) -> Decision:
        """Apply ``mutate`` to the current scenario tree and store the result.

        Raises:
            DecisionNotFoundError: If the decision does not exist.
            DecisionAccessDeniedError: If ``user_id`` is not the owner.
            DecisionConflictError: If concurrent writes keep winning.
        """
        ...

    @abstractmethod
    async def delete_decision(self, decision_id: str, user_id: str) -> None:
        """Delete a decision owned by ``user_id``.

        Raises:
            DecisionNotFoundError: If the decision does not exist.
            DecisionAccessDeniedError: If ``user_id`` is not the owner.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the storage connection."""
        ...
