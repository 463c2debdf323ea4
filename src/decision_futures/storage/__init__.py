"""Decision persistence."""

from decision_futures.storage.base import (
    DecisionAccessDeniedError,
    DecisionConflictError,
    DecisionNotFoundError,
    DecisionStore,
)
from decision_futures.storage.sqlite import SQLiteDecisionStore

__all__ = [
    "DecisionStore",
    "DecisionNotFoundError",
    "DecisionAccessDeniedError",
    "DecisionConflictError",
    "SQLiteDecisionStore",
]
