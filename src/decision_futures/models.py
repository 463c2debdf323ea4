"""Core data models for decisions, scenarios and evidence.

Field names are snake_case in Python and camelCase on the wire
(``end_date`` <-> ``endDate``). Either spelling is accepted on input.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    Python's round() uses banker's rounding (round(12.5) == 12); market
    probabilities are expected to round 12.5 up to 13.
    """
    return int(math.floor(value + 0.5))


class WireModel(BaseModel):
    """Base model with camelCase aliases for the JSON interface."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialize for the HTTP interface (camelCase, unset optionals omitted)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class InputType(str, Enum):
    """How the model classified the user's input."""

    DECISION = "decision"  # An action the user is considering
    QUESTION = "question"  # An uncertain future event the user asks about


class Market(WireModel):
    """A prediction market snapshot.

    Built fresh from provider payloads on every search and never mutated
    afterwards; only persisted as a nested copy inside a Decision.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str  # Provider-assigned, unique within an evidence pool
    question: str
    description: str | None = None
    probability: int = Field(ge=0, le=100)  # Market-implied, percent
    volume: float = Field(default=0.0, ge=0)
    liquidity: float = Field(default=0.0, ge=0)
    end_date: str = ""  # ISO date or empty
    url: str = ""
    active: bool = True
    outcomes: list[str] | None = None


class SearchResult(WireModel):
    """A web search hit used as grounding evidence."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    title: str = ""
    url: str
    content: str = ""
    score: float = Field(default=0.0, ge=0.0, le=1.0)
    published_date: str | None = None


class Scenario(WireModel):
    """One possible future consequence, a node of the decision tree.

    ``expanded_scenarios`` is None until the user expands the node; after
    that it holds the generated second-order consequences.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: str = Field(max_length=120)
    description: str = ""
    probability: int = Field(ge=1, le=100)
    impacts: list[str] = Field(default_factory=list)
    evidence_queries: list[str] = Field(default_factory=list)
    evidence_influenced: bool = False
    related_markets: list[Market] = Field(default_factory=list, max_length=5)
    expanded_scenarios: list[Scenario] | None = None


class Decision(WireModel):
    """A persisted generation request and its scenario tree."""

    id: str
    user_id: str  # Opaque owner key (an email address in practice)
    decision_text: str
    scenarios: list[Scenario] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime | None = None
