"""Pydantic schemas for the JSON the model is asked to produce.

The model is instructed to emit snake_case English keys, but these
schemas also accept camelCase and the Spanish keys older prompts used
(nombre, descripcion, probabilidad, impactos), and coerce loosely typed
values ("65%", 0.65, "12") into the expected shape.
"""

import logging
import math
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from decision_futures.models import InputType, round_half_up

logger = logging.getLogger(__name__)

MAX_NAME_CHARS = 120


class ScenarioDraft(BaseModel):
    """A scenario as emitted by the model, before evidence reconciliation."""

    name: str = Field(validation_alias=AliasChoices("name", "nombre", "title"))
    description: str = Field(
        default="", validation_alias=AliasChoices("description", "descripcion")
    )
    probability: int = Field(
        validation_alias=AliasChoices("probability", "probabilidad")
    )
    impacts: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("impacts", "impactos")
    )
    evidence_ids: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("evidence_ids", "evidenceIds", "market_ids", "polymarketIds"),
    )
    evidence_used: bool = Field(
        default=False,
        validation_alias=AliasChoices("evidence_used", "evidenceUsed", "polymarketInfluenced"),
    )
    evidence_queries: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("evidence_queries", "evidenceQueries", "polymarketQueries"),
    )

    @field_validator("name", mode="before")
    @classmethod
    def _trim_name(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("name must be a non-empty string")
        return value.strip()[:MAX_NAME_CHARS]

    @field_validator("probability", mode="before")
    @classmethod
    def _coerce_probability(cls, value: Any) -> int:
        """Integer percent in 1..100; fractions in (0, 1) are read as shares."""
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise ValueError(f"probability must be a number, got {value!r}")
        if isinstance(value, str):
            value = float(value.strip().rstrip("%").strip())
        value = float(value)
        if not math.isfinite(value):
            raise ValueError(f"probability must be finite, got {value!r}")
        if 0 < value < 1:
            value *= 100
        return max(1, min(100, round_half_up(value)))

    @field_validator("impacts", "evidence_queries", mode="before")
    @classmethod
    def _coerce_strings(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list):
            raise ValueError(f"expected a list of strings, got {type(value).__name__}")
        return [str(v).strip() for v in value if v is not None and str(v).strip()]

    @field_validator("evidence_ids", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, (str, int)):
            value = [value]
        if not isinstance(value, list):
            raise ValueError(f"expected a list of ids, got {type(value).__name__}")
        return [str(v).strip() for v in value if v is not None and str(v).strip()]


def parse_input_type(value: Any) -> InputType:
    """Model-assigned input classification; anything unrecognized is a decision."""
    if isinstance(value, str):
        try:
            return InputType(value.strip().lower())
        except ValueError:
            pass
    logger.debug(f"Unrecognized input_type {value!r}, treating input as a decision")
    return InputType.DECISION


def parse_scenario_drafts(items: list[Any]) -> list[ScenarioDraft]:
    """Validate raw scenario objects, dropping the ones that don't fit the contract."""
    drafts = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning(f"Dropping scenario {i}: not an object")
            continue
        try:
            drafts.append(ScenarioDraft.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Dropping scenario {i}: {e.error_count()} validation errors")
    return drafts
