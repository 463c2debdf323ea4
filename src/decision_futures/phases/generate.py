"""Structured scenario generation with a bounded retry policy.

The retry policy is data: an ordered tuple of attempts, each with its own
sampling temperature and the delay to wait before it. The default policy
samples once at a high temperature for diverse scenarios, then retries a
second later at a low temperature, which models follow the JSON format
more strictly at.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from decision_futures.json_extract import ExtractionError, extract_json
from decision_futures.llm import GenerationRequest, LLMBackend, LLMError
from decision_futures.models import InputType
from decision_futures.prompts import SCENARIOS_SYSTEM
from decision_futures.schemas import ScenarioDraft, parse_input_type, parse_scenario_drafts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attempt:
    """One generation attempt: sampling temperature and delay before it (seconds)."""
    temperature: float
    delay: float = 0.0


RetryPolicy = tuple[Attempt, ...]

DEFAULT_POLICY: RetryPolicy = (
    Attempt(temperature=0.8),
    Attempt(temperature=0.3, delay=1.0),
)
SINGLE_ATTEMPT: RetryPolicy = (Attempt(temperature=0.7),)


class GenerationExhaustedError(Exception):
    """Raised when every attempt of a retry policy failed."""

    def __init__(self, attempts: int, last_error: str):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Scenario generation failed after {attempts} attempt(s): {last_error}"
        )


class InvalidGenerationError(ValueError):
    """Raised when a model response does not satisfy the scenario contract."""
    pass


@dataclass
class GenerationResult:
    """Validated generation output."""
    input_type: InputType
    drafts: list[ScenarioDraft]
    attempts: int = 1
    model: str | None = None
    usage: dict[str, int] = field(default_factory=dict)


def parse_generation(text: str) -> tuple[InputType, list[ScenarioDraft]]:
    """Parse model output into an input type and at least one scenario draft.

    Raises:
        ExtractionError: If no JSON object can be recovered.
        InvalidGenerationError: If the object holds no valid scenarios.
    """
    data = extract_json(text)
    items = data.get("scenarios")
    if items is None:
        # Older prompts asked for "consequences"
        items = data.get("consequences")
    if not isinstance(items, list):
        raise InvalidGenerationError('Response has no "scenarios" array')

    drafts = parse_scenario_drafts(items)
    if not drafts:
        raise InvalidGenerationError("Response contains zero valid scenarios")
    return parse_input_type(data.get("input_type", data.get("inputType"))), drafts


async def generate_with_policy(
    llm: LLMBackend,
    prompt: str,
    system_prompt: str,
    policy: RetryPolicy = DEFAULT_POLICY,
) -> GenerationResult:
    """Run generation attempts in policy order until one yields valid scenarios.

    Backend errors, unparseable output and empty scenario lists all count as
    a failed attempt.

    Raises:
        GenerationExhaustedError: After the last attempt in the policy fails.
    """
    if not policy:
        raise ValueError("Retry policy must contain at least one attempt")

    last_error = "no attempts made"
    for number, attempt in enumerate(policy, start=1):
        if attempt.delay > 0:
            await asyncio.sleep(attempt.delay)

        logger.info(
            f"Generation attempt {number}/{len(policy)} (temperature={attempt.temperature})"
        )
        try:
            response = await llm.generate(
                GenerationRequest(
                    prompt=prompt,
                    system_prompt=system_prompt,
                    temperature=attempt.temperature,
                )
            )
            input_type, drafts = parse_generation(response.text)
        except (LLMError, ExtractionError, InvalidGenerationError) as e:
            last_error = str(e)
            logger.warning(f"Generation attempt {number}/{len(policy)} failed: {e}")
            continue

        logger.info(
            f"Generated {len(drafts)} scenarios ({input_type.value}) on attempt {number}"
        )
        return GenerationResult(
            input_type=input_type,
            drafts=drafts,
            attempts=number,
            model=response.model,
            usage=response.usage,
        )

    logger.error(f"All {len(policy)} generation attempts failed: {last_error}")
    raise GenerationExhaustedError(len(policy), last_error)


async def generate_scenarios(
    llm: LLMBackend,
    user_input: str,
    evidence_context: str = "",
    policy: RetryPolicy = DEFAULT_POLICY,
) -> GenerationResult:
    """Classify the input and generate grounded scenarios for it.

    Args:
        llm: Generation backend
        user_input: The user's decision or question, verbatim
        evidence_context: Grounding block from build_evidence_context ("" for none)
        policy: Attempts to make before giving up
    """
    system_prompt = SCENARIOS_SYSTEM.format(
        today=datetime.now(timezone.utc).strftime("%Y-%m-%d"),
        evidence_context=evidence_context,
    )
    return await generate_with_policy(llm, user_input, system_prompt, policy)
