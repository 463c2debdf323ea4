"""Recover JSON objects from free-form model output.

Models asked to "respond with JSON only" still wrap answers in prose,
markdown fences, or slightly invalid JSON. ``extract_json`` tries a fixed
chain of strategies, each more lenient than the last, and returns the
first successful parse:

1. parse_direct: the whole text is JSON
2. parse_braced_span: the span from the first "{" to the last "}"
3. parse_repaired: fence stripping, then json_repair on the braced span
4. parse_scenarios_array: only the "scenarios": [...] array, rewrapped

Every strategy is a plain ``str -> dict`` function raising ExtractionError.
"""

import json
import logging
import re
from collections.abc import Callable

from json_repair import repair_json

logger = logging.getLogger(__name__)

FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*([\s\S]*?)\s*```")
BRACED_SPAN_PATTERN = re.compile(r"\{[\s\S]*\}")
SCENARIOS_ARRAY_PATTERN = re.compile(r"""["']scenarios["']\s*:\s*(\[[\s\S]*\])""")


class ExtractionError(ValueError):
    """Raised when no JSON object can be recovered from text."""
    pass


def _loads_object(text: str) -> dict:
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Invalid JSON: {e}") from e
    if not isinstance(value, dict):
        raise ExtractionError(f"Expected a JSON object, got {type(value).__name__}")
    return value


def _strip_fences(text: str) -> str:
    match = FENCE_PATTERN.search(text)
    return match.group(1) if match else text


def _trim_to_braces(text: str) -> str:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise ExtractionError("No braces found")
    return text[start:end + 1]


def repair_json_text(text: str) -> str:
    """Strip fences, trim to the outer braces and run json_repair, without parsing."""
    return repair_json(_trim_to_braces(_strip_fences(text).strip()))


def parse_direct(text: str) -> dict:
    """Parse the entire text as a JSON object."""
    return _loads_object(text.strip())


def parse_braced_span(text: str) -> dict:
    """Parse the greedy span from the first "{" to the last "}"."""
    match = BRACED_SPAN_PATTERN.search(text)
    if not match:
        raise ExtractionError("No {...} span found")
    return _loads_object(match.group(0))


def parse_repaired(text: str) -> dict:
    """Parse the braced span after json_repair has fixed quotes, commas and control characters."""
    repaired = repair_json_text(text)
    value = _loads_object(repaired)
    # json_repair returns an empty object for text it cannot make sense of
    if not value:
        raise ExtractionError("Repair produced an empty object")
    return value


def parse_scenarios_array(text: str) -> dict:
    """Recover just the "scenarios" array and wrap it as {"scenarios": [...]}."""
    match = SCENARIOS_ARRAY_PATTERN.search(_strip_fences(text))
    if not match:
        raise ExtractionError('No "scenarios" array found')

    body = match.group(1)
    try:
        scenarios = json.loads(body)
    except json.JSONDecodeError:
        try:
            scenarios = json.loads(repair_json(body))
        except json.JSONDecodeError as e:
            raise ExtractionError(f'"scenarios" array is not valid JSON: {e}') from e
    if not isinstance(scenarios, list):
        raise ExtractionError('"scenarios" is not an array')
    return {"scenarios": scenarios}


STRATEGIES: tuple[Callable[[str], dict], ...] = (
    parse_direct,
    parse_braced_span,
    parse_repaired,
    parse_scenarios_array,
)


def extract_json(text: str) -> dict:
    """Recover a JSON object from model output.

    Raises:
        ExtractionError: If every strategy fails.
    """
    if not text or not text.strip():
        raise ExtractionError("Empty model output")

    errors = []
    for strategy in STRATEGIES:
        try:
            result = strategy(text)
        except ExtractionError as e:
            errors.append(f"{strategy.__name__}: {e}")
            continue
        if strategy is not parse_direct:
            logger.debug(f"Recovered JSON with {strategy.__name__}")
        return result

    preview = text.strip()[:120].replace("\n", " ")
    raise ExtractionError(
        f"Could not extract JSON from model output ({len(text)} chars, starts {preview!r}); "
        + "; ".join(errors)
    )
