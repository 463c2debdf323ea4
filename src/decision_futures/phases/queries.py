"""Derive evidence search queries from the user's free-text input.

Both derivations are best effort: any backend or parse failure yields an
empty list and the pipeline continues without that evidence source.
"""

import logging

from decision_futures.json_extract import ExtractionError, extract_json
from decision_futures.llm import GenerationRequest, LLMBackend, LLMError
from decision_futures.prompts import DERIVATION_USER, MARKET_KEYWORDS_SYSTEM, SEARCH_QUERIES_SYSTEM

logger = logging.getLogger(__name__)

DERIVATION_TEMPERATURE = 0.3
MAX_MARKET_KEYWORDS = 8
MAX_SEARCH_QUERIES = 5


async def _derive_list(
    llm: LLMBackend,
    user_input: str,
    system_prompt: str,
    field: str,
    limit: int,
) -> list[str]:
    request = GenerationRequest(
        prompt=DERIVATION_USER.format(user_input=user_input),
        system_prompt=system_prompt.format(),
        temperature=DERIVATION_TEMPERATURE,
    )
    try:
        response = await llm.generate(request)
        data = extract_json(response.text)
    except (LLMError, ExtractionError) as e:
        logger.warning(f"Could not derive {field}, continuing without them: {e}")
        return []

    values = data.get(field)
    if not isinstance(values, list):
        logger.warning(f"Derivation response has no {field!r} list: {list(data)}")
        return []

    seen = set()
    items = []
    for value in values:
        if not isinstance(value, str) or not value.strip():
            continue
        item = value.strip()
        if item.lower() in seen:
            continue
        seen.add(item.lower())
        items.append(item)
    return items[:limit]


async def derive_market_keywords(llm: LLMBackend, user_input: str) -> list[str]:
    """English prediction-market search phrases for events bearing on the input."""
    keywords = await _derive_list(
        llm, user_input, MARKET_KEYWORDS_SYSTEM, "keywords", MAX_MARKET_KEYWORDS
    )
    logger.info(f"Derived {len(keywords)} market keywords: {keywords}")
    return keywords


async def derive_search_queries(llm: LLMBackend, user_input: str) -> list[str]:
    """Web search queries, in the input's language, for recent relevant facts."""
    queries = await _derive_list(
        llm, user_input, SEARCH_QUERIES_SYSTEM, "queries", MAX_SEARCH_QUERIES
    )
    logger.info(f"Derived {len(queries)} search queries: {queries}")
    return queries
