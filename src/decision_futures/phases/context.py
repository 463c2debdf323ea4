"""Format the evidence pool into a grounding block for the generation prompt."""

from decision_futures.models import Market, SearchResult

MAX_CONTEXT_MARKETS = 20
MAX_CONTEXT_RESULTS = 10
EXCERPT_CHARS = 200


def _format_volume(volume: float) -> str:
    return f"${volume / 1000:,.1f}K"


def _excerpt(text: str, limit: int = EXCERPT_CHARS) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def format_markets_block(markets: list[Market]) -> str:
    lines = [
        "",
        "=== PREDICTION MARKETS (real money, current prices) ===",
    ]
    for market in markets[:MAX_CONTEXT_MARKETS]:
        lines.append(
            f"- [id: {market.id}] {market.question} | probability: {market.probability}% "
            f"| volume: {_format_volume(market.volume)} | {market.url}"
        )
    lines += [
        "",
        "How to use these markets:",
        "- For each scenario, put the ids of 0-5 RELEVANT markets above into its evidence_ids.",
        "- Only use ids from this list; leave evidence_ids empty when nothing is relevant.",
        "- Where a market is relevant, keep your probability consistent with its market probability.",
    ]
    return "\n".join(lines)


def format_search_block(results: list[SearchResult]) -> str:
    lines = [
        "",
        "=== RECENT WEB INFORMATION ===",
    ]
    for result in results[:MAX_CONTEXT_RESULTS]:
        line = (
            f"- {result.title} (relevance: {result.score:.0%})\n"
            f"  {_excerpt(result.content)}\n"
            f"  {result.url}"
        )
        if result.published_date:
            line += f" ({result.published_date})"
        lines.append(line)
    lines += [
        "",
        "Use this information to make descriptions and probabilities realistic and current.",
    ]
    return "\n".join(lines)


def build_evidence_context(markets: list[Market], search_results: list[SearchResult]) -> str:
    """Render markets and search results as a prompt block.

    Pure: no I/O. Returns "" when there is no evidence, so no grounding
    block is injected into the prompt.
    """
    blocks = []
    if markets:
        blocks.append(format_markets_block(markets))
    if search_results:
        blocks.append(format_search_block(search_results))
    if not blocks:
        return ""
    return "\n".join(blocks) + "\n"
