"""Command-line interface for decision-futures.

Commands:
    serve       Run the HTTP API
    explore     Generate grounded scenarios for a decision or question
    trending    Show trending prediction markets
"""

import asyncio
import json

import click
import uvicorn

from decision_futures import __version__
from decision_futures.config import settings, setup_logging
from decision_futures.market_data import PolymarketSearch
from decision_futures.phases.generate import GenerationExhaustedError
from decision_futures.pipeline import build_pipeline


@click.group()
@click.version_option(version=__version__)
@click.option("--log-level", default=None, help="Log level (default: settings.log_level).")
def main(log_level: str | None):
    """decision-futures - Explore the possible consequences of a decision."""
    setup_logging(level=log_level)


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind.")
@click.option("--port", default=3001, show_default=True, help="Port to listen on.")
def serve(host: str, port: int):
    """Run the HTTP API."""
    from decision_futures.api import create_app

    uvicorn.run(create_app(), host=host, port=port, log_config=None)


@main.command()
@click.argument("text")
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON.")
def explore(text: str, as_json: bool):
    """Generate grounded scenarios for TEXT without saving them."""
    asyncio.run(_explore(text, as_json))


async def _explore(text: str, as_json: bool):
    """Async implementation of explore command."""
    pipeline = build_pipeline(settings)
    try:
        result = await pipeline.run(text)
    except GenerationExhaustedError as e:
        raise click.ClickException(str(e))
    finally:
        await pipeline.close()

    if as_json:
        payload = {
            "inputType": result.input_type.value,
            "consequences": [s.to_wire() for s in result.scenarios],
            "searchResults": [r.to_wire() for r in result.search_results],
        }
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    click.echo(f"Input type: {result.input_type.value}")
    click.echo(f"Evidence: {len(result.markets)} markets, {len(result.search_results)} web results")
    click.echo("")
    for i, scenario in enumerate(result.scenarios):
        marker = " [market]" if scenario.evidence_influenced else ""
        click.echo(f"{i:>3}. {scenario.probability:>3}%  {scenario.name}{marker}")
        for market in scenario.related_markets:
            click.echo(f"        - {market.question} ({market.probability}%)")


@main.command()
@click.option("--limit", "-n", default=30, show_default=True, help="Number of markets to show.")
def trending(limit: int):
    """Show trending prediction markets."""
    asyncio.run(_trending(limit))


async def _trending(limit: int):
    """Async implementation of trending command."""
    search = PolymarketSearch(
        base_url=settings.polymarket_api_url, timeout=settings.polymarket_timeout
    )
    try:
        markets = await search.get_trending(limit=limit)
    finally:
        await search.close()

    if not markets:
        click.echo("No trending markets found", err=True)
        return

    for market in markets:
        click.echo(f"{market.probability:>3}%  ${market.volume:>14,.0f}  {market.question}")
        if market.url:
            click.echo(f"      {market.url}")


if __name__ == "__main__":
    main()
