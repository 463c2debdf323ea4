"""Configuration management for decision-futures.

Uses pydantic-settings to load configuration from environment variables
and .env files.

Usage:
    from decision_futures.config import settings

    if settings.tavily_api_key:
        web = TavilySearch(api_key=settings.tavily_api_key)

LLM provider keys (OPENROUTER_API_KEY, GEMINI_API_KEY, ...) are read
directly by litellm from the environment.
"""

import logging
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    API keys that are not set disable the corresponding evidence source;
    the pipeline then runs ungrounded for that branch.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Evidence sources ===
    tavily_api_key: str | None = None
    tavily_timeout: float = 5.0
    polymarket_api_url: str = "https://gamma-api.polymarket.com"
    polymarket_timeout: float = 10.0

    # Relevance thresholds applied to the evidence pool
    market_min_volume: float = 100.0
    search_min_score: float = 0.5

    # === LLM ===
    # Ordered fallback cascade: a rate-limited model hands over to the next one
    llm_models: list[str] = [
        "openrouter/openai/gpt-oss-120b",
        "openrouter/qwen/qwen3-235b-a22b-thinking-2507",
        "openrouter/meta-llama/llama-4-maverick",
    ]
    llm_max_tokens: int = 10000

    # === Storage ===
    database_url: str = "sqlite+aiosqlite:///decisions.db"

    # === HTTP ===
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:3001"]

    # === Logging ===
    log_level: str = "INFO"
    log_file: str | None = None

    @property
    def database_path(self) -> str:
        """Filesystem path of the SQLite database named by database_url."""
        prefix = "sqlite+aiosqlite:///"
        if self.database_url.startswith(prefix):
            return self.database_url[len(prefix):]
        return "decisions.db"


# Singleton instance - import this
settings = Settings()


def setup_logging(log_file: str | None = None, level: str | None = None) -> None:
    """Configure logging to console and, optionally, a file.

    Args:
        log_file: Path to log file. If None, uses settings.log_file.
        level: Log level name. If None, uses settings.log_level.
    """
    log_file = log_file or settings.log_file
    level = level or settings.log_level

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
        force=True,  # Allow reconfiguration
    )

    # Quiet down noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
