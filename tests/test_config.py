"""Tests for settings and logging setup."""

import logging

from decision_futures.config import Settings, setup_logging


class TestSettings:
    def test_defaults(self):
        config = Settings(_env_file=None)
        assert config.polymarket_timeout == 10.0
        assert config.tavily_timeout == 5.0
        assert config.market_min_volume == 100.0
        assert config.search_min_score == 0.5
        assert len(config.llm_models) == 3

    def test_database_path(self):
        assert Settings(_env_file=None, database_url="sqlite+aiosqlite:///data/d.db").database_path == "data/d.db"
        assert Settings(_env_file=None, database_url="postgresql://x").database_path == "decisions.db"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("TAVILY_API_KEY", "from-env")
        monkeypatch.setenv("LLM_MODELS", '["gemini/gemini-2.5-flash"]')
        config = Settings(_env_file=None)
        assert config.tavily_api_key == "from-env"
        assert config.llm_models == ["gemini/gemini-2.5-flash"]


class TestSetupLogging:
    def test_file_handler_and_quiet_libraries(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"

        setup_logging(log_file=str(log_file), level="DEBUG")
        logging.getLogger("decision_futures.test").info("hello")

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello" in log_file.read_text()
