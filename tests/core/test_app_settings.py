"""Tests for settings validation and logger setup."""

from loguru import logger

from smart_healthcare.config.settings import Settings
from smart_healthcare.core.logger import setup_logger


def test_defaults_match_recommendation_budgets(monkeypatch):
    for name in ("OPENAI_MODEL", "OPENAI_MAX_TOKENS", "DIET_MAX_ATTEMPTS", "WORKOUT_MAX_ATTEMPTS"):
        monkeypatch.delenv(name, raising=False)

    config = Settings(_env_file=None)

    assert config.openai_model == "gpt-4o"
    assert config.openai_max_tokens == 8192
    assert config.diet_max_attempts == 2
    assert config.workout_max_attempts == 3


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("WORKOUT_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("OPENAI_BASE_URL", "https://llm.example.com/v1/")

    config = Settings(_env_file=None)

    assert config.workout_max_attempts == 5
    assert config.openai_base_url == "https://llm.example.com/v1"


def test_invalid_log_level_falls_back_to_info(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")

    assert Settings(_env_file=None).log_level == "INFO"


def test_setup_logger_writes_file(tmp_path):
    log_file = tmp_path / "logs" / "app.log"

    setup_logger(level="DEBUG", log_file=str(log_file))
    logger.info("Diet plan generated", attempt=1)
    logger.remove()

    content = log_file.read_text(encoding="utf-8")
    assert "Diet plan generated" in content
    assert "'attempt': 1" in content
