import pytest

import config
from config import Settings

ENV_VARS = [
    "DATABASE_URL", "LLM_PROVIDER", "GEMINI_API_KEY", "OPENAI_API_KEY", "OPENAI_BASE_URL",
    "LLM_MODEL", "LLM_TIMEOUT", "LLM_MAX_TOKENS", "FIRECRAWL_API_KEY", "SEARCH_TIMEOUT",
    "DEMO_MODE", "ALLOWED_ORIGINS", "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.setattr(config, "load_dotenv", lambda: None)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings.from_env()
    assert settings.database_url == config.DEFAULT_DATABASE_URL
    assert settings.llm_provider == "gemini"
    assert settings.llm_timeout == 30
    assert settings.demo_mode is False
    assert settings.allowed_origins == ["*"]
    assert settings.openai_base_url is None


def test_values_are_read_and_normalized(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", " OpenAI ")
    monkeypatch.setenv("OPENAI_API_KEY", " sk-test ")
    monkeypatch.setenv("LLM_TIMEOUT", "12")
    monkeypatch.setenv("DEMO_MODE", "yes")
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example, https://b.example,")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.llm_provider == "openai"
    assert settings.openai_api_key == "sk-test"
    assert settings.llm_timeout == 12
    assert settings.demo_mode is True
    assert settings.allowed_origins == ["https://a.example", "https://b.example"]
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("value", ["0", "false", "off", ""])
def test_demo_mode_false_values(monkeypatch, value):
    monkeypatch.setenv("DEMO_MODE", value)
    assert Settings.from_env().demo_mode is False
