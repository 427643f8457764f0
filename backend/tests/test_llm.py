import threading
from types import SimpleNamespace

import pytest

import ai.llm as llm_module
from ai.llm import DEFAULT_MODELS, TextGenerator
from config import Settings
from errors import GenerationError


class StubLLM:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.messages = None

    def invoke(self, messages):
        self.messages = messages
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=self.content)


def generator_with(monkeypatch, llm):
    gen = TextGenerator(provider="gemini", api_key="test-key", timeout=1)
    monkeypatch.setattr(gen, "_build_llm", lambda: llm)
    return gen


def test_missing_api_key_raises_generation_error():
    with pytest.raises(GenerationError) as exc:
        TextGenerator(provider="gemini", api_key="").complete("sys", "prompt")
    assert "API key" in exc.value.message


def test_from_settings_picks_provider_key():
    settings = Settings(llm_provider="openai", openai_api_key="sk-test", gemini_api_key="g-test",
                        openai_base_url="https://gateway.example/v1")
    gen = TextGenerator.from_settings(settings)
    assert gen.api_key == "sk-test"
    assert gen.model == DEFAULT_MODELS["openai"]
    assert gen.base_url == "https://gateway.example/v1"

    gen = TextGenerator.from_settings(Settings(gemini_api_key="g-test", llm_model="gemini-custom"))
    assert gen.api_key == "g-test"
    assert gen.model == "gemini-custom"


def test_complete_sends_system_and_user_messages(monkeypatch):
    llm = StubLLM(content="  hello  ")
    assert generator_with(monkeypatch, llm).complete("be terse", "say hi") == "hello"
    assert llm.messages == [("system", "be terse"), ("human", "say hi")]


def test_complete_joins_content_parts(monkeypatch):
    llm = StubLLM(content=[{"type": "text", "text": "{\"a\": "}, "1}", {"type": "image"}])
    assert generator_with(monkeypatch, llm).complete("s", "p") == "{\"a\": 1}"


def test_empty_output_is_generation_error(monkeypatch):
    with pytest.raises(GenerationError) as exc:
        generator_with(monkeypatch, StubLLM(content="")).complete("s", "p")
    assert exc.value.message == "No content generated"


def test_provider_error_is_generation_error(monkeypatch):
    with pytest.raises(GenerationError) as exc:
        generator_with(monkeypatch, StubLLM(error=RuntimeError("500 internal"))).complete("s", "p")
    assert exc.value.message == "Failed to generate content"


def test_quota_error_is_reported_distinctly(monkeypatch):
    with pytest.raises(GenerationError) as exc:
        generator_with(monkeypatch, StubLLM(error=RuntimeError("429 ResourceExhausted"))).complete("s", "p")
    assert "quota" in exc.value.message


class SlowLLM:
    def __init__(self):
        self.release = threading.Event()

    def invoke(self, messages):
        self.release.wait(5)
        return SimpleNamespace(content="too late")


def test_hard_timeout_is_generation_error(monkeypatch):
    monkeypatch.setattr(llm_module, "TIMEOUT_GRACE_SECONDS", 0)
    llm = SlowLLM()
    gen = generator_with(monkeypatch, llm)
    gen.timeout = 0.05
    try:
        with pytest.raises(GenerationError) as exc:
            gen.complete("s", "p")
    finally:
        llm.release.set()
    assert exc.value.message == "Content generation timed out"
