"""
BreachWatch - Text Generator
Thin wrapper over a LangChain chat model (Gemini or any OpenAI-compatible
endpoint). One instance is built per request and handed to the services
that need it, so tests can swap in a fake with the same `complete()` method.

Optimized for fail-fast behaviour:
- max_retries=1 instead of the client default
- provider timeout plus a hard thread timeout on top
"""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from typing import Optional

from config import Settings
from errors import GenerationError

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    "gemini": "gemini-2.5-flash",
    "openai": "gpt-4o-mini",
}
TIMEOUT_GRACE_SECONDS = 5


def _is_quota_error(error: Exception) -> bool:
    """Check if an exception is a quota/rate-limit error (429)."""
    error_str = str(error)
    return "429" in error_str or "ResourceExhausted" in error_str or "quota" in error_str.lower()


def _content_text(content) -> str:
    """LangChain content is a string, or a list of parts for some Gemini responses."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return ""


class TextGenerator:
    def __init__(self, provider: str = "gemini", api_key: str = "", model: Optional[str] = None,
                 timeout: int = 30, max_tokens: int = 4096, base_url: Optional[str] = None,
                 temperature: float = 0.4):
        self.provider = provider
        self.api_key = api_key
        self.model = model or DEFAULT_MODELS.get(provider, DEFAULT_MODELS["gemini"])
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.base_url = base_url
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings: Settings) -> "TextGenerator":
        provider = settings.llm_provider
        api_key = settings.openai_api_key if provider == "openai" else settings.gemini_api_key
        return cls(
            provider=provider,
            api_key=api_key,
            model=settings.llm_model,
            timeout=settings.llm_timeout,
            max_tokens=settings.llm_max_tokens,
            base_url=settings.openai_base_url,
        )

    def _build_llm(self):
        if not self.api_key:
            raise GenerationError(f"No {self.provider} API key configured")

        if self.provider == "openai":
            from langchain_openai import ChatOpenAI
            return ChatOpenAI(
                model=self.model,
                api_key=self.api_key,
                base_url=self.base_url,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                max_retries=1,
                timeout=self.timeout,
            )

        # Default: Gemini
        from langchain_google_genai import ChatGoogleGenerativeAI
        return ChatGoogleGenerativeAI(
            model=self.model,
            google_api_key=self.api_key,
            temperature=self.temperature,
            max_output_tokens=self.max_tokens,
            max_retries=1,
            timeout=self.timeout,
        )

    def complete(self, system: str, prompt: str) -> str:
        """Send one system + user exchange and return the model's text.

        Raises GenerationError for missing credentials, provider errors,
        timeouts and empty output. No partial text is ever returned.
        """
        llm = self._build_llm()
        messages = [("system", system), ("human", prompt)]
        hard_timeout = self.timeout + TIMEOUT_GRACE_SECONDS

        logger.info("Calling %s (%s) for text generation", self.provider, self.model)
        executor = ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(llm.invoke, messages)
            response = future.result(timeout=hard_timeout)
        except FuturesTimeoutError as e:
            logger.warning("LLM timed out after %ss", hard_timeout)
            raise GenerationError("Content generation timed out") from e
        except Exception as e:
            if _is_quota_error(e):
                logger.warning("LLM quota exhausted: %s", str(e)[:200])
                raise GenerationError("Content generation quota exhausted") from e
            logger.error("LLM call failed: %s", str(e)[:200])
            raise GenerationError("Failed to generate content") from e
        finally:
            executor.shutdown(wait=False)

        text = _content_text(getattr(response, "content", None)).strip()
        if not text:
            raise GenerationError("No content generated")
        return text
