"""
BreachWatch - Configuration
All settings come from environment variables (optionally via a .env file).
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_DATABASE_URL = "sqlite:///./breachwatch.db"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseModel):
    """Runtime configuration for the API and its external collaborators."""
    database_url: str = DEFAULT_DATABASE_URL

    # Text generation (LangChain)
    llm_provider: str = "gemini"
    gemini_api_key: str = ""
    openai_api_key: str = ""
    openai_base_url: Optional[str] = None
    llm_model: Optional[str] = None
    llm_timeout: int = 30
    llm_max_tokens: int = 4096

    # Breach discovery (Firecrawl search)
    firecrawl_api_key: str = ""
    search_timeout: int = 20

    demo_mode: bool = False
    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
            llm_provider=os.getenv("LLM_PROVIDER", "gemini").strip().lower(),
            gemini_api_key=os.getenv("GEMINI_API_KEY", "").strip(),
            openai_api_key=os.getenv("OPENAI_API_KEY", "").strip(),
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            llm_model=os.getenv("LLM_MODEL") or None,
            llm_timeout=int(os.getenv("LLM_TIMEOUT", "30")),
            llm_max_tokens=int(os.getenv("LLM_MAX_TOKENS", "4096")),
            firecrawl_api_key=os.getenv("FIRECRAWL_API_KEY", "").strip(),
            search_timeout=int(os.getenv("SEARCH_TIMEOUT", "20")),
            demo_mode=_env_bool("DEMO_MODE"),
            allowed_origins=_env_list("ALLOWED_ORIGINS", "*"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
