"""Application configuration settings."""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "FAQ Agent"
    app_version: str = "0.1.0"
    debug: bool = False

    # Knowledge base
    knowledge_base_path: Optional[str] = None  # None = bundled faq.json
    knowledge_base_locale: str = "en"

    # Retrieval
    context_builder: str = "keyword"  # "keyword" | "full"
    retrieval_top_k: int = Field(default=5, ge=1)
    retrieval_stop_words: Optional[str] = None  # comma-separated; None = built-in list

    # OpenAI
    openai_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("openai_api_key", "open_api_key"),
    )
    openai_model: str = "gpt-4o-mini"

    # Observability
    metrics_backend: str = "inmemory"  # "inmemory" | "prometheus"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Warns if no OpenAI API key is configured, since answers cannot be
    generated without one.
    """
    settings = Settings()

    if not settings.openai_api_key:
        logger.warning(
            "openai_api_key is not set. "
            "Set OPENAI_API_KEY environment variable to enable answer generation."
        )

    return settings
