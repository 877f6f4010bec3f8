from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Tranquiloo Companion API"
    ENV: str = "local"
    DEBUG: bool = False
    LOG_FORMAT: str = "console"  # "console" | "json"
    ALLOWED_ORIGINS: Optional[str] = None  # comma separated

    # OpenAI / LLM
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE: float = 0.7
    CRISIS_MODEL: str = "gpt-4o-mini"
    CRISIS_TEMPERATURE: float = 0.3
    LLM_TIMEOUT_S: float = Field(default=20.0, gt=0)

    # Embeddings
    EMBED_MODEL: str = "all-MiniLM-L6-v2"
    EMBED_DEVICE: Optional[str] = None  # cpu|cuda|mps
    EMBED_CACHE_SIZE: int = 512
    EMBED_CACHE_TTL_S: int = 3600

    # Qdrant (research papers)
    QDRANT_URL: Optional[AnyHttpUrl] = None
    QDRANT_API_KEY: Optional[str] = None
    PAPERS_COLLECTION: str = "research_papers"

    # Retrieval
    RESEARCH_MAX_PAPERS: int = 3
    RESEARCH_MIN_SIMILARITY: float = 0.20
    RESEARCH_FETCH_K: int = 10
    RETRIEVAL_TIMEOUT_S: float = Field(default=10.0, gt=0)

    # Supabase (summaries + chat turns)
    SUPABASE_URL: Optional[AnyHttpUrl] = None
    SUPABASE_SERVICE_ROLE: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    SUMMARIES_TABLE: str = "conversation_summaries"
    MESSAGES_TABLE: str = "chat_messages"
    STORE_TIMEOUT_S: float = Field(default=5.0, gt=0)

    # Conversation
    HISTORY_WINDOW: int = 5
    SUMMARY_EVERY: int = 10
    CRISIS_REGION: str = "US"

    class Config:
        env_file = (".env.backend", ".env.local", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Cached Settings instance. Call anywhere.
    """
    return Settings()
