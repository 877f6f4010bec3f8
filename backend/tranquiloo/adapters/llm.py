# backend/tranquiloo/adapters/llm.py
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Callable, Optional

from langchain_core.runnables import Runnable
from langchain_openai import ChatOpenAI

from tranquiloo.core.config import get_settings

log = logging.getLogger(__name__)

__all__ = ["build_chat_model", "get_chat_model", "get_crisis_model", "optional_model", "reset_models"]


def build_chat_model(
    *,
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    streaming: bool = False,
) -> ChatOpenAI:
    s = get_settings()
    return ChatOpenAI(
        model=model or s.OPENAI_MODEL,
        temperature=s.OPENAI_TEMPERATURE if temperature is None else temperature,
        api_key=s.OPENAI_API_KEY,
        timeout=s.LLM_TIMEOUT_S,
        max_retries=1,
        streaming=streaming,
    )


@lru_cache(maxsize=1)
def get_chat_model() -> ChatOpenAI:
    """Conversation + summary model (streams when asked via .astream)."""
    return build_chat_model(streaming=True)


@lru_cache(maxsize=1)
def get_crisis_model() -> Runnable:
    """
    Low-temperature model constrained to a single JSON object per reply.
    """
    s = get_settings()
    llm = build_chat_model(model=s.CRISIS_MODEL, temperature=s.CRISIS_TEMPERATURE)
    return llm.bind(response_format={"type": "json_object"})


def reset_models() -> None:
    """Drop cached clients (tests, key rotation)."""
    get_chat_model.cache_clear()
    get_crisis_model.cache_clear()


def optional_model(factory: Callable[[], Runnable], purpose: str) -> Optional[Runnable]:
    """
    Build a model or return None when it cannot be constructed (usually a
    missing OPENAI_API_KEY). Callers treat None as "model unavailable".
    """
    if not get_settings().OPENAI_API_KEY:
        log.warning("OPENAI_API_KEY not set; %s model disabled", purpose)
        return None
    try:
        return factory()
    except Exception as e:
        log.error("could not build %s model: %s: %s", purpose, type(e).__name__, e)
        return None
