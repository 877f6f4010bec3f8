# backend/tranquiloo/adapters/embedder.py
from __future__ import annotations

import asyncio
import logging
import threading
from functools import lru_cache
from typing import Any, Dict, List, Optional

import cachetools

from tranquiloo.core.config import get_settings

log = logging.getLogger(__name__)

__all__ = ["embed", "aembed", "embedder_ready", "reset_embedder"]

_cache_lock = threading.Lock()


@lru_cache(maxsize=1)
def _get_model():
    # Lazy import to keep cold start fast
    from sentence_transformers import SentenceTransformer

    s = get_settings()
    model = SentenceTransformer(s.EMBED_MODEL)
    if s.EMBED_DEVICE:
        model = model.to(s.EMBED_DEVICE)
    return model


@lru_cache(maxsize=1)
def _get_cache() -> cachetools.TTLCache:
    s = get_settings()
    return cachetools.TTLCache(maxsize=s.EMBED_CACHE_SIZE, ttl=s.EMBED_CACHE_TTL_S)


def _to_list(v) -> List[float]:
    # numpy arrays and torch tensors both expose tolist()
    if hasattr(v, "tolist"):
        v = v.tolist()
    return [float(x) for x in v]


def embed(text: str, *, normalize: bool = True) -> Optional[List[float]]:
    """
    Encode a single string to a dense vector (list[float]).
    Returns None on empty input or model failure; repeated queries hit a TTL cache.
    """
    if not text:
        return None
    key = (text, normalize)
    cache = _get_cache()
    with _cache_lock:
        hit = cache.get(key)
    if hit is not None:
        return hit
    try:
        model = _get_model()
        kwargs: Dict[str, Any] = {"normalize_embeddings": normalize, "convert_to_numpy": True}
        device = get_settings().EMBED_DEVICE
        if device:
            kwargs["device"] = device
        vec = _to_list(model.encode([text], **kwargs)[0])
    except Exception as e:
        log.warning("embedding failed: %s", e)
        return None
    with _cache_lock:
        cache[key] = vec
    return vec


async def aembed(text: str) -> List[float]:
    """
    Async encode for request handlers. Raises RuntimeError when no vector
    could be produced so callers can skip the query.
    """
    vec = await asyncio.to_thread(embed, text)
    if not vec:
        raise RuntimeError("Embedding failed or returned empty vector")
    return vec


def reset_embedder() -> None:
    """Drop the cached model and vectors (tests or when switching EMBED_MODEL)."""
    _get_model.cache_clear()
    _get_cache.cache_clear()


def embedder_ready() -> bool:
    """Lightweight health check; returns False on failure (never raises)."""
    try:
        return bool(embed("ping"))
    except Exception:
        return False
