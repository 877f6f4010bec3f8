from __future__ import annotations

import threading
from typing import Optional

from qdrant_client import QdrantClient

from tranquiloo.core.config import get_settings

__all__ = ["get_qdrant", "reset_qdrant", "qdrant_ping"]

_client: Optional[QdrantClient] = None
_lock = threading.Lock()


def get_qdrant() -> QdrantClient:
    """
    Lazy singleton Qdrant client for the research paper store.
    """
    global _client
    if _client is not None:
        return _client
    with _lock:
        if _client is None:
            s = get_settings()
            if not s.QDRANT_URL:
                raise RuntimeError("QDRANT_URL is not set")
            _client = QdrantClient(
                url=str(s.QDRANT_URL),
                api_key=s.QDRANT_API_KEY or None,
                timeout=int(s.RETRIEVAL_TIMEOUT_S),
            )
    return _client


def reset_qdrant() -> None:
    """Reset the cached client (handy for tests or key rotation)."""
    global _client
    with _lock:
        _client = None


def qdrant_ping() -> bool:
    try:
        get_qdrant().get_collections()
        return True
    except Exception:
        return False
