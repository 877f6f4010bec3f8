# backend/tranquiloo/adapters/supabase_client.py
from __future__ import annotations

import threading
from typing import Optional

from supabase import Client, create_client

from tranquiloo.core.config import get_settings

__all__ = ["supa", "supa_reset", "supa_ping"]

_client_lock = threading.Lock()
_client: Optional[Client] = None


def supa() -> Client:
    """
    Thread-safe singleton Supabase client using the service-role key
    (server-side summary and chat-turn writes).
    """
    global _client
    if _client is not None:
        return _client
    with _client_lock:
        if _client is None:
            s = get_settings()
            key = s.SUPABASE_SERVICE_ROLE or s.SUPABASE_ANON_KEY
            if not s.SUPABASE_URL or not key:
                raise RuntimeError("Missing required Supabase env vars (SUPABASE_URL/SERVICE_ROLE)")
            _client = create_client(str(s.SUPABASE_URL).rstrip("/"), key)
    return _client


def supa_reset() -> None:
    """Reset the cached client (tests, key rotation)."""
    global _client
    with _client_lock:
        _client = None


def supa_ping() -> bool:
    """
    Lightweight health check: a zero-row select on the summaries table.
    """
    try:
        table = get_settings().SUMMARIES_TABLE
        supa().table(table).select("id").limit(1).execute()
        return True
    except Exception:
        return False
