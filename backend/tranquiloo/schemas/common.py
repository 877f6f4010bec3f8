from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    ok: bool = True
    qdrant: Optional[bool] = None
    supabase: Optional[bool] = None
    embedder: Optional[bool] = None


class ErrorResponse(BaseModel):
    error: str
    message: Any
    request_id: str
    details: Optional[Any] = None
    meta: Optional[Dict[str, Any]] = None
