from __future__ import annotations

from fastapi import APIRouter

from tranquiloo.adapters.embedder import embedder_ready
from tranquiloo.adapters.qdrant_client import qdrant_ping
from tranquiloo.adapters.supabase_client import supa_ping
from tranquiloo.schemas.common import HealthResponse

router = APIRouter()


@router.get("/healthz", response_model=HealthResponse)
def healthz():
    ok_db = supa_ping()
    ok_vec = qdrant_ping()
    return HealthResponse(ok=ok_db and ok_vec, supabase=ok_db, qdrant=ok_vec, embedder=embedder_ready())
