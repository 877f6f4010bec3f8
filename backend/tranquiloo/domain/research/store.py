# backend/tranquiloo/domain/research/store.py
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from qdrant_client import QdrantClient

from tranquiloo.schemas.research import ResearchPaper

__all__ = ["QdrantPaperStore", "paper_from_payload"]


def paper_from_payload(point_id: Any, payload: Dict[str, Any], score: Optional[float]) -> ResearchPaper:
    year = payload.get("year")
    try:
        year = int(year) if year not in (None, "") else None
    except (TypeError, ValueError):
        year = None
    return ResearchPaper(
        id=str(payload.get("paper_id") or point_id),
        title=str(payload.get("title") or "Untitled"),
        authors=payload.get("authors") or None,
        year=year,
        topic=payload.get("topic") or None,
        content=str(payload.get("content") or payload.get("text") or ""),
        summary=payload.get("summary") or None,
        source_url=payload.get("source_url") or payload.get("url") or None,
        similarity=float(score or 0.0),
    )


class QdrantPaperStore:
    """
    Read-only view over the research paper collection. The core never
    writes papers; ingestion lives elsewhere.
    """

    def __init__(self, client: Optional[QdrantClient] = None, collection: Optional[str] = None):
        if collection is None:
            from tranquiloo.core.config import get_settings

            collection = get_settings().PAPERS_COLLECTION
        self._client = client
        self.collection = collection

    @property
    def client(self) -> QdrantClient:
        # resolved on first search; a missing QDRANT_URL fails that search only
        if self._client is None:
            from tranquiloo.adapters.qdrant_client import get_qdrant

            self._client = get_qdrant()
        return self._client

    def search_sync(self, vector: List[float], *, min_similarity: float, limit: int) -> List[ResearchPaper]:
        res = self.client.query_points(
            collection_name=self.collection,
            query=vector,
            limit=limit,
            score_threshold=min_similarity,
            with_payload=True,
        )
        return [paper_from_payload(p.id, p.payload or {}, p.score) for p in (res.points or [])]

    async def search(self, vector: List[float], *, min_similarity: float, limit: int) -> List[ResearchPaper]:
        return await asyncio.to_thread(self.search_sync, vector, min_similarity=min_similarity, limit=limit)
