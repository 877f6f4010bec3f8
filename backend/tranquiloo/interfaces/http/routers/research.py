from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from tranquiloo.domain.research.expansion import expand_query
from tranquiloo.domain.research.service import ResearchService, extract_research_titles
from tranquiloo.interfaces.http.deps.services import get_research
from tranquiloo.schemas.research import ResearchContextOut, ResearchSearchOut

router = APIRouter()


@router.get("/context", response_model=ResearchContextOut)
async def research_context(
    q: str = Query(..., min_length=1),
    max_papers: int = Query(3, ge=1, le=10),
    topic: Optional[str] = None,
    research: ResearchService = Depends(get_research),
):
    ctx = await research.get_context(q, max_papers, topic=topic)
    return ResearchContextOut(context=ctx, titles=extract_research_titles(ctx))


@router.get("/search", response_model=ResearchSearchOut)
async def research_search(
    q: str = Query(..., min_length=1),
    max_papers: int = Query(5, ge=1, le=20),
    topic: Optional[str] = None,
    research: ResearchService = Depends(get_research),
):
    """
    Ranked papers with their scores. Example:
      GET /research/search?q=can%27t%20sleep%20and%20worried&max_papers=5
    """
    papers = await research.search(q, max_papers=max_papers, topic=topic)
    return ResearchSearchOut(queries=expand_query(q), papers=papers)
