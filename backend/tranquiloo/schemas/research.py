from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class ResearchPaper(BaseModel):
    id: str
    title: str
    authors: Optional[str] = None
    year: Optional[int] = None
    topic: Optional[str] = None
    content: str = ""
    summary: Optional[str] = None
    source_url: Optional[str] = None
    similarity: float = 0.0


class RankedPaper(ResearchPaper):
    # only meaningful inside one ranking pass
    keyword_score: float = 0.0
    citation_count: int = 0
    quality_score: float = 0.0


class ResearchSearchOut(BaseModel):
    queries: List[str] = []
    papers: List[RankedPaper] = []


class ResearchContextOut(BaseModel):
    context: str = ""
    titles: List[str] = Field(default_factory=list)
