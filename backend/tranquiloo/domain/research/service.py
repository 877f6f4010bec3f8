# -*- coding: utf-8 -*-
"""
Research retrieval: query expansion -> embedding search -> hybrid re-rank ->
prompt-ready context block.

Retrieval is best-effort. A failing expanded query is skipped; if everything
fails (or the whole pass times out) the caller just gets "" and answers
without grounding.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Awaitable, Callable, Dict, List, Optional, Protocol

from tranquiloo.schemas.research import RankedPaper, ResearchPaper
from tranquiloo.utils.text import truncate

from .expansion import expand_query
from .ranker import rank_papers

log = logging.getLogger(__name__)

__all__ = ["PaperStore", "ResearchService", "extract_research_titles", "format_context"]

Embedder = Callable[[str], Awaitable[List[float]]]

_TITLE_RX = re.compile(r"^Title: (.+)$", re.M)

CONTEXT_HEADER = "The following research papers are relevant to the user's question:"
CONTEXT_FOOTER = (
    'Please reference these papers in your response when appropriate, using citations like '
    '"(Author, Year)" or "According to research on [topic]...".'
)


class PaperStore(Protocol):
    async def search(self, vector: List[float], *, min_similarity: float, limit: int) -> List[ResearchPaper]:
        ...


def _format_paper(index: int, paper: RankedPaper) -> str:
    citation = f"{paper.authors} ({paper.year})" if paper.authors and paper.year else paper.title
    excerpt = paper.summary or truncate(paper.content, 500, ellipsis="")
    lines = [
        f"[Research Paper {index}]",
        f"Title: {paper.title}",
        f"Citation: {citation}",
        f"Evidence Quality: {paper.citation_count} citations | {paper.topic or 'General'}",
        f"Relevance Score: {paper.quality_score * 100:.0f}%",
        "",
        f"{excerpt}...",
    ]
    if paper.source_url:
        lines += ["", f"Source: {paper.source_url}"]
    return "\n".join(lines)


def format_context(papers: List[RankedPaper]) -> str:
    if not papers:
        return ""
    body = "\n\n---\n\n".join(_format_paper(i, p) for i, p in enumerate(papers, start=1))
    return f"{CONTEXT_HEADER}\n\n{body}\n\n{CONTEXT_FOOTER}"


def extract_research_titles(context: str) -> List[str]:
    """Titles embedded in a context block (provenance, not proof of citation)."""
    if not context:
        return []
    return [m.strip() for m in _TITLE_RX.findall(context)]


class ResearchService:
    def __init__(
        self,
        store: PaperStore,
        embedder: Embedder,
        *,
        min_similarity: float = 0.20,
        fetch_k: int = 10,
        timeout_s: float = 10.0,
    ):
        self.store = store
        self.embedder = embedder
        self.min_similarity = min_similarity
        self.fetch_k = fetch_k
        self.timeout_s = timeout_s

    @classmethod
    def default(cls) -> "ResearchService":
        from tranquiloo.adapters.embedder import aembed
        from tranquiloo.core.config import get_settings

        from .store import QdrantPaperStore

        s = get_settings()
        return cls(
            QdrantPaperStore(),
            aembed,
            min_similarity=s.RESEARCH_MIN_SIMILARITY,
            fetch_k=s.RESEARCH_FETCH_K,
            timeout_s=s.RETRIEVAL_TIMEOUT_S,
        )

    async def _search_one(self, query: str) -> List[ResearchPaper]:
        try:
            vec = await self.embedder(query)
            return await self.store.search(vec, min_similarity=self.min_similarity, limit=self.fetch_k)
        except Exception as e:
            log.warning("research query failed (%r): %s", truncate(query, 60), e)
            return []

    async def candidates(self, queries: List[str]) -> List[ResearchPaper]:
        """Union over all queries keyed by paper id, keeping the best similarity."""
        batches = await asyncio.gather(*(self._search_one(q) for q in queries))
        merged: Dict[str, ResearchPaper] = {}
        for batch in batches:
            for paper in batch:
                seen = merged.get(paper.id)
                if seen is None:
                    merged[paper.id] = paper
                elif paper.similarity > seen.similarity:
                    merged[paper.id] = seen.model_copy(update={"similarity": paper.similarity})
        return list(merged.values())

    async def search(
        self,
        user_message: str,
        *,
        max_papers: int = 5,
        topic: Optional[str] = None,
    ) -> List[RankedPaper]:
        queries = expand_query(user_message)
        log.info("research search: %d queries for %r", len(queries), truncate(user_message, 50))

        papers = await self.candidates(queries)
        if topic and papers:
            needle = topic.lower()
            papers = [p for p in papers if p.topic and needle in p.topic.lower()]

        ranked = rank_papers(papers, user_message, limit=max_papers)
        for i, p in enumerate(ranked, start=1):
            log.debug("  %d. [%.1f%%] %s", i, p.quality_score * 100, truncate(p.title, 50))
        return ranked

    async def get_context(self, user_message: str, max_papers: int = 3, topic: Optional[str] = None) -> str:
        try:
            papers = await asyncio.wait_for(
                self.search(user_message, max_papers=max_papers, topic=topic),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError:
            log.warning("research retrieval timed out after %.1fs", self.timeout_s)
            return ""
        except Exception as e:
            log.error("research retrieval failed: %s", e)
            return ""
        if not papers:
            log.info("no relevant research papers found")
            return ""
        return format_context(papers)
