"""
Hybrid re-ranking for retrieved research papers.

quality = 0.40 * similarity
        + 0.20 * keyword overlap
        + 0.20 * log-dampened citation count
        + 0.10 * recency
        + 0.10 * article type
"""

from __future__ import annotations

import math
import re
from typing import Iterable, List, Optional

from tranquiloo.schemas.research import RankedPaper, ResearchPaper

__all__ = [
    "article_type_score",
    "citation_count",
    "citation_score",
    "keyword_score",
    "quality_score",
    "rank_papers",
    "recency_score",
]

W_SIMILARITY = 0.40
W_KEYWORD = 0.20
W_CITATIONS = 0.20
W_RECENCY = 0.10
W_ARTICLE_TYPE = 0.10

CITATION_CEILING = 5000
DEFAULT_YEAR = 2000

_CITATION_RX = re.compile(r"CITATION COUNT:\s*(\d+)", re.I)
_WORD_STRIP = "\"'.,!?;:()[]{}…“”‘’"
_RCT_RX = re.compile(r"\brct\b")


def _query_words(query: str) -> List[str]:
    words = (w.strip(_WORD_STRIP) for w in (query or "").lower().split())
    return [w for w in words if len(w) > 3]


def keyword_score(paper: ResearchPaper, query: str) -> float:
    """Fraction of query words (> 3 chars) found literally in title/content/summary."""
    words = _query_words(query)
    if not words:
        return 0.0
    text = f"{paper.title} {paper.content} {paper.summary or ''}".lower()
    return sum(1 for w in words if w in text) / len(words)


def citation_count(paper: ResearchPaper) -> int:
    m = _CITATION_RX.search(paper.content or "")
    return int(m.group(1)) if m else 0


def citation_score(citations: int) -> float:
    return min(math.log(citations + 1) / math.log(CITATION_CEILING), 1.0)


def recency_score(year: Optional[int]) -> float:
    y = year or DEFAULT_YEAR
    if y >= 2020:
        return 1.0
    if y >= 2015:
        return 0.7
    if y >= 2010:
        return 0.4
    return 0.2


def article_type_score(content: str) -> float:
    c = (content or "").lower()
    if "meta-analysis" in c:
        return 1.0
    if "systematic review" in c:
        return 0.9
    if "randomized controlled trial" in c or _RCT_RX.search(c):
        return 0.8
    if "review" in c:
        return 0.6
    return 0.5


def quality_score(paper: ResearchPaper, similarity: float, kw_score: float) -> float:
    return (
        W_SIMILARITY * similarity
        + W_KEYWORD * kw_score
        + W_CITATIONS * citation_score(citation_count(paper))
        + W_RECENCY * recency_score(paper.year)
        + W_ARTICLE_TYPE * article_type_score(paper.content)
    )


def rank_papers(papers: Iterable[ResearchPaper], query: str, limit: Optional[int] = None) -> List[RankedPaper]:
    """
    Score and sort descending by quality. Python's sort is stable, so equal
    scores keep their input order and the result is reproducible.
    """
    ranked: List[RankedPaper] = []
    for p in papers:
        kw = keyword_score(p, query)
        ranked.append(
            RankedPaper(
                **p.model_dump(),
                keyword_score=kw,
                citation_count=citation_count(p),
                quality_score=quality_score(p, p.similarity, kw),
            )
        )
    ranked.sort(key=lambda r: r.quality_score, reverse=True)
    return ranked[:limit] if limit is not None else ranked
