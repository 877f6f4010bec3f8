"""
Shared fakes for the companion backend tests. Nothing here talks to
OpenAI, Qdrant or Supabase.
"""

from __future__ import annotations

import asyncio
import os
import sys
from typing import Dict, List, Optional, Sequence

THIS_DIR = os.path.dirname(__file__)
PKG_ROOT = os.path.abspath(os.path.join(THIS_DIR, ".."))
if PKG_ROOT not in sys.path:
    sys.path.insert(0, PKG_ROOT)

import pytest
from langchain_core.messages import AIMessage, AIMessageChunk

from tranquiloo.domain.chat.service import ResponseOrchestrator
from tranquiloo.domain.memory.service import ConversationMemory
from tranquiloo.domain.research.service import ResearchService
from tranquiloo.domain.safety.detector import CrisisDetector
from tranquiloo.schemas.memory import ConversationSummary
from tranquiloo.schemas.research import ResearchPaper


class ScriptedLLM:
    """
    Minimal chat-model stand-in. `replies` are returned in order by ainvoke;
    `chunks` are yielded by astream. Every call's messages are recorded.
    """

    def __init__(
        self,
        replies: Sequence[str] = ("ok",),
        *,
        chunks: Optional[Sequence[str]] = None,
        error: Optional[Exception] = None,
        stream_error_after: Optional[int] = None,
        hang_after: Optional[int] = None,
        delay_s: float = 0.0,
    ):
        self.replies = list(replies)
        self.chunks = list(chunks) if chunks is not None else None
        self.error = error
        self.stream_error_after = stream_error_after
        self.hang_after = hang_after
        self.delay_s = delay_s
        self.calls: List[list] = []

    async def ainvoke(self, messages, *args, **kwargs):
        self.calls.append(list(messages))
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.error is not None:
            raise self.error
        reply = self.replies[min(len(self.calls) - 1, len(self.replies) - 1)]
        return AIMessage(content=reply)

    async def astream(self, messages, *args, **kwargs):
        self.calls.append(list(messages))
        if self.error is not None and self.stream_error_after is None:
            raise self.error
        chunks = self.chunks if self.chunks is not None else [self.replies[0]]
        for i, text in enumerate(chunks):
            if self.hang_after is not None and i >= self.hang_after:
                await asyncio.sleep(3600)
            if self.stream_error_after is not None and i >= self.stream_error_after:
                raise self.error or RuntimeError("stream broke")
            yield AIMessageChunk(content=text)


class FakePaperStore:
    """Returns canned papers per query vector (vector[0] is the query index)."""

    def __init__(self, papers_by_query: Optional[Dict[int, List[ResearchPaper]]] = None, *, fail_on: Sequence[int] = ()):
        self.papers_by_query = papers_by_query or {}
        self.fail_on = set(fail_on)
        self.calls: List[dict] = []

    async def search(self, vector, *, min_similarity: float, limit: int):
        idx = int(vector[0])
        self.calls.append({"idx": idx, "min_similarity": min_similarity, "limit": limit})
        if idx in self.fail_on:
            raise ConnectionError("qdrant unavailable")
        return [p for p in self.papers_by_query.get(idx, []) if p.similarity >= min_similarity][:limit]


class IndexEmbedder:
    """Maps each distinct query to [index] in the order first seen."""

    def __init__(self):
        self.seen: List[str] = []

    async def __call__(self, text: str) -> List[float]:
        if text not in self.seen:
            self.seen.append(text)
        return [float(self.seen.index(text))]


class MemorySummaryStore:
    """In-memory summary table. `hang_reads`/`hang_writes` never return."""

    def __init__(
        self,
        *,
        fail_reads: bool = False,
        fail_writes: bool = False,
        hang_reads: bool = False,
        hang_writes: bool = False,
    ):
        self.rows: List[ConversationSummary] = []
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.hang_reads = hang_reads
        self.hang_writes = hang_writes

    async def insert(self, summary: ConversationSummary) -> None:
        if self.hang_writes:
            await asyncio.sleep(3600)
        if self.fail_writes:
            raise ConnectionError("supabase down")
        self.rows.append(summary)

    async def latest(self, conversation_id: str) -> Optional[ConversationSummary]:
        if self.hang_reads:
            await asyncio.sleep(3600)
        if self.fail_reads:
            raise ConnectionError("supabase down")
        rows = [r for r in self.rows if r.conversation_id == conversation_id]
        return rows[-1] if rows else None


class MemoryTurnStore:
    def __init__(self, *, fail: bool = False, hang: bool = False):
        self.turns: List[dict] = []
        self.fail = fail
        self.hang = hang

    async def append(self, conversation_id, user_id, user_message, reply, *, incomplete=False):
        if self.hang:
            await asyncio.sleep(3600)
        if self.fail:
            raise ConnectionError("supabase down")
        self.turns.append({
            "conversation_id": conversation_id,
            "user_id": user_id,
            "user_message": user_message,
            "reply": reply,
            "incomplete": incomplete,
        })


def paper(pid: str, title: str, similarity: float, **kw) -> ResearchPaper:
    return ResearchPaper(id=pid, title=title, similarity=similarity, **kw)


def assessment_json(level: str, reasoning: str = "test", indicators: Sequence[str] = ()) -> str:
    import json

    return json.dumps({
        "riskLevel": level,
        "requiresScreening": level in ("moderate", "high", "imminent"),
        "reasoning": reasoning,
        "detectedIndicators": list(indicators),
    })


def build_orchestrator(
    *,
    crisis_level: str = "none",
    chat_llm: Optional[ScriptedLLM] = None,
    papers: Optional[Dict[int, List[ResearchPaper]]] = None,
    summaries: Optional[MemorySummaryStore] = None,
    turns: Optional[MemoryTurnStore] = None,
    **kwargs,
):
    """Wire a ResponseOrchestrator from fakes; returns (orchestrator, parts)."""
    crisis_llm = ScriptedLLM([assessment_json(crisis_level)])
    store = FakePaperStore(papers or {})
    embedder = IndexEmbedder()
    summaries = summaries if summaries is not None else MemorySummaryStore()
    chat_llm = chat_llm or ScriptedLLM(["That sounds hard. Research suggests breathing exercises can help."])
    turns = turns if turns is not None else MemoryTurnStore()
    orch = ResponseOrchestrator(
        CrisisDetector(crisis_llm, timeout_s=2.0),
        ResearchService(store, embedder, timeout_s=2.0),
        ConversationMemory(summaries, chat_llm),
        chat_llm,
        turns=turns,
        timeout_s=2.0,
        **kwargs,
    )
    parts = {
        "crisis_llm": crisis_llm,
        "store": store,
        "embedder": embedder,
        "summaries": summaries,
        "chat_llm": chat_llm,
        "turns": turns,
    }
    return orch, parts


@pytest.fixture
def orchestrator_factory():
    return build_orchestrator
