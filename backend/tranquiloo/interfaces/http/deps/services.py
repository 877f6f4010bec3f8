# backend/tranquiloo/interfaces/http/deps/services.py
"""
Service providers for routers. Tests swap the whole graph out with
`app.dependency_overrides[get_orchestrator] = lambda: fake`.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from tranquiloo.domain.chat.service import ResponseOrchestrator
from tranquiloo.domain.memory.service import ConversationMemory
from tranquiloo.domain.research.service import ResearchService
from tranquiloo.domain.safety.detector import CrisisDetector


@lru_cache(maxsize=1)
def get_orchestrator() -> ResponseOrchestrator:
    return ResponseOrchestrator.default()


def get_detector(orch: ResponseOrchestrator = Depends(get_orchestrator)) -> CrisisDetector:
    return orch.detector


def get_research(orch: ResponseOrchestrator = Depends(get_orchestrator)) -> ResearchService:
    return orch.research


def get_memory(orch: ResponseOrchestrator = Depends(get_orchestrator)) -> ConversationMemory:
    return orch.memory


__all__ = ["get_orchestrator", "get_detector", "get_research", "get_memory"]
