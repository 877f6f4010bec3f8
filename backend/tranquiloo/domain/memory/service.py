# -*- coding: utf-8 -*-
"""
Conversation Memory: rolling summaries that keep prompts bounded.

Public API:
- ConversationMemory.get_summary(conversation_id) -> str | None
- ConversationMemory.maybe_summarize(conversation_id, user_id, messages) -> ConversationSummary | None
- extract_key_topics(text) -> list[str]
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Protocol, Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage

from tranquiloo.schemas.memory import ConversationMessage, ConversationSummary, Role
from tranquiloo.utils.time import utc_now

log = logging.getLogger(__name__)

__all__ = ["ConversationMemory", "SummaryStore", "extract_key_topics", "render_summary", "SUMMARY_WINDOW"]

SUMMARY_WINDOW = 10

TOPIC_KEYWORDS: Dict[str, List[str]] = {
    "anxiety": ["anxiety", "anxious", "worry", "panic", "nervous", "fear"],
    "depression": ["depression", "depressed", "sad", "hopeless", "unmotivated"],
    "stress": ["stress", "stressed", "overwhelmed", "pressure", "burnout"],
    "sleep": ["sleep", "insomnia", "tired", "exhausted", "rest"],
    "relationships": ["relationship", "partner", "family", "friend", "conflict"],
    "work": ["work", "job", "career", "colleague", "boss"],
    "coping": ["coping", "manage", "deal with", "handle", "strategy"],
    "mindfulness": ["mindfulness", "meditation", "breathing", "grounding"],
}


class SummaryStore(Protocol):
    async def insert(self, summary: ConversationSummary) -> None:
        ...

    async def latest(self, conversation_id: str) -> Optional[ConversationSummary]:
        ...


def extract_key_topics(text: str) -> List[str]:
    t = (text or "").lower()
    topics = [topic for topic, kws in TOPIC_KEYWORDS.items() if any(kw in t for kw in kws)]
    return topics or ["general"]


def _transcript(messages: Sequence[ConversationMessage]) -> str:
    return "\n".join(
        f"{'User' if m.role == Role.USER else 'AI'}: {m.content}" for m in messages
    )


def render_summary(summary: ConversationSummary) -> str:
    topics = ", ".join(summary.key_topics) if summary.key_topics else "general wellness"
    return f"Previous conversation context: {summary.summary}\nKey topics: {topics}"


class ConversationMemory:
    """
    Thin orchestration over a SummaryStore + chat model. Every store and
    model call is bounded; failures and timeouts are logged and never break
    the conversation. `llm=None` disables summarization.
    """

    def __init__(
        self,
        store: SummaryStore,
        llm: Optional[BaseChatModel],
        *,
        window: int = SUMMARY_WINDOW,
        timeout_s: float = 5.0,
        llm_timeout_s: float = 20.0,
    ):
        self.store = store
        self.llm = llm
        self.window = window
        self.timeout_s = timeout_s
        self.llm_timeout_s = llm_timeout_s

    @classmethod
    def default(cls) -> "ConversationMemory":
        from tranquiloo.adapters.llm import get_chat_model, optional_model
        from tranquiloo.core.config import get_settings

        from .repo import SummaryRepo

        s = get_settings()
        return cls(
            SummaryRepo(),
            optional_model(get_chat_model, "summary"),
            window=s.SUMMARY_EVERY,
            timeout_s=s.STORE_TIMEOUT_S,
            llm_timeout_s=s.LLM_TIMEOUT_S,
        )

    async def get_summary(self, conversation_id: str) -> Optional[str]:
        try:
            latest = await asyncio.wait_for(self.store.latest(conversation_id), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            log.warning("summary read timed out after %.1fs for %s", self.timeout_s, conversation_id)
            return None
        except Exception as e:
            log.warning("summary read failed for %s: %s", conversation_id, e)
            return None
        if latest is None or not latest.summary.strip():
            return None
        return render_summary(latest)

    async def maybe_summarize(
        self,
        conversation_id: str,
        user_id: str,
        messages: Sequence[ConversationMessage],
    ) -> Optional[ConversationSummary]:
        if self.llm is None or len(messages) < self.window:
            return None

        text = _transcript(messages[-self.window:])
        prompt = (
            "Summarize the following conversation in 3-4 sentences, focusing on main themes "
            f"and user's emotional state:\n\n{text}\n\nSummary:"
        )
        try:
            out = await asyncio.wait_for(
                self.llm.ainvoke([HumanMessage(content=prompt)]), timeout=self.llm_timeout_s
            )
            summary_text = str(out.content).strip()
        except asyncio.TimeoutError:
            log.warning("summary generation timed out for %s", conversation_id)
            return None
        except Exception as e:
            log.warning("summary generation failed for %s: %s", conversation_id, e)
            return None
        if not summary_text:
            return None

        summary = ConversationSummary(
            conversation_id=conversation_id,
            user_id=user_id,
            summary=summary_text,
            key_topics=extract_key_topics(text),
            message_count=len(messages),
            created_at=utc_now(),
        )
        try:
            await asyncio.wait_for(self.store.insert(summary), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            log.error("summary write timed out for %s", conversation_id)
            return None
        except Exception as e:
            log.error("summary write failed for %s: %s", conversation_id, e)
            return None
        log.info("stored summary for %s (%d messages, topics=%s)", conversation_id, len(messages), summary.key_topics)
        return summary
