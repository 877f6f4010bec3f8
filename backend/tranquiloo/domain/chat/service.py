# backend/tranquiloo/domain/chat/service.py
"""
Response orchestrator (the RAG loop).

crisis check -> short-circuit with a crisis reply
             -> or research + memory -> bounded prompt -> generation

The crisis check always finishes before retrieval or generation starts.
Retrieval and memory degrade to "nothing found"; generation failures are
raised as GenerationError so nobody is handed a made-up therapeutic reply.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Protocol, Sequence, Tuple, Union

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from tranquiloo.domain.memory.service import ConversationMemory
from tranquiloo.domain.research.service import ResearchService, extract_research_titles
from tranquiloo.domain.safety.cssrs import next_question_prompt
from tranquiloo.domain.safety.detector import CrisisDetector
from tranquiloo.domain.safety.responses import generate_crisis_response
from tranquiloo.schemas.chat import ChatResult, CrisisData
from tranquiloo.schemas.memory import ConversationMessage, Role
from tranquiloo.schemas.safety import CrisisAssessment
from tranquiloo.utils.text import truncate

log = logging.getLogger(__name__)

__all__ = ["GenerationError", "ResponseOrchestrator", "SYSTEM_PROMPT"]

ChunkCallback = Callable[[str], Union[None, Awaitable[None]]]

SYSTEM_PROMPT = """You are a compassionate wellness companion for Tranquiloo, NOT a therapist or medical professional.

CRITICAL SAFETY RULES:
1. If user mentions suicide, self-harm, or crisis, IMMEDIATELY respond: "I'm concerned about your safety. Please call 988 (Suicide & Crisis Lifeline) or text HOME to 741741 right now. If this is an emergency, call 911."
2. NEVER diagnose mental health conditions (no "you have depression/anxiety/PTSD")
3. NEVER prescribe treatments, medications, or therapy techniques
4. ALWAYS recommend professional help for serious concerns
5. Frame suggestions as "research suggests" or "studies show", not "you should"
6. You are NOT HIPAA compliant - remind users not to share sensitive medical info

YOUR ROLE:
- Supportive listener and wellness companion
- Share evidence-based coping strategies from research papers
- Help users reflect on their feelings and experiences
- Encourage healthy habits (sleep, exercise, social connection)
- Validate emotions while maintaining professional boundaries

WHEN TO CITE RESEARCH:
- When sharing coping strategies, cite the research paper
- Use format: "According to [Author, Year]..." or "Research from [Institution] suggests..."
- If no research is provided, use general wellness knowledge

TONE:
- Warm, empathetic, but not overly emotional
- Professional but approachable
- Honest about limitations ("I'm an AI, not a therapist")
- Encouraging and hopeful

Remember: You're a wellness tool, not therapy. Always prioritize user safety."""


class GenerationError(RuntimeError):
    """The generative model failed to produce a reply."""


class TurnStore(Protocol):
    async def append(
        self,
        conversation_id: str,
        user_id: str,
        user_message: str,
        reply: str,
        *,
        incomplete: bool = False,
    ) -> None:
        ...


async def _emit(on_chunk: ChunkCallback, text: str) -> None:
    res = on_chunk(text)
    if inspect.isawaitable(res):
        await res


def _chunk_text(chunk) -> str:
    content = getattr(chunk, "content", chunk)
    return content if isinstance(content, str) else str(content or "")


class ResponseOrchestrator:
    def __init__(
        self,
        detector: CrisisDetector,
        research: ResearchService,
        memory: ConversationMemory,
        llm: Optional[BaseChatModel],
        *,
        turns: Optional[TurnStore] = None,
        max_papers: int = 3,
        history_window: int = 5,
        summary_every: int = 10,
        timeout_s: float = 20.0,
        store_timeout_s: float = 5.0,
        region: str = "US",
    ):
        self.detector = detector
        self.research = research
        self.memory = memory
        self.llm = llm
        self.turns = turns
        self.max_papers = max_papers
        self.history_window = history_window
        self.summary_every = summary_every
        self.timeout_s = timeout_s
        self.store_timeout_s = store_timeout_s
        self.region = region

    @classmethod
    def default(cls) -> "ResponseOrchestrator":
        from tranquiloo.adapters.llm import get_chat_model, optional_model
        from tranquiloo.core.config import get_settings

        from .repo import ChatTurnRepo

        s = get_settings()
        return cls(
            CrisisDetector.default(),
            ResearchService.default(),
            ConversationMemory.default(),
            optional_model(get_chat_model, "chat"),
            turns=ChatTurnRepo(),
            max_papers=s.RESEARCH_MAX_PAPERS,
            history_window=s.HISTORY_WINDOW,
            summary_every=s.SUMMARY_EVERY,
            timeout_s=s.LLM_TIMEOUT_S,
            store_timeout_s=s.STORE_TIMEOUT_S,
            region=s.CRISIS_REGION,
        )

    # ---- crisis path ---------------------------------------------------------
    def _crisis_result(self, assessment: CrisisAssessment) -> ChatResult:
        log.warning(
            "crisis screening required: risk=%s indicators=%s",
            assessment.risk_level.value,
            assessment.detected_indicators,
        )
        return ChatResult(
            response=generate_crisis_response(assessment, region=self.region),
            research_used=[],
            should_alert=True,
            crisis_data=CrisisData(
                risk_level=assessment.risk_level,
                requires_screening=True,
                next_question=next_question_prompt([]),
                detected_indicators=list(assessment.detected_indicators),
            ),
        )

    # ---- normal path ---------------------------------------------------------
    def build_messages(
        self,
        user_message: str,
        history: Sequence[ConversationMessage],
        *,
        summary: Optional[str] = None,
        research_context: str = "",
    ) -> List[BaseMessage]:
        messages: List[BaseMessage] = [SystemMessage(content=SYSTEM_PROMPT)]
        if summary:
            messages.append(SystemMessage(content=summary))
        recent = list(history)[-self.history_window:] if self.history_window > 0 else []
        for m in recent:
            if m.role == Role.USER:
                messages.append(HumanMessage(content=m.content))
            else:
                messages.append(AIMessage(content=m.content))
        if research_context:
            messages.append(SystemMessage(content=research_context))
        messages.append(HumanMessage(content=user_message))
        return messages

    def _require_llm(self) -> BaseChatModel:
        if self.llm is None:
            raise GenerationError("chat model is not configured")
        return self.llm

    async def _prepare(
        self,
        user_message: str,
        conversation_id: str,
        history: Sequence[ConversationMessage],
    ) -> Tuple[str, List[BaseMessage]]:
        research_context, summary = await asyncio.gather(
            self.research.get_context(user_message, self.max_papers),
            self.memory.get_summary(conversation_id),
        )
        messages = self.build_messages(
            user_message, history, summary=summary, research_context=research_context
        )
        return research_context, messages

    async def _after_reply(
        self,
        conversation_id: str,
        user_id: str,
        user_message: str,
        reply: str,
        history: Sequence[ConversationMessage],
    ) -> None:
        total = len(history) + 2
        if self.summary_every > 0 and total % self.summary_every == 0:
            await self.memory.maybe_summarize(
                conversation_id,
                user_id,
                [
                    *history,
                    ConversationMessage(role=Role.USER, content=user_message),
                    ConversationMessage(role=Role.ASSISTANT, content=reply),
                ],
            )

    async def respond(
        self,
        user_message: str,
        conversation_id: str,
        user_id: str,
        history: Sequence[ConversationMessage] = (),
    ) -> ChatResult:
        assessment = await self.detector.detect(user_message)
        if assessment.requires_screening:
            return self._crisis_result(assessment)

        llm = self._require_llm()
        research_context, messages = await self._prepare(user_message, conversation_id, history)

        try:
            out = await asyncio.wait_for(llm.ainvoke(messages), timeout=self.timeout_s)
        except asyncio.TimeoutError as e:
            raise GenerationError(f"generation timed out after {self.timeout_s:.0f}s") from e
        except Exception as e:
            log.error("generation failed: %s: %s", type(e).__name__, e)
            raise GenerationError("generation failed") from e

        reply = _chunk_text(out).strip()
        if not reply:
            raise GenerationError("model returned an empty reply")

        await self._after_reply(conversation_id, user_id, user_message, reply, history)
        return ChatResult(
            response=reply,
            research_used=extract_research_titles(research_context),
            should_alert=False,
        )

    async def stream(
        self,
        user_message: str,
        conversation_id: str,
        user_id: str,
        history: Sequence[ConversationMessage],
        on_chunk: ChunkCallback,
    ) -> ChatResult:
        """
        Same as respond() but pushes text through `on_chunk` as it arrives.
        A timeout or error after some text was produced returns the partial
        reply with incomplete=True; cancellation persists the partial reply
        before re-raising.
        """
        assessment = await self.detector.detect(user_message)
        if assessment.requires_screening:
            result = self._crisis_result(assessment)
            await _emit(on_chunk, result.response)
            return result

        llm = self._require_llm()
        research_context, messages = await self._prepare(user_message, conversation_id, history)
        research_used = extract_research_titles(research_context)

        parts: List[str] = []
        incomplete = False
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout_s
        agen = llm.astream(messages)
        try:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise asyncio.TimeoutError()
                try:
                    chunk = await asyncio.wait_for(agen.__anext__(), timeout=remaining)
                except StopAsyncIteration:
                    break
                text = _chunk_text(chunk)
                if text:
                    parts.append(text)
                    await _emit(on_chunk, text)
        except asyncio.CancelledError:
            if parts:
                partial = ChatResult(response="".join(parts), research_used=research_used, incomplete=True)
                await asyncio.shield(self.persist_turns(conversation_id, user_id, user_message, partial))
            raise
        except asyncio.TimeoutError as e:
            if not parts:
                raise GenerationError(f"generation timed out after {self.timeout_s:.0f}s") from e
            log.warning("stream timed out after %d chunks; returning partial reply", len(parts))
            incomplete = True
        except Exception as e:
            if not parts:
                log.error("generation failed: %s: %s", type(e).__name__, e)
                raise GenerationError("generation failed") from e
            log.warning("stream broke after %d chunks: %s", len(parts), e)
            incomplete = True
        finally:
            try:
                await agen.aclose()
            except Exception as e:
                log.debug("stream close: %s", e)

        reply = "".join(parts)
        if not reply.strip():
            raise GenerationError("model returned an empty reply")

        await self._after_reply(conversation_id, user_id, user_message, reply, history)
        return ChatResult(
            response=reply,
            research_used=research_used,
            should_alert=False,
            incomplete=incomplete,
        )

    # ---- persistence ---------------------------------------------------------
    async def persist_turns(
        self,
        conversation_id: str,
        user_id: str,
        user_message: str,
        result: ChatResult,
    ) -> bool:
        """Append both turns. Logged and swallowed on failure; the reply was already delivered."""
        if self.turns is None:
            return False
        try:
            await asyncio.wait_for(
                self.turns.append(
                    conversation_id, user_id, user_message, result.response, incomplete=result.incomplete
                ),
                timeout=self.store_timeout_s,
            )
            return True
        except asyncio.TimeoutError:
            log.error("chat turn persistence timed out for %s", conversation_id)
            return False
        except Exception as e:
            log.error(
                "chat turn persistence failed for %s (%r): %s",
                conversation_id,
                truncate(user_message, 40),
                e,
            )
            return False
