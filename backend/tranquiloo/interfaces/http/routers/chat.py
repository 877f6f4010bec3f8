# -*- coding: utf-8 -*-
from __future__ import annotations

import asyncio
import json
import logging
from typing import AsyncGenerator, Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import StreamingResponse

from tranquiloo.domain.chat.service import GenerationError, ResponseOrchestrator
from tranquiloo.interfaces.http.deps.services import get_orchestrator
from tranquiloo.schemas.chat import ChatIn, ChatResult

log = logging.getLogger(__name__)

router = APIRouter()


def _nd(obj: dict) -> bytes:
    """NDJSON line encoder."""
    return (json.dumps(obj, ensure_ascii=False) + "\n").encode("utf-8")


# ─────────────────────────────────────────────────────────────────────────────
#   /chat/message   POST → single-shot reply
#   /chat/stream    POST → NDJSON stream: start, delta*, done | error
# ─────────────────────────────────────────────────────────────────────────────

@router.post("/message", response_model=ChatResult)
async def chat_message(
    body: ChatIn,
    background: BackgroundTasks,
    orch: ResponseOrchestrator = Depends(get_orchestrator),
):
    result = await orch.respond(body.message, body.conversation_id, body.user_id, body.history)
    # persistence runs after the response is sent and never fails the request
    background.add_task(orch.persist_turns, body.conversation_id, body.user_id, body.message, result)
    return result


@router.post("/stream")
async def chat_stream(
    body: ChatIn,
    orch: ResponseOrchestrator = Depends(get_orchestrator),
):
    background = BackgroundTasks()

    async def gen() -> AsyncGenerator[bytes, None]:
        queue: "asyncio.Queue[str]" = asyncio.Queue()
        task = asyncio.create_task(
            orch.stream(body.message, body.conversation_id, body.user_id, body.history, queue.put_nowait)
        )
        getter: "Optional[asyncio.Future]" = None
        try:
            yield _nd({"type": "start"})
            while True:
                getter = asyncio.ensure_future(queue.get())
                done, _ = await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
                if getter in done:
                    yield _nd({"type": "delta", "text": getter.result()})
                    continue
                getter.cancel()
                break
            while not queue.empty():
                yield _nd({"type": "delta", "text": queue.get_nowait()})

            try:
                result = task.result()
            except GenerationError as e:
                log.error("stream generation failed: %s", e)
                yield _nd({"type": "error", "error": "Failed to get AI response"})
                return

            yield _nd({
                "type": "done",
                "researchUsed": result.research_used,
                "shouldAlert": result.should_alert,
                "crisisData": result.crisis_data.model_dump(by_alias=True, mode="json") if result.crisis_data else None,
                "incomplete": result.incomplete,
            })
            background.add_task(orch.persist_turns, body.conversation_id, body.user_id, body.message, result)
        finally:
            if getter is not None and not getter.done():
                getter.cancel()
            if not task.done():
                # client went away mid-stream; the orchestrator persists the partial reply
                task.cancel()

    return StreamingResponse(gen(), media_type="application/x-ndjson", background=background)
