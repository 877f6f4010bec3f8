from fastapi import APIRouter, Depends

from tranquiloo.domain.memory.service import ConversationMemory
from tranquiloo.interfaces.http.deps.services import get_memory
from tranquiloo.schemas.memory import SummaryOut

router = APIRouter()


@router.get("/summary/{conversation_id}", response_model=SummaryOut)
async def conversation_summary(conversation_id: str, memory: ConversationMemory = Depends(get_memory)):
    return SummaryOut(conversation_id=conversation_id, summary=await memory.get_summary(conversation_id))
