from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ConversationMessage(BaseModel):
    role: Role
    content: str
    timestamp: Optional[str] = None


class ConversationSummary(BaseModel):
    conversation_id: str
    user_id: str
    summary: str
    key_topics: List[str] = Field(default_factory=list)
    message_count: int = 0
    created_at: Optional[datetime] = None


class SummaryOut(BaseModel):
    conversation_id: str
    summary: Optional[str] = None
