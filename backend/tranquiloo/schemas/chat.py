from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .memory import ConversationMessage
from .safety import RiskLevel


class CrisisData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    risk_level: RiskLevel = Field(alias="riskLevel")
    requires_screening: bool = Field(alias="requiresScreening")
    next_question: Optional[str] = Field(default=None, alias="nextQuestion")
    detected_indicators: List[str] = Field(default_factory=list, alias="detectedIndicators")


class ChatResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response: str
    research_used: List[str] = Field(default_factory=list, alias="researchUsed")
    should_alert: bool = Field(default=False, alias="shouldAlert")
    crisis_data: Optional[CrisisData] = Field(default=None, alias="crisisData")
    incomplete: bool = False


class ChatIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., min_length=1)
    conversation_id: str = Field(..., alias="conversationId", min_length=1)
    user_id: str = Field(..., alias="userId", min_length=1)
    history: List[ConversationMessage] = Field(default_factory=list, max_length=200)
