from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RiskLevel(str, Enum):
    NONE = "none"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    IMMINENT = "imminent"

    @property
    def rank(self) -> int:
        return _RISK_ORDER.index(self)

    @property
    def requires_screening(self) -> bool:
        return self.rank >= RiskLevel.MODERATE.rank


_RISK_ORDER = [RiskLevel.NONE, RiskLevel.LOW, RiskLevel.MODERATE, RiskLevel.HIGH, RiskLevel.IMMINENT]


class Answer(str, Enum):
    YES = "yes"
    NO = "no"


class CrisisAssessment(BaseModel):
    """
    Per-message risk assessment. Accepts the camelCase keys the detector
    model is told to emit as well as snake_case.
    """

    model_config = ConfigDict(populate_by_name=True)

    risk_level: RiskLevel = Field(alias="riskLevel")
    requires_screening: bool = Field(default=False, alias="requiresScreening")
    reasoning: str = ""
    detected_indicators: List[str] = Field(default_factory=list, alias="detectedIndicators")

    @field_validator("risk_level", mode="before")
    @classmethod
    def _lower_level(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("reasoning", mode="before")
    @classmethod
    def _none_reasoning(cls, v):
        return "" if v is None else v

    @field_validator("detected_indicators", mode="before")
    @classmethod
    def _none_indicators(cls, v):
        return [] if v is None else v

    @model_validator(mode="after")
    def _screening_follows_risk(self) -> "CrisisAssessment":
        # the model's own flag is never trusted; risk level decides
        self.requires_screening = self.risk_level.requires_screening
        return self


class CSSRSQuestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    question: str
    category: str
    weight: RiskLevel


class CSSRSResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_number: int = Field(alias="questionNumber", ge=1, le=6)
    answer: Optional[Answer] = None


class CSSRSVerdict(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    final_risk_level: RiskLevel = Field(alias="finalRiskLevel")
    recommendation: str
    should_alert: bool = Field(alias="shouldAlert")


class ScreeningState(str, Enum):
    NOT_STARTED = "not_started"
    AWAITING_Q1 = "awaiting_q1"
    AWAITING_Q2 = "awaiting_q2"
    AWAITING_Q3 = "awaiting_q3"
    AWAITING_Q4 = "awaiting_q4"
    AWAITING_Q5 = "awaiting_q5"
    AWAITING_Q6 = "awaiting_q6"
    COMPLETE = "complete"

    @classmethod
    def awaiting(cls, question_number: int) -> "ScreeningState":
        return cls(f"awaiting_q{question_number}")


# ---- HTTP payloads ----------------------------------------------------------
class AssessIn(BaseModel):
    message: str = Field(..., min_length=1)


class ScreeningIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    responses: List[CSSRSResponse] = Field(default_factory=list)
    reply: Optional[str] = Field(default=None, description="Free-text answer to the pending question")
    region: Optional[str] = None


class ScreeningOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    state: ScreeningState
    responses: List[CSSRSResponse] = Field(default_factory=list)
    next_question: Optional[str] = Field(default=None, alias="nextQuestion")
    verdict: Optional[CSSRSVerdict] = None
    response: Optional[str] = None
    understood: bool = True
