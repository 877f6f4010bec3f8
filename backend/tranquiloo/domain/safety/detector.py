# backend/tranquiloo/domain/safety/detector.py
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.runnables import Runnable
from pydantic import ValidationError

from tranquiloo.schemas.safety import CrisisAssessment, RiskLevel
from tranquiloo.utils.text import strip_code_fence, truncate

from .keywords import fallback_assessment

log = logging.getLogger(__name__)

__all__ = ["CRISIS_SYSTEM_PROMPT", "CrisisDetector", "parse_assessment"]

CRISIS_SYSTEM_PROMPT = """You are a crisis detection system for a mental health wellness app.

Your job is to analyze user messages for suicide risk indicators using clinical expertise.

IMPORTANT CONTEXT CONSIDERATIONS:
- Distinguish between casual expressions ("kill this headache") and genuine distress
- Detect passive ideation ("I wish I wasn't here") vs active ideation ("I want to die")
- Recognize euphemisms: "ending it", "not being here anymore", "going to sleep forever"
- Catch indirect language: "everyone would be better off", "no reason to live"
- Consider misspellings, coded language, and cultural differences

RISK LEVELS:
- none: No indicators detected
- low: Vague distress, no specific ideation ("I can't take this anymore")
- moderate: Passive ideation, no plan/intent ("I wish I was dead")
- high: Active ideation with method/plan ("I've thought about pills")
- imminent: Intent + means + plan ("I have pills and I'm going to take them tonight")

Respond ONLY with valid JSON:
{
  "riskLevel": "none" | "low" | "moderate" | "high" | "imminent",
  "requiresScreening": boolean,
  "reasoning": "brief clinical reasoning",
  "detectedIndicators": ["specific phrases that raised concern"]
}

If riskLevel is "moderate" or higher, set requiresScreening to true.
"""

# returned only if the keyword fallback itself blows up
_SAFEST = CrisisAssessment(
    risk_level=RiskLevel.HIGH,
    reasoning="Risk classification unavailable; assuming screening is required",
    detected_indicators=[],
)


def parse_assessment(raw: str) -> CrisisAssessment:
    """Validate model output into a CrisisAssessment. Raises ValueError on bad output."""
    clean = strip_code_fence(raw)
    if not clean:
        raise ValueError("empty crisis assessment")
    return CrisisAssessment.model_validate_json(clean)


class CrisisDetector:
    """
    Context-aware crisis detector.

    The model call is bounded by `timeout_s`; any failure (network, timeout,
    malformed JSON, schema violation) falls back to keyword detection and is
    never raised to the caller.
    """

    def __init__(self, llm: Optional[Runnable] = None, *, timeout_s: float = 20.0):
        self.llm = llm
        self.timeout_s = timeout_s

    @classmethod
    def default(cls) -> "CrisisDetector":
        from tranquiloo.adapters.llm import get_crisis_model, optional_model
        from tranquiloo.core.config import get_settings

        return cls(optional_model(get_crisis_model, "crisis"), timeout_s=get_settings().LLM_TIMEOUT_S)

    async def detect(self, message: str) -> CrisisAssessment:
        if self.llm is not None:
            try:
                assessment = await asyncio.wait_for(self._ask_model(message), timeout=self.timeout_s)
                log.info(
                    "crisis assessment: %s (%s)",
                    assessment.risk_level.value,
                    truncate(assessment.reasoning, 120),
                )
                return assessment
            except asyncio.TimeoutError:
                log.warning("crisis model timed out after %.1fs; using keyword fallback", self.timeout_s)
            except (ValidationError, ValueError) as e:
                log.warning("crisis model returned malformed assessment: %s", e)
            except Exception as e:
                log.error("crisis model call failed: %s: %s", type(e).__name__, e)
        return self.fallback(message)

    @staticmethod
    def fallback(message: str) -> CrisisAssessment:
        try:
            return fallback_assessment(message)
        except Exception:
            log.exception("keyword fallback failed; defaulting to screening")
            return _SAFEST.model_copy(deep=True)

    async def _ask_model(self, message: str) -> CrisisAssessment:
        messages = [
            SystemMessage(content=CRISIS_SYSTEM_PROMPT),
            HumanMessage(content=f'Analyze this message for crisis indicators:\n\n"{message}"'),
        ]
        out = await self.llm.ainvoke(messages)  # type: ignore[union-attr]
        return parse_assessment(str(getattr(out, "content", out)))
