from .keywords import fallback_assessment
from .detector import CrisisDetector
from .cssrs import (
    CSSRS_QUESTIONS,
    ScreeningOrderError,
    ScreeningSession,
    assess_responses,
    next_question,
    next_question_prompt,
    parse_answer,
)
from .responses import crisis_message, crisis_resources, generate_crisis_response

__all__ = [
    "fallback_assessment",
    "CrisisDetector",
    "CSSRS_QUESTIONS",
    "ScreeningOrderError",
    "ScreeningSession",
    "assess_responses",
    "next_question",
    "next_question_prompt",
    "parse_answer",
    "crisis_message",
    "crisis_resources",
    "generate_crisis_response",
]
