"""
Columbia Suicide Severity Rating Scale (C-SSRS) screener.

Six fixed yes/no questions asked strictly in order. The verdict is categorical,
not a score: capability to act (means/intent) outranks plan/method, which
outranks ideation alone.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence, Tuple

from tranquiloo.schemas.safety import (
    Answer,
    CSSRSQuestion,
    CSSRSResponse,
    CSSRSVerdict,
    RiskLevel,
    ScreeningState,
)

__all__ = [
    "CSSRS_QUESTIONS",
    "ScreeningOrderError",
    "ScreeningSession",
    "assess_responses",
    "next_question",
    "next_question_prompt",
    "parse_answer",
    "validate_responses",
]

CSSRS_QUESTIONS: Tuple[CSSRSQuestion, ...] = (
    CSSRSQuestion(id=1, question="Have you had thoughts of killing yourself?", category="ideation", weight=RiskLevel.MODERATE),
    CSSRSQuestion(id=2, question="Do you feel the world would be better without you?", category="ideation", weight=RiskLevel.MODERATE),
    CSSRSQuestion(id=3, question="Have you thought about how you might end your life?", category="method", weight=RiskLevel.HIGH),
    CSSRSQuestion(id=4, question="Do you have a specific plan to end your life?", category="plan", weight=RiskLevel.HIGH),
    CSSRSQuestion(id=5, question="Do you have access to means to harm yourself (e.g., pills, weapons)?", category="means", weight=RiskLevel.IMMINENT),
    CSSRSQuestion(id=6, question="Do you intend to act on these thoughts?", category="intent", weight=RiskLevel.IMMINENT),
)

# (questions that trigger, level, recommendation, alert) in precedence order
_VERDICT_TIERS = (
    ({5, 6}, RiskLevel.IMMINENT,
     "IMMEDIATE CRISIS INTERVENTION REQUIRED. Call 911 or go to nearest emergency room.", True),
    ({3, 4}, RiskLevel.HIGH,
     "HIGH RISK. Call 988 Suicide & Crisis Lifeline immediately. Do not wait.", True),
    ({1, 2}, RiskLevel.MODERATE,
     "MODERATE RISK. Please call 988 or text HOME to 741741 to speak with a trained counselor.", True),
)

_LOW_RECOMMENDATION = "Continue monitoring. Reach out to a mental health professional if feelings worsen."


class ScreeningOrderError(ValueError):
    """Responses are out of order, duplicated, unanswered or beyond question 6."""


def validate_responses(responses: Sequence[CSSRSResponse]) -> None:
    if len(responses) > len(CSSRS_QUESTIONS):
        raise ScreeningOrderError(f"at most {len(CSSRS_QUESTIONS)} responses are accepted")
    for expected, r in enumerate(responses, start=1):
        if r.question_number != expected:
            raise ScreeningOrderError(
                f"expected an answer to question {expected}, got question {r.question_number}"
            )
        if r.answer is None:
            raise ScreeningOrderError(f"question {expected} has no answer")


def next_question(responses: Sequence[CSSRSResponse]) -> Optional[CSSRSQuestion]:
    """The question to ask after `responses`, or None once all six are answered."""
    validate_responses(responses)
    n = len(responses) + 1
    if n > len(CSSRS_QUESTIONS):
        return None
    return CSSRS_QUESTIONS[n - 1]


def next_question_prompt(responses: Sequence[CSSRSResponse]) -> Optional[str]:
    q = next_question(responses)
    if q is None:
        return None
    return f"{q.question} (Please answer yes or no)"


def assess_responses(responses: Sequence[CSSRSResponse]) -> CSSRSVerdict:
    """
    Final risk from the "yes" answers given so far (partial screenings allowed).
    """
    validate_responses(responses)
    yes = {r.question_number for r in responses if r.answer == Answer.YES}
    for triggers, level, recommendation, alert in _VERDICT_TIERS:
        if yes & triggers:
            return CSSRSVerdict(final_risk_level=level, recommendation=recommendation, should_alert=alert)
    return CSSRSVerdict(final_risk_level=RiskLevel.LOW, recommendation=_LOW_RECOMMENDATION, should_alert=False)


_YES_RX = re.compile(r"^\s*(yes|yeah|yep|yup|y|i do|i have|sort of|kind of|kinda|maybe|sometimes)\b", re.I)
_NO_RX = re.compile(r"^\s*(no|nope|nah|n|not really|never|i don'?t|i didn'?t|i do not|i haven'?t)\b", re.I)
_UNSURE_RX = re.compile(r"\b(not sure|don'?t know|do not know|unsure)\b", re.I)
# "i have no plan": a yes-shaped opener followed by a negation
_NEGATED_RX = re.compile(r"^\s*i\s+(have|had|do|did)\s+(no|not|never|nothing|none)\b", re.I)


def parse_answer(text: str) -> Optional[Answer]:
    """
    Map a free-text reply onto yes/no. Hedged replies count as yes so the
    screener errs toward caution; anything else returns None (ask again).
    """
    t = (text or "").replace("’", "'").strip()
    if _UNSURE_RX.search(t):
        return None
    if _NEGATED_RX.search(t):
        return Answer.NO
    if _NO_RX.search(t):
        return Answer.NO
    if _YES_RX.search(t):
        return Answer.YES
    return None


class ScreeningSession:
    """
    NotStarted -> AwaitingQ1 -> ... -> AwaitingQ6 -> Complete.

    Holds one conversation's answers; callers keep it (or its responses)
    between turns and feed each reply through `answer`.
    """

    def __init__(self) -> None:
        self._started = False
        self._responses: List[CSSRSResponse] = []
        self._verdict: Optional[CSSRSVerdict] = None

    @classmethod
    def from_responses(cls, responses: Iterable[CSSRSResponse]) -> "ScreeningSession":
        session = cls()
        session.start()
        for r in responses:
            if r.answer is None:
                raise ScreeningOrderError(f"question {r.question_number} has no answer")
            session.answer(r.question_number, r.answer)
        return session

    @property
    def state(self) -> ScreeningState:
        if not self._started:
            return ScreeningState.NOT_STARTED
        if len(self._responses) >= len(CSSRS_QUESTIONS):
            return ScreeningState.COMPLETE
        return ScreeningState.awaiting(len(self._responses) + 1)

    @property
    def responses(self) -> List[CSSRSResponse]:
        return list(self._responses)

    @property
    def current_question(self) -> Optional[CSSRSQuestion]:
        if not self._started:
            return None
        return next_question(self._responses)

    @property
    def verdict(self) -> Optional[CSSRSVerdict]:
        return self._verdict

    def start(self) -> CSSRSQuestion:
        if self._started:
            raise ScreeningOrderError("screening already in progress")
        self._started = True
        return CSSRS_QUESTIONS[0]

    def answer(self, question_number: int, answer: Answer) -> Optional[CSSRSQuestion]:
        """Record an answer; returns the next question, or None when complete."""
        if not self._started:
            raise ScreeningOrderError("screening has not started")
        if self._verdict is not None:
            raise ScreeningOrderError("screening is already complete")
        expected = len(self._responses) + 1
        if question_number != expected:
            raise ScreeningOrderError(
                f"expected an answer to question {expected}, got question {question_number}"
            )
        self._responses.append(CSSRSResponse(question_number=question_number, answer=Answer(answer)))
        nxt = next_question(self._responses)
        if nxt is None:
            self._verdict = assess_responses(self._responses)
        return nxt
