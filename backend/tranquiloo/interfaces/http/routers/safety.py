from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends

from tranquiloo.domain.safety.cssrs import (
    CSSRS_QUESTIONS,
    ScreeningSession,
    next_question_prompt,
    parse_answer,
)
from tranquiloo.domain.safety.detector import CrisisDetector
from tranquiloo.domain.safety.keywords import fallback_assessment
from tranquiloo.domain.safety.responses import crisis_message, crisis_resources, generate_crisis_response
from tranquiloo.interfaces.http.deps.services import get_detector
from tranquiloo.schemas.safety import (
    AssessIn,
    CrisisAssessment,
    CSSRSQuestion,
    ScreeningIn,
    ScreeningOut,
)

router = APIRouter()


@router.post("/assess", response_model=CrisisAssessment)
async def assess(body: AssessIn, detector: CrisisDetector = Depends(get_detector)):
    return await detector.detect(body.message)


@router.get("/classify", response_model=CrisisAssessment)
def classify(text: str):
    """Keyword-only classification (no model call)."""
    return fallback_assessment(text)


@router.get("/resources")
def resources(region: Optional[str] = None):
    return {
        "region": (region or "US").upper(),
        "resources": crisis_resources(region),
        "message": crisis_message(region),
    }


@router.get("/screening/questions", response_model=List[CSSRSQuestion])
def screening_questions():
    return list(CSSRS_QUESTIONS)


@router.post("/screening", response_model=ScreeningOut)
def screening(body: ScreeningIn):
    """
    Stateless C-SSRS step. The caller sends the answers collected so far
    (plus, optionally, the user's reply to the pending question) and gets
    the next question or the final verdict back.
    """
    session = ScreeningSession.from_responses(body.responses)
    understood = True
    if body.reply is not None and session.verdict is None:
        answer = parse_answer(body.reply)
        if answer is None:
            understood = False
        else:
            session.answer(len(session.responses) + 1, answer)

    verdict = session.verdict
    response = None
    if verdict is not None:
        response = generate_crisis_response(
            CrisisAssessment(risk_level=verdict.final_risk_level),
            verdict,
            region=body.region,
        )
    return ScreeningOut(
        state=session.state,
        responses=session.responses,
        next_question=next_question_prompt(session.responses),
        verdict=verdict,
        response=response,
        understood=understood,
    )
