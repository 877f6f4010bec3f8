"""
Deterministic keyword fallback for crisis detection.

Used only when the model-based detector is unavailable or fails. Tiers are
checked most-severe first; the first tier with any match decides the level,
and only that tier's phrases are reported as indicators.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from tranquiloo.schemas.safety import CrisisAssessment, RiskLevel
from tranquiloo.utils.text import normalize_quotes

__all__ = ["KEYWORD_TIERS", "fallback_assessment", "matched_phrases"]

IMMINENT_KEYWORDS = (
    "going to kill myself",
    "going to end my life",
    "tonight",
    "goodbye forever",
    "final message",
)

HIGH_RISK_KEYWORDS = (
    "suicide",
    "kill myself",
    "end my life",
    "want to die",
    "take my life",
    "have a plan",
)

MODERATE_KEYWORDS = (
    "wish i was dead",
    "better off dead",
    "no reason to live",
    "can't go on",
    "ending it",
    "not worth living",
)

KEYWORD_TIERS: Tuple[Tuple[RiskLevel, Sequence[str], str], ...] = (
    (RiskLevel.IMMINENT, IMMINENT_KEYWORDS, "Imminent risk keywords detected - immediate intervention needed"),
    (RiskLevel.HIGH, HIGH_RISK_KEYWORDS, "Active suicidal ideation keywords detected"),
    (RiskLevel.MODERATE, MODERATE_KEYWORDS, "Passive ideation or hopelessness detected"),
)


def matched_phrases(text: str, phrases: Sequence[str]) -> List[str]:
    t = normalize_quotes(text).lower()
    return [kw for kw in phrases if kw in t]


def fallback_assessment(message: str) -> CrisisAssessment:
    for level, phrases, reasoning in KEYWORD_TIERS:
        hits = matched_phrases(message or "", phrases)
        if hits:
            return CrisisAssessment(
                risk_level=level,
                reasoning=reasoning,
                detected_indicators=hits,
            )
    return CrisisAssessment(
        risk_level=RiskLevel.NONE,
        reasoning="No crisis indicators detected",
        detected_indicators=[],
    )
