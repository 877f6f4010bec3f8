"""
Crisis response text and resource listings.

Public API:
- generate_crisis_response(assessment, verdict=None, region=None) -> str
- crisis_resources(region=None) -> dict[str, str]
- crisis_message(region=None) -> str
"""

from __future__ import annotations

from typing import Dict, Optional

from tranquiloo.schemas.safety import CrisisAssessment, CSSRSVerdict, RiskLevel

__all__ = ["crisis_message", "crisis_resources", "generate_crisis_response"]

_US_RESOURCES = {
    "suicide_lifeline": "988",
    "crisis_text_line": "741741",
    "emergency": "911",
}

_REGION_RESOURCES: Dict[str, Dict[str, str]] = {
    "US": _US_RESOURCES,
    "CA": {"suicide_crisis_helpline": "988", "emergency": "911"},
    "UK": {"samaritans": "116 123", "emergency": "999"},
    "AU": {"lifeline": "13 11 14", "emergency": "000"},
}

_REGION_LINES = {
    "US": "In the United States, you can call or text 988 (Suicide & Crisis Lifeline). "
          "You can also text HOME to 741741 (Crisis Text Line). ",
    "CA": "In Canada, you can call or text 988 (Suicide Crisis Helpline). ",
    "UK": "In the UK & ROI, you can contact Samaritans at 116 123. ",
    "AU": "In Australia, you can contact Lifeline at 13 11 14. ",
}

_RESOURCE_BLOCK = """**IMMEDIATE RESOURCES:**
🆘 **Call 988** - Suicide & Crisis Lifeline (24/7, free, confidential)
📱 **Text HOME to 741741** - Crisis Text Line
🚨 **Call 911** - For immediate emergency"""

_AI_NOTE = (
    "**Note:** I'm an AI wellness companion, not equipped for crisis situations. "
    "Please reach out to one of these services immediately."
)


def _region(region: Optional[str]) -> str:
    return (region or "US").strip().upper()


def crisis_resources(region: Optional[str] = None) -> Dict[str, str]:
    """Hotlines for a region; unknown regions get the international directory too."""
    r = _region(region)
    out = dict(_REGION_RESOURCES.get(r, {}))
    if r not in _REGION_RESOURCES:
        out["international_directory"] = "https://www.iasp.info/resources/Crisis_Centres/"
    return out


def crisis_message(region: Optional[str] = None) -> str:
    """Short, globally safe directive plus the region's hotline line."""
    msg = "I'm concerned about your safety. Please contact your local emergency services now. "
    return (msg + _REGION_LINES.get(_region(region), "")).strip()


def _resource_block(region: str) -> str:
    if region == "US":
        return _RESOURCE_BLOCK
    lines = "\n".join(f"- {name.replace('_', ' ').title()}: {num}" for name, num in crisis_resources(region).items())
    return f"**IMMEDIATE RESOURCES:**\n{lines}"


def generate_crisis_response(
    assessment: CrisisAssessment,
    verdict: Optional[CSSRSVerdict] = None,
    region: Optional[str] = None,
) -> str:
    """
    User-facing safety text. A completed screening verdict takes precedence
    over the per-message assessment. Returns "" when there is no risk.
    """
    r = _region(region)

    if verdict is not None:
        return (
            "I'm very concerned about your safety based on your responses.\n\n"
            f"{verdict.recommendation}\n\n"
            f"{_resource_block(r)}\n\n"
            "You don't have to face this alone. Professional help is available right now.\n\n"
            f"{_AI_NOTE}"
        )

    level = assessment.risk_level
    if level == RiskLevel.IMMINENT:
        if r != "US":
            return (
                "I'm extremely concerned about what you're sharing. This is a crisis situation.\n\n"
                f"{crisis_message(r)}\n\n"
                f"{_resource_block(r)}\n\n"
                "You don't have to face this alone. Help is available right now."
            )
        return (
            "I'm extremely concerned about what you're sharing. This is a crisis situation.\n\n"
            "**CALL 911 NOW** or go to your nearest emergency room.\n\n"
            "🆘 **Call 988** - Suicide & Crisis Lifeline\n"
            "📱 **Text HOME to 741741** - Crisis Text Line\n\n"
            "If you're not safe right now, please call one of these numbers immediately. "
            "They have trained counselors available 24/7.\n\n"
            "You don't have to face this alone. Help is available right now."
        )
    if level in (RiskLevel.HIGH, RiskLevel.MODERATE):
        return (
            "I'm concerned about your safety. Before we continue, I need to ask you a few quick "
            "questions to make sure you're okay. Please answer honestly - this helps me understand "
            "how best to support you."
        )
    if level == RiskLevel.LOW:
        return (
            "I hear that you're going through a difficult time. While I'm here to support you, "
            "if you're having thoughts of harming yourself, please reach out to:\n\n"
            "🆘 **988 - Suicide & Crisis Lifeline**\n"
            "📱 **Text HOME to 741741 - Crisis Text Line**\n\n"
            "Would you like to talk about what's troubling you?"
        )
    return ""
