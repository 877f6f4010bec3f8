from .safety import (
    Answer,
    CrisisAssessment,
    CSSRSQuestion,
    CSSRSResponse,
    CSSRSVerdict,
    RiskLevel,
    ScreeningState,
)
from .research import RankedPaper, ResearchPaper
from .memory import ConversationMessage, ConversationSummary, Role
from .chat import ChatIn, ChatResult, CrisisData

__all__ = [
    "Answer", "CrisisAssessment", "CSSRSQuestion", "CSSRSResponse", "CSSRSVerdict",
    "RiskLevel", "ScreeningState",
    "RankedPaper", "ResearchPaper",
    "ConversationMessage", "ConversationSummary", "Role",
    "ChatIn", "ChatResult", "CrisisData",
]
