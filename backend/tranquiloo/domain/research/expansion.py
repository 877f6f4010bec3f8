from __future__ import annotations

import re
from typing import List, Pattern, Sequence, Tuple

from tranquiloo.utils.text import normalize_quotes, unique_preserve

__all__ = ["expand_query"]

# (topic pattern, clinical expansion queries)
_EXPANSIONS: Sequence[Tuple[Pattern[str], Sequence[str]]] = (
    (re.compile(r"depress|sad|hopeless|unmotivated|low mood"), (
        "major depressive disorder treatment",
        "depression cognitive behavioral therapy",
        "behavioral activation depression intervention",
    )),
    (re.compile(r"sleep|insomnia|tired|exhausted|can't sleep"), (
        "insomnia cognitive behavioral therapy CBT-I",
        "sleep disorder treatment sleep hygiene",
        "anxiety related insomnia intervention",
    )),
    (re.compile(r"trauma|ptsd|flashback|nightmare|abuse"), (
        "post-traumatic stress disorder PTSD treatment",
        "trauma focused cognitive behavioral therapy",
        "prolonged exposure therapy",
    )),
    (re.compile(r"ocd|obsess|compuls|intrusive thought|ritual"), (
        "obsessive compulsive disorder OCD treatment",
        "exposure response prevention ERP",
    )),
    (re.compile(r"eating|anorexia|bulimia|binge|food|weight"), (
        "eating disorder treatment cognitive behavioral therapy",
        "anorexia nervosa bulimia intervention",
    )),
    (re.compile(r"stress|overwhelm|cope|coping|burnout"), (
        "stress management intervention",
        "mindfulness based stress reduction",
        "coping strategies psychological intervention",
    )),
)

_ANXIETY_RX = re.compile(r"anxious|anxiety|worry|worried|nervous|panic")
_SOCIAL_RX = re.compile(r"social|people|public")


def _anxiety_queries(t: str) -> List[str]:
    if not _ANXIETY_RX.search(t):
        return []
    out = [
        "anxiety disorder treatment cognitive behavioral therapy",
        "generalized anxiety disorder GAD intervention",
    ]
    if "panic" in t:
        out.append("panic disorder panic attacks treatment")
    if _SOCIAL_RX.search(t):
        out.append("social anxiety disorder social phobia treatment")
    return out


def expand_query(user_message: str) -> List[str]:
    """
    Expand casual language into clinical search queries.
    The original message always comes first; no I/O.
    """
    t = normalize_quotes(user_message).lower()
    queries = [user_message]
    queries.extend(_anxiety_queries(t))
    for rx, extra in _EXPANSIONS:
        if rx.search(t):
            queries.extend(extra)
    return unique_preserve(q for q in queries if q and q.strip())
