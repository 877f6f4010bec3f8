from __future__ import annotations

from typing import Iterable, List

__all__ = [
    "normalize_quotes",
    "truncate",
    "strip_code_fence",
    "unique_preserve",
]

_QUOTES = str.maketrans({"‘": "'", "’": "'", "“": '"', "”": '"'})


def normalize_quotes(s: str) -> str:
    """Map typographic quotes to ASCII so keyword lists match phone keyboards."""
    return (s or "").translate(_QUOTES)


def truncate(text: str, max_len: int, ellipsis: str = "...") -> str:
    if not text or max_len <= 0:
        return ""
    if len(text) <= max_len:
        return text
    return text[:max_len] + ellipsis


def strip_code_fence(raw: str) -> str:
    """Remove ```json fences some models wrap around JSON output."""
    clean = (raw or "").strip()
    if clean.startswith("```"):
        clean = clean.strip("`").strip()
        if clean.lower().startswith("json"):
            clean = clean[4:].strip()
    return clean


def unique_preserve(items: Iterable[str]) -> List[str]:
    """Deduplicate while preserving order."""
    seen = set()
    out: List[str] = []
    for it in items or []:
        if it not in seen:
            seen.add(it)
            out.append(it)
    return out
