from .time import utc_now, parse_iso
from .text import normalize_quotes, truncate, strip_code_fence, unique_preserve

__all__ = [
    "utc_now", "parse_iso",
    "normalize_quotes", "truncate", "strip_code_fence", "unique_preserve",
]
