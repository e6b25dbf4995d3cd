"""Case- and whitespace-insensitive string comparison primitives."""

import re
from typing import Iterable, Optional

_CODE_SEPARATORS = re.compile(r"[\s\-_/,]+")


def normalize(value: Optional[str]) -> str:
    """Lowercase and trim. None is treated as the empty string."""
    return (value or "").strip().lower()


def normalized_equal(a: Optional[str], b: Optional[str]) -> bool:
    return normalize(a) == normalize(b)


def contains_ci(haystack: Optional[str], needle: Optional[str]) -> bool:
    """Case-insensitive substring test. An empty needle never matches."""
    needle_norm = normalize(needle)
    if not needle_norm:
        return False
    return needle_norm in normalize(haystack)


def any_contains_ci(haystacks: Iterable[str], needle: Optional[str]) -> bool:
    return any(contains_ci(h, needle) for h in haystacks)


def normalize_code(code: Optional[str]) -> str:
    """Normalize a RIASEC-style code for comparison ('r-i-a' -> 'RIA')."""
    return _CODE_SEPARATORS.sub("", (code or "").strip()).upper()


def normalized_set(values: Iterable[Optional[str]]) -> set[str]:
    """Normalized, non-empty members of values."""
    return {n for n in (normalize(v) for v in values) if n}
