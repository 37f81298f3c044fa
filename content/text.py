"""
Stateless text primitives: score curves, normalisation, token matching and
the first-match cascade used by several heuristics.
"""
from __future__ import annotations

import re
from typing import Callable, Iterable, Optional, TypeVar

from config import (
    LEGAL_SUFFIXES,
    LENGTH_SCORE_BELOW_MAX,
    LENGTH_SCORE_FLOOR,
)

T = TypeVar("T")

_TRADEMARK_RE = re.compile(r"[®™©℠]")
_NON_WORD_RE = re.compile(r"[^\w\s]+", re.UNICODE)
_UNDERSCORE_RE = re.compile(r"_+")
_SPACE_RE = re.compile(r"\s+")

# Characters that delimit a token on either side, besides start/end of string.
_TOKEN_SEPARATORS = r"\s\-–—|·•:;,./\\()\[\]{}!?\"'“”‘’&+"

# Trailing "| Brand", "- Brand", "· Brand" style suffix on a title.
_TITLE_SUFFIX_RE = re.compile(r"\s*[-–—|·•:]\s*[^-–—|·•:]{1,30}$")


def clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


def length_score(n: int, ideal_min: int, ideal_max: int) -> float:
    """
    Score a measured length against an ideal range.

    0 for an empty value, a linear ramp to 60 below the minimum, 100 inside
    [min, max], and a decline from 60 toward 20 proportional to overshoot.
    """
    if n <= 0:
        return 0.0
    if n < ideal_min:
        return clamp(n / ideal_min * LENGTH_SCORE_BELOW_MAX)
    if n > ideal_max:
        overshoot = (n - ideal_max) / ideal_max
        drop = LENGTH_SCORE_BELOW_MAX - LENGTH_SCORE_FLOOR
        return clamp(LENGTH_SCORE_BELOW_MAX - overshoot * drop, LENGTH_SCORE_FLOOR)
    return 100.0


def normalize_text(text: Optional[str]) -> str:
    """Lower-case, drop trademark glyphs, `&` → `and`, punctuation → space."""
    if not text:
        return ""
    out = _TRADEMARK_RE.sub("", text.lower())
    out = out.replace("&", " and ")
    out = _NON_WORD_RE.sub(" ", out)
    out = _UNDERSCORE_RE.sub(" ", out)
    return _SPACE_RE.sub(" ", out).strip()


def strip_legal_suffixes(text: str) -> str:
    words = text.split()
    while len(words) > 1 and words[-1] in LEGAL_SUFFIXES:
        words.pop()
    return " ".join(words)


def normalize_brand(text: Optional[str]) -> str:
    """Normalise a brand candidate: normalize_text plus legal-suffix removal."""
    return strip_legal_suffixes(normalize_text(text))


def normalize_title(title: Optional[str]) -> str:
    """Title key for duplicate detection; trailing brand suffixes are dropped."""
    if not title:
        return ""
    out = _TRADEMARK_RE.sub("", title.lower())
    out = _TITLE_SUFFIX_RE.sub("", out)
    return _SPACE_RE.sub(" ", out).strip()


def contains_token(haystack: Optional[str], needle: Optional[str]) -> bool:
    """
    True when `needle` appears in `haystack` delimited by start/end of string,
    whitespace or a common separator. Case-insensitive.
    """
    if not haystack or not needle:
        return False
    pattern = (
        rf"(?:^|[{_TOKEN_SEPARATORS}])"
        + re.escape(needle.strip().lower())
        + rf"(?:$|[{_TOKEN_SEPARATORS}])"
    )
    return re.search(pattern, haystack.lower()) is not None


def word_count(text: str) -> int:
    return len(text.split()) if text else 0


def first_match(
    suppliers: Iterable[tuple[str, Callable[[], Optional[T]]]],
    accept: Callable[[T], bool],
) -> tuple[Optional[T], Optional[str]]:
    """
    Evaluate named lazy suppliers in priority order and return the first
    value `accept` approves, together with the supplier name.
    """
    for name, supplier in suppliers:
        value = supplier()
        if value is not None and accept(value):
            return value, name
    return None, None
