from __future__ import annotations

import re
from typing import List, Optional

# \w is unicode-aware, so umlauts, ß and other accented letters survive.
_STRIP_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")
MIN_WORD_LENGTH = 3


def _clean_words(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    cleaned = _STRIP_RE.sub("", raw.lower())
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
    return [word for word in cleaned.split() if len(word) >= MIN_WORD_LENGTH]


def normalize_query(raw: Optional[str]) -> str:
    """Normalize free text into a cache key.

    Lowercases, strips punctuation, drops words of two characters or less and
    joins the rest with single spaces. Word order is preserved so that
    "mother city" and "city mother" stay distinct keys.
    """
    return " ".join(_clean_words(raw))


def extract_keywords(raw: Optional[str]) -> List[str]:
    """Same cleanup as normalize_query, returned as a word list for scoring."""
    return _clean_words(raw)


def context_key(raw: Optional[str]) -> str:
    """Key used to store/look up a search context.

    Falls back to the whitespace-collapsed lowercase query when normalization
    leaves nothing (e.g. "ok"), so short queries still get a stable key.
    """
    normalized = normalize_query(raw)
    if normalized:
        return normalized
    return _WHITESPACE_RE.sub(" ", (raw or "").lower()).strip()


def keywords_overlap(left: List[str], right: List[str]) -> bool:
    """True if any word of one list contains or is contained in a word of the other."""
    return any(a in b or b in a for a in left for b in right)
