"""Layered cache lookup for free-text quote searches.

Tiers are tried from most to least specific: exact/synonym context match,
category match, full-text scan. Each tier needs a minimum number of quotes
(after dropping favorites and recently shown quotes) before it is accepted.
Nothing here writes to the database.
"""
from __future__ import annotations

import random
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from config import SEARCH_DEFAULTS
from utils.categories import match_category
from utils.contexts import (
    find_context,
    get_category_contexts,
    get_mappings_for_context,
    get_recent_contexts,
)
from utils.history import get_excluded_quote_ids
from utils.quotes import get_quotes_by_ids, row_to_quote
from utils.search import context_key, extract_keywords, keywords_overlap, normalize_query
from utils.synonyms import expand_keywords

TRANSLATION_TEXT_FIELDS = ("text", "context", "explanation")
TRANSLATION_LIST_FIELDS = ("tags", "situations")


def shuffle_with_relevance_bias(
    quotes: List[Dict[str, Any]],
    high_band: float = 80,
    medium_band: float = 60,
    rng: Optional[random.Random] = None,
) -> List[Dict[str, Any]]:
    """Shuffle inside score bands (high, medium, low), keeping band order."""
    rng = rng or random.Random()
    high = [q for q in quotes if q["relevance_score"] >= high_band]
    medium = [q for q in quotes if medium_band <= q["relevance_score"] < high_band]
    low = [q for q in quotes if q["relevance_score"] < medium_band]
    for band in (high, medium, low):
        rng.shuffle(band)
    return high + medium + low


def _collect_mappings(
    conn,
    contexts: Iterable[Tuple[Dict[str, Any], float]],
    excluded: Set[int],
    mapping_limit: int,
) -> Dict[int, Dict[str, Any]]:
    """Max score and AI flag per quote across the given (context, weight) pairs."""
    collected: Dict[int, Dict[str, Any]] = {}
    for context, weight in contexts:
        for mapping in get_mappings_for_context(conn, context["id"], mapping_limit):
            quote_id = mapping["quote_id"]
            if quote_id in excluded:
                continue
            score = mapping["relevance_score"] * weight
            entry = collected.setdefault(quote_id, {"relevance_score": 0, "is_ai_generated": False})
            entry["relevance_score"] = max(entry["relevance_score"], score)
            entry["is_ai_generated"] = entry["is_ai_generated"] or mapping["is_ai_generated"]
    return collected


def _scored_quotes(conn, collected: Dict[int, Dict[str, Any]]) -> List[Dict[str, Any]]:
    quotes = get_quotes_by_ids(conn, collected.keys())
    scored = [
        {**quote, **collected[quote_id]}
        for quote_id, quote in quotes.items()
    ]
    scored.sort(key=lambda q: q["relevance_score"], reverse=True)
    return scored


def _contains(value: Optional[str], term: str) -> bool:
    return bool(value) and term in value.lower()


def _any_contains(values: Optional[List[str]], term: str) -> bool:
    return any(isinstance(value, str) and term in value.lower() for value in values or [])


def quote_matches_text(quote: Dict[str, Any], term: str, keywords: Iterable[str]) -> bool:
    """Full-text test used by the last tier.

    The raw term is looked up in every text field, including all stored
    translations; expanded keywords only in text, tags and situations.
    """
    if term:
        if any(
            _contains(quote.get(name), term)
            for name in ("text", "context", "explanation", "author", "reference")
        ):
            return True
        if _any_contains(quote.get("tags"), term) or _any_contains(quote.get("situations"), term):
            return True
        for bundle in (quote.get("translations") or {}).values():
            if not isinstance(bundle, dict):
                continue
            if any(_contains(bundle.get(name), term) for name in TRANSLATION_TEXT_FIELDS):
                return True
            if any(_any_contains(bundle.get(name), term) for name in TRANSLATION_LIST_FIELDS):
                return True
    for keyword in keywords:
        if (
            _contains(quote.get("text"), keyword)
            or _any_contains(quote.get("situations"), keyword)
            or _any_contains(quote.get("tags"), keyword)
        ):
            return True
    return False


def _full_text_matches(
    conn, query: str, keywords: Iterable[str], excluded: Set[int], scan_limit: int
) -> List[Dict[str, Any]]:
    term = query.strip().lower()
    keywords = list(keywords)
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM quotes ORDER BY id LIMIT ?", (scan_limit,))
    matches = []
    for row in cursor.fetchall():
        if row["id"] in excluded:
            continue
        quote = row_to_quote(row)
        if quote_matches_text(quote, term, keywords):
            matches.append(quote)
    return matches


def smart_search(
    conn,
    query: str,
    language: str,
    user_id: Optional[str] = None,
    is_premium: bool = False,
    settings: Optional[Dict[str, Any]] = None,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """Find quotes for a free-text query without generating anything.

    Returns a dict with source (cached, category, database or insufficient),
    quotes, context_id, category, needs_ai, normalized_query and
    synonyms_used.
    """
    settings = {**SEARCH_DEFAULTS, **(settings or {})}
    min_quotes = settings["min_quotes_for_cached_result"]
    limit = settings["result_limit"]
    bands = {"high_band": settings["high_band"], "medium_band": settings["medium_band"], "rng": rng}

    normalized = normalize_query(query)
    keywords = extract_keywords(query)
    expanded = expand_keywords(conn, keywords, language)
    excluded = get_excluded_quote_ids(conn, user_id, is_premium, today, settings)
    category = match_category(conn, expanded, language)

    exact = find_context(conn, context_key(query), language)
    result = {
        "context_id": exact["id"] if exact else None,
        "category": category,
        "needs_ai": False,
        "normalized_query": normalized,
        "synonyms_used": len(expanded) > len(set(keywords)),
    }

    # Tier 1: exact context plus contexts sharing (expanded) vocabulary
    matched: List[Tuple[Dict[str, Any], float]] = []
    if exact:
        matched.append((exact, 1.0))
    if expanded:
        expanded_list = sorted(expanded)
        for context in get_recent_contexts(conn, language, settings["context_scan_limit"]):
            if exact and context["id"] == exact["id"]:
                continue
            if keywords_overlap(expanded_list, extract_keywords(context["normalized_query"])):
                matched.append((context, settings["synonym_penalty"]))
    if matched:
        collected = _collect_mappings(conn, matched, excluded, settings["context_mapping_limit"])
        quotes = _scored_quotes(conn, collected)
        if len(quotes) >= min_quotes:
            shuffled = shuffle_with_relevance_bias(quotes, **bands)
            return {**result, "source": "cached", "quotes": shuffled[:limit]}

    # Tier 2: contexts in the same category
    if category:
        category_contexts = get_category_contexts(conn, category["id"], settings["category_context_limit"])
        collected = _collect_mappings(
            conn,
            [(context, 1.0) for context in category_contexts],
            excluded,
            settings["category_mapping_limit"],
        )
        if len(collected) >= min_quotes:
            quotes = [{**q, "is_ai_generated": False} for q in _scored_quotes(conn, collected)]
            if len(quotes) >= min_quotes:
                shuffled = shuffle_with_relevance_bias(quotes, **bands)
                return {**result, "source": "category", "quotes": shuffled[:limit]}

    # Tier 3: full-text scan
    matches = _full_text_matches(conn, query, expanded, excluded, settings["fulltext_scan_limit"])
    scored = [
        {**quote, "relevance_score": settings["fulltext_score"], "is_ai_generated": False}
        for quote in matches
    ]
    if len(scored) >= min_quotes:
        shuffled = shuffle_with_relevance_bias(scored, **bands)
        return {**result, "source": "database", "quotes": shuffled[:limit]}

    return {**result, "source": "insufficient", "quotes": scored, "needs_ai": True}
