from __future__ import annotations

from typing import Any, Dict, Iterable, List, Set

from db.database import decode_json


def _terms_column(language: str) -> str:
    return "terms_de" if language == "de" else "terms_en"


def load_synonym_groups(conn, language: str) -> List[List[str]]:
    """Return the term list of every synonym group for a language."""
    cursor = conn.cursor()
    cursor.execute(f"SELECT {_terms_column(language)} AS terms FROM synonym_groups ORDER BY id")
    return [decode_json(row["terms"], []) for row in cursor.fetchall()]


def _group_matches(terms: Iterable[str], group_terms: List[str]) -> bool:
    return any(
        group_term in term or term in group_term
        for term in terms
        for group_term in group_terms
    )


def expand_keywords(conn, keywords: Iterable[str], language: str) -> Set[str]:
    """Expand keywords with every synonym group one of them touches.

    A keyword touches a group when either one contains the other, so
    inflected forms still hit their group.
    """
    keywords = [keyword for keyword in keywords if keyword]
    expanded = set(keywords)
    if not keywords:
        return expanded
    for group_terms in load_synonym_groups(conn, language):
        if _group_matches(keywords, group_terms):
            expanded.update(group_terms)
    return expanded


def find_synonyms(conn, terms: List[str], language: str) -> Dict[str, Any]:
    lowered = [term.lower().strip() for term in terms if term and term.strip()]
    expanded = expand_keywords(conn, lowered, language)
    return {
        "original_terms": terms,
        "expanded_terms": sorted(expanded),
        "expansion_count": len(expanded) - len(set(lowered)),
    }
