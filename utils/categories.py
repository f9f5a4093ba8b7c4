from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from db.database import decode_json


def row_to_category(row) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "name": row["name"],
        "display_name_de": row["display_name_de"],
        "display_name_en": row["display_name_en"],
        "keywords_de": decode_json(row["keywords_de"], []),
        "keywords_en": decode_json(row["keywords_en"], []),
    }


def get_all_categories(conn) -> List[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM search_categories ORDER BY id")
    return [row_to_category(row) for row in cursor.fetchall()]


def score_category(keywords: Iterable[str], category_keywords: List[str]) -> int:
    """Count (keyword, category keyword) pairs where one contains the other."""
    return sum(
        1
        for keyword in keywords
        for category_keyword in category_keywords
        if category_keyword in keyword or keyword in category_keyword
    )


def match_category(conn, keywords: Iterable[str], language: str) -> Optional[Dict[str, Any]]:
    """Return the category with the strictly highest nonzero score.

    Ties keep the category found first (id order).
    """
    keywords = [keyword for keyword in keywords if keyword]
    if not keywords:
        return None
    best: Optional[Dict[str, Any]] = None
    best_score = 0
    for category in get_all_categories(conn):
        category_keywords = category["keywords_de"] if language == "de" else category["keywords_en"]
        score = score_category(keywords, category_keywords)
        if score > best_score:
            best = category
            best_score = score
    return best
