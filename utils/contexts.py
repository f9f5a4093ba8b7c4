from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from db.database import now_ms
from utils.quotes import get_quotes_by_ids


def row_to_context(row) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "search_query": row["search_query"],
        "normalized_query": row["normalized_query"],
        "category_id": row["category_id"],
        "language": row["language"],
        "search_count": row["search_count"],
        "created_at": row["created_at"],
        "last_used_at": row["last_used_at"],
    }


def find_context(conn, normalized_query: str, language: str) -> Optional[Dict[str, Any]]:
    if not normalized_query:
        return None
    cursor = conn.cursor()
    cursor.execute(
        "SELECT * FROM search_contexts WHERE normalized_query = ? AND language = ?",
        (normalized_query, language),
    )
    row = cursor.fetchone()
    return row_to_context(row) if row else None


def get_context(conn, context_id: int) -> Optional[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM search_contexts WHERE id = ?", (context_id,))
    row = cursor.fetchone()
    return row_to_context(row) if row else None


def save_search_context(
    conn,
    search_query: str,
    normalized_query: str,
    language: str,
    category_id: Optional[int] = None,
    commit: bool = True,
) -> int:
    """Create the context for (normalized_query, language) or count another use of it.

    The unique index on (normalized_query, language) makes this a single
    upsert: a repeat bumps search_count, refreshes last_used_at and fills in a
    missing category.
    """
    now = now_ms()
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO search_contexts (
            search_query, normalized_query, category_id, language,
            search_count, created_at, last_used_at
        )
        VALUES (?, ?, ?, ?, 1, ?, ?)
        ON CONFLICT (normalized_query, language) DO UPDATE SET
            search_count = search_count + 1,
            last_used_at = excluded.last_used_at,
            category_id = COALESCE(category_id, excluded.category_id)
        """,
        (search_query.strip(), normalized_query, category_id, language, now, now),
    )
    cursor.execute(
        "SELECT id FROM search_contexts WHERE normalized_query = ? AND language = ?",
        (normalized_query, language),
    )
    context_id = cursor.fetchone()["id"]
    if commit:
        conn.commit()
    return context_id


def add_quote_context_mapping(
    conn,
    quote_id: int,
    context_id: int,
    relevance_score: float,
    is_ai_generated: bool,
    commit: bool = True,
) -> int:
    """Link a quote to a context; on a repeat keep the higher relevance score."""
    score = max(0.0, min(100.0, float(relevance_score)))
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO quote_context_mappings (
            quote_id, context_id, relevance_score, is_ai_generated, created_at
        )
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT (quote_id, context_id) DO UPDATE SET
            relevance_score = MAX(relevance_score, excluded.relevance_score)
        """,
        (quote_id, context_id, score, int(is_ai_generated), now_ms()),
    )
    cursor.execute(
        "SELECT id FROM quote_context_mappings WHERE quote_id = ? AND context_id = ?",
        (quote_id, context_id),
    )
    mapping_id = cursor.fetchone()["id"]
    if commit:
        conn.commit()
    return mapping_id


def get_mappings_for_context(conn, context_id: int, limit: int) -> List[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT quote_id, relevance_score, is_ai_generated
        FROM quote_context_mappings
        WHERE context_id = ?
        ORDER BY relevance_score DESC, id
        LIMIT ?
        """,
        (context_id, limit),
    )
    return [
        {
            "quote_id": row["quote_id"],
            "relevance_score": row["relevance_score"],
            "is_ai_generated": bool(row["is_ai_generated"]),
        }
        for row in cursor.fetchall()
    ]


def get_recent_contexts(conn, language: str, limit: int) -> List[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT * FROM search_contexts
        WHERE language = ?
        ORDER BY last_used_at DESC, id DESC
        LIMIT ?
        """,
        (language, limit),
    )
    return [row_to_context(row) for row in cursor.fetchall()]


def get_category_contexts(conn, category_id: int, limit: int) -> List[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT * FROM search_contexts
        WHERE category_id = ?
        ORDER BY search_count DESC, id
        LIMIT ?
        """,
        (category_id, limit),
    )
    return [row_to_context(row) for row in cursor.fetchall()]


def get_quotes_for_context(conn, context_id: int, limit: int = 5) -> List[Dict[str, Any]]:
    """Quotes mapped to a context, best score first."""
    mappings = get_mappings_for_context(conn, context_id, limit)
    quotes = get_quotes_by_ids(conn, [m["quote_id"] for m in mappings])
    results = []
    for mapping in mappings:
        quote = quotes.get(mapping["quote_id"])
        if quote:
            results.append(
                {
                    **quote,
                    "relevance_score": mapping["relevance_score"],
                    "is_ai_generated": mapping["is_ai_generated"],
                }
            )
    return results


def remember_results(
    conn,
    search_query: str,
    normalized_query: str,
    language: str,
    quotes: Iterable[Dict[str, Any]],
    category_id: Optional[int] = None,
) -> Optional[int]:
    """Record a search as a context and map the quotes it returned to it.

    Category and full-text answers become exact-context hits for the next
    search of the same phrase.
    """
    if not normalized_query:
        return None
    context_id = save_search_context(conn, search_query, normalized_query, language, category_id)
    for quote in quotes:
        add_quote_context_mapping(
            conn,
            quote["id"],
            context_id,
            quote.get("relevance_score", 50),
            quote.get("is_ai_generated", False),
        )
    return context_id
