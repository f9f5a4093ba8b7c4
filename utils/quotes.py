from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional

from Levenshtein import ratio as lev_ratio

from db.database import decode_json, now_ms

DUPLICATE_RATIO_THRESHOLD = 0.92
DUPLICATE_SCAN_LIMIT = 500
VALID_CATEGORIES = {"bible", "quote", "saying", "poem"}


def row_to_quote(row) -> Dict[str, Any]:
    """Convert a quotes row into a plain dict with decoded JSON fields."""
    return {
        "id": row["id"],
        "text": row["text"],
        "author": row["author"],
        "reference": row["reference"],
        "source": row["source"],
        "category": row["category"],
        "language": row["language"],
        "is_premium": bool(row["is_premium"]),
        "context": row["context"],
        "explanation": row["explanation"],
        "situations": decode_json(row["situations"], []),
        "tags": decode_json(row["tags"], []),
        "translations": decode_json(row["translations"], {}),
        "ai_prompt": row["ai_prompt"],
        "created_at": row["created_at"],
    }


def get_quote(conn, quote_id: int) -> Optional[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM quotes WHERE id = ?", (quote_id,))
    row = cursor.fetchone()
    return row_to_quote(row) if row else None


def get_quotes_by_ids(conn, quote_ids: Iterable[int]) -> Dict[int, Dict[str, Any]]:
    ids = list(quote_ids)
    if not ids:
        return {}
    placeholders = ",".join("?" for _ in ids)
    cursor = conn.cursor()
    cursor.execute(f"SELECT * FROM quotes WHERE id IN ({placeholders})", ids)
    return {row["id"]: row_to_quote(row) for row in cursor.fetchall()}


def insert_quote(
    conn,
    *,
    text: str,
    language: str,
    source: str = "static",
    author: Optional[str] = None,
    reference: Optional[str] = None,
    category: Optional[str] = None,
    is_premium: bool = False,
    context: Optional[str] = None,
    explanation: Optional[str] = None,
    situations: Optional[List[str]] = None,
    tags: Optional[List[str]] = None,
    translations: Optional[Dict[str, Any]] = None,
    ai_prompt: Optional[str] = None,
) -> int:
    """Insert a quote and return its id. Empty optional fields are stored as NULL."""
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO quotes (
            text, author, reference, source, category, language, is_premium,
            context, explanation, situations, tags, translations, ai_prompt, created_at
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            text,
            author or None,
            reference or None,
            source,
            category if category in VALID_CATEGORIES else None,
            language,
            int(is_premium),
            context or None,
            explanation or None,
            json.dumps(situations or [], ensure_ascii=False),
            json.dumps(tags or [], ensure_ascii=False),
            json.dumps(translations or {}, ensure_ascii=False),
            ai_prompt or None,
            now_ms(),
        ),
    )
    return cursor.lastrowid


def update_quote_translations(conn, quote_id: int, translations: Dict[str, Any]) -> None:
    cursor = conn.cursor()
    cursor.execute(
        "UPDATE quotes SET translations = ? WHERE id = ?",
        (json.dumps(translations, ensure_ascii=False), quote_id),
    )


def find_similar_quote(conn, text: str, language: str) -> Optional[int]:
    """Return the id of a recent quote whose text nearly equals text, if any."""
    target = text.strip().lower()
    if not target:
        return None
    cursor = conn.cursor()
    cursor.execute(
        "SELECT id, text FROM quotes WHERE language = ? ORDER BY id DESC LIMIT ?",
        (language, DUPLICATE_SCAN_LIMIT),
    )
    for row in cursor.fetchall():
        if lev_ratio(target, row["text"].strip().lower()) >= DUPLICATE_RATIO_THRESHOLD:
            return row["id"]
    return None


def add_favorite(conn, user_id: str, quote_id: int) -> Dict[str, Any]:
    cursor = conn.cursor()
    cursor.execute(
        "INSERT OR IGNORE INTO user_favorites (user_id, quote_id, created_at) VALUES (?, ?, ?)",
        (user_id, quote_id, now_ms()),
    )
    conn.commit()
    return {"success": True, "already_favorited": cursor.rowcount == 0}


def remove_favorite(conn, user_id: str, quote_id: int) -> Dict[str, Any]:
    cursor = conn.cursor()
    cursor.execute(
        "DELETE FROM user_favorites WHERE user_id = ? AND quote_id = ?",
        (user_id, quote_id),
    )
    conn.commit()
    return {"success": True, "removed": cursor.rowcount > 0}


def get_favorite_ids(conn, user_id: str) -> set:
    cursor = conn.cursor()
    cursor.execute("SELECT quote_id FROM user_favorites WHERE user_id = ?", (user_id,))
    return {row["quote_id"] for row in cursor.fetchall()}


def get_favorites(conn, user_id: str) -> List[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT q.*
        FROM user_favorites f
        JOIN quotes q ON q.id = f.quote_id
        WHERE f.user_id = ?
        ORDER BY f.created_at DESC
        """,
        (user_id,),
    )
    return [row_to_quote(row) for row in cursor.fetchall()]
