from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Set

from db.database import now_ms, utc_today
from utils.contexts import get_context, get_quotes_for_context
from utils.quotes import get_favorite_ids, row_to_quote

SEARCH_DEDUP_WINDOW_MS = 60_000
FREE_REUSE_DAYS = 30
PREMIUM_REUSE_DAYS = 180


def record_user_search(conn, user_id: str, search_context_id: int) -> int:
    """Record that a user searched a context.

    A repeat of the same context within a minute (double submit) only moves
    the timestamp of the existing row.
    """
    now = now_ms()
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT id FROM user_search_history
        WHERE user_id = ? AND search_context_id = ? AND searched_at > ?
        ORDER BY searched_at DESC
        LIMIT 1
        """,
        (user_id, search_context_id, now - SEARCH_DEDUP_WINDOW_MS),
    )
    recent = cursor.fetchone()
    if recent:
        cursor.execute(
            "UPDATE user_search_history SET searched_at = ? WHERE id = ?",
            (now, recent["id"]),
        )
        conn.commit()
        return recent["id"]
    cursor.execute(
        "INSERT INTO user_search_history (user_id, search_context_id, searched_at) VALUES (?, ?, ?)",
        (user_id, search_context_id, now),
    )
    conn.commit()
    return cursor.lastrowid


def record_quote_history(
    conn, user_id: str, quote_id: int, today: Optional[date] = None
) -> Dict[str, Any]:
    """Record that a quote was shown to a user today (once per day)."""
    shown_at = (today or utc_today()).isoformat()
    cursor = conn.cursor()
    cursor.execute(
        "INSERT OR IGNORE INTO user_quote_history (user_id, quote_id, shown_at) VALUES (?, ?, ?)",
        (user_id, quote_id, shown_at),
    )
    conn.commit()
    return {"success": True, "already_recorded": cursor.rowcount == 0}


def reuse_window_days(is_premium: bool, settings: Optional[Dict[str, Any]] = None) -> int:
    settings = settings or {}
    if is_premium:
        return int(settings.get("premium_reuse_days", PREMIUM_REUSE_DAYS))
    return int(settings.get("free_reuse_days", FREE_REUSE_DAYS))


def get_recent_quote_ids(conn, user_id: str, since: date) -> Set[int]:
    cursor = conn.cursor()
    cursor.execute(
        "SELECT DISTINCT quote_id FROM user_quote_history WHERE user_id = ? AND shown_at >= ?",
        (user_id, since.isoformat()),
    )
    return {row["quote_id"] for row in cursor.fetchall()}


def get_excluded_quote_ids(
    conn,
    user_id: Optional[str],
    is_premium: bool = False,
    today: Optional[date] = None,
    settings: Optional[Dict[str, Any]] = None,
) -> Set[int]:
    """Favorites plus everything shown to the user inside the reuse window."""
    if not user_id:
        return set()
    cutoff = (today or utc_today()) - timedelta(days=reuse_window_days(is_premium, settings))
    return get_favorite_ids(conn, user_id) | get_recent_quote_ids(conn, user_id, cutoff)


def get_daily_quote_history(conn, user_id: str, limit: int) -> List[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT h.shown_at, q.*
        FROM user_quote_history h
        JOIN quotes q ON q.id = h.quote_id
        WHERE h.user_id = ?
        ORDER BY h.shown_at DESC, h.id DESC
        LIMIT ?
        """,
        (user_id, limit),
    )
    return [
        {"shown_at": row["shown_at"], "quote": row_to_quote(row)}
        for row in cursor.fetchall()
    ]


def get_search_history(
    conn, user_id: str, search_limit: int = 5, quotes_per_search: int = 3
) -> List[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT search_context_id, searched_at
        FROM user_search_history
        WHERE user_id = ?
        ORDER BY searched_at DESC, id DESC
        LIMIT ?
        """,
        (user_id, search_limit),
    )
    results = []
    for row in cursor.fetchall():
        context = get_context(conn, row["search_context_id"])
        if not context:
            continue
        results.append(
            {
                "search_query": context["search_query"],
                "searched_at": row["searched_at"],
                "quotes": get_quotes_for_context(conn, context["id"], quotes_per_search),
            }
        )
    return results
