from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from db.database import now_ms, utc_today
from models.search import RateLimitStatus

MAX_SEARCHES_PER_DAY = 10
MAX_AI_SEARCHES_PER_DAY = 10


def _limits(settings: Optional[Dict[str, Any]]) -> tuple:
    settings = settings or {}
    return (
        int(settings.get("max_searches_per_day", MAX_SEARCHES_PER_DAY)),
        int(settings.get("max_ai_searches_per_day", MAX_AI_SEARCHES_PER_DAY)),
    )


def check_rate_limit(
    conn,
    user_id: str,
    today: Optional[date] = None,
    settings: Optional[Dict[str, Any]] = None,
) -> RateLimitStatus:
    """Read today's counters for a user; a missing row means nothing used yet."""
    max_searches, max_ai_searches = _limits(settings)
    cursor = conn.cursor()
    cursor.execute(
        "SELECT search_count, ai_search_count FROM user_search_limits WHERE user_id = ? AND date = ?",
        (user_id, (today or utc_today()).isoformat()),
    )
    row = cursor.fetchone()
    search_count = row["search_count"] if row else 0
    ai_search_count = row["ai_search_count"] if row else 0
    return RateLimitStatus(
        search_count=search_count,
        ai_search_count=ai_search_count,
        max_searches=max_searches,
        max_ai_searches=max_ai_searches,
        can_search=search_count < max_searches,
        can_use_ai=ai_search_count < max_ai_searches,
        remaining=max(0, max_searches - search_count),
    )


def _increment(conn, user_id: str, column: str, today: Optional[date]) -> int:
    day = (today or utc_today()).isoformat()
    now = now_ms()
    search_init = 1 if column == "search_count" else 0
    ai_init = 1 if column == "ai_search_count" else 0
    cursor = conn.cursor()
    cursor.execute(
        f"""
        INSERT INTO user_search_limits (user_id, date, search_count, ai_search_count, last_search_at)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT (user_id, date) DO UPDATE SET
            {column} = {column} + 1,
            last_search_at = excluded.last_search_at
        """,
        (user_id, day, search_init, ai_init, now),
    )
    cursor.execute(
        f"SELECT {column} FROM user_search_limits WHERE user_id = ? AND date = ?",
        (user_id, day),
    )
    new_count = cursor.fetchone()[0]
    conn.commit()
    return new_count


def increment_search_count(conn, user_id: str, today: Optional[date] = None) -> int:
    """Count one search attempt for today and return the new total."""
    return _increment(conn, user_id, "search_count", today)


def increment_ai_search_count(conn, user_id: str, today: Optional[date] = None) -> int:
    """Count one AI generation for today and return the new total."""
    return _increment(conn, user_id, "ai_search_count", today)
