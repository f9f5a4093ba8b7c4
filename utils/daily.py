import logging
import random
from datetime import date
from typing import Any, Dict, List, Optional

from db.database import now_ms, utc_today
from utils.history import record_quote_history
from utils.quotes import get_quote, row_to_quote

logger = logging.getLogger(__name__)

DAILY_REPEAT_DAYS = 30
DEDUP_PREFIX_LENGTH = 50


def _recent_daily_ids(conn, language: str) -> set:
    cursor = conn.cursor()
    cursor.execute(
        "SELECT quote_id FROM daily_quotes WHERE language = ? ORDER BY date DESC LIMIT ?",
        (language, DAILY_REPEAT_DAYS),
    )
    return {row["quote_id"] for row in cursor.fetchall()}


def daily_candidates(conn, language: str) -> List[Dict[str, Any]]:
    """Quotes in the language first, then English ones, deduplicated by text prefix."""
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT * FROM quotes
        WHERE language = ? OR language = 'en'
        ORDER BY CASE WHEN language = ? THEN 0 ELSE 1 END, id
        """,
        (language, language),
    )
    seen = set()
    candidates = []
    for row in cursor.fetchall():
        key = row["text"].lower()[:DEDUP_PREFIX_LENGTH]
        if key in seen:
            continue
        seen.add(key)
        candidates.append(row_to_quote(row))
    return candidates


def _stored_daily(conn, day: str, language: str) -> Optional[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        "SELECT quote_id FROM daily_quotes WHERE date = ? AND language = ?",
        (day, language),
    )
    row = cursor.fetchone()
    return get_quote(conn, row["quote_id"]) if row else None


def ensure_daily_quote(
    conn,
    language: str,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> Optional[Dict[str, Any]]:
    """Return today's quote for a language, picking and storing it if needed.

    Everyone gets the same quote per date and language. Quotes picked in the
    last 30 daily selections are skipped unless nothing else is left.
    """
    day = (today or utc_today()).isoformat()
    existing = _stored_daily(conn, day, language)
    if existing:
        return existing

    candidates = daily_candidates(conn, language)
    if not candidates:
        logger.warning(f"No quotes available for daily selection ({language})")
        return None
    recent = _recent_daily_ids(conn, language)
    available = [quote for quote in candidates if quote["id"] not in recent] or candidates
    chosen = (rng or random.Random()).choice(available)

    cursor = conn.cursor()
    # A concurrent request may have stored today's pick first; its choice wins.
    cursor.execute(
        """
        INSERT INTO daily_quotes (date, language, quote_id, selected_at)
        VALUES (?, ?, ?, ?)
        ON CONFLICT (date, language) DO NOTHING
        """,
        (day, language, chosen["id"], now_ms()),
    )
    conn.commit()
    return _stored_daily(conn, day, language)


def get_daily_quote(
    conn,
    language: str,
    user_id: Optional[str] = None,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> Optional[Dict[str, Any]]:
    """Today's quote; a signed-in user also gets it recorded in their history."""
    quote = ensure_daily_quote(conn, language, today, rng)
    if quote and user_id:
        record_quote_history(conn, user_id, quote["id"], today)
    return quote
