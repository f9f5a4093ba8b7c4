from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from utils.quotes import insert_quote

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).resolve().parents[1] / "data"


def load_seed_file(name: str, key: str) -> List[Dict[str, Any]]:
    with (_DATA_DIR / name).open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    return payload.get(key, [])


def _table_has_rows(conn, table: str) -> bool:
    cursor = conn.cursor()
    cursor.execute(f"SELECT COUNT(*) FROM {table}")
    return bool((cursor.fetchone() or [0])[0])


def seed_categories(conn) -> int:
    if _table_has_rows(conn, "search_categories"):
        return 0
    categories = load_seed_file("categories.json", "categories")
    conn.executemany(
        """
        INSERT INTO search_categories (name, display_name_de, display_name_en, keywords_de, keywords_en)
        VALUES (?, ?, ?, ?, ?)
        """,
        [
            (
                entry["name"],
                entry["display_name_de"],
                entry["display_name_en"],
                json.dumps(entry["keywords_de"], ensure_ascii=False),
                json.dumps(entry["keywords_en"], ensure_ascii=False),
            )
            for entry in categories
        ],
    )
    conn.commit()
    return len(categories)


def seed_synonym_groups(conn) -> int:
    if _table_has_rows(conn, "synonym_groups"):
        return 0
    groups = load_seed_file("synonyms.json", "synonym_groups")
    conn.executemany(
        "INSERT INTO synonym_groups (group_name, terms_de, terms_en) VALUES (?, ?, ?)",
        [
            (
                entry["group_name"],
                json.dumps(entry["terms_de"], ensure_ascii=False),
                json.dumps(entry["terms_en"], ensure_ascii=False),
            )
            for entry in groups
        ],
    )
    conn.commit()
    return len(groups)


def seed_quotes(conn) -> int:
    if _table_has_rows(conn, "quotes"):
        return 0
    quotes = load_seed_file("quotes.json", "quotes")
    for entry in quotes:
        insert_quote(
            conn,
            text=entry["text"],
            language=entry["language"],
            source="static",
            author=entry.get("author"),
            reference=entry.get("reference"),
            category=entry.get("category"),
            context=entry.get("context"),
            explanation=entry.get("explanation"),
            situations=entry.get("situations"),
            tags=entry.get("tags"),
            translations=entry.get("translations"),
        )
    conn.commit()
    return len(quotes)


def seed_all(conn) -> Dict[str, int]:
    """Seed each empty static table; tables with rows are left untouched."""
    counts = {
        "categories": seed_categories(conn),
        "synonym_groups": seed_synonym_groups(conn),
        "quotes": seed_quotes(conn),
    }
    if any(counts.values()):
        logger.info(f"Seeded {counts}")
    return counts
