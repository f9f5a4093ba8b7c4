import json
import sqlite3
import time
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict

from .schema import SCHEMA_SQL, INDEXES_SQL, SCHEMA_VERSION

CONFIG_DIR = Path.home() / ".solace"
DB_PATH = CONFIG_DIR / "solace.db"

# Tables holding per-user state; cleared by reset_user_data.
USER_DATA_TABLES = (
    "user_favorites",
    "user_quote_history",
    "user_search_limits",
    "user_search_history",
    "daily_quotes",
)


def init_db():
    """Initialize the database by creating tables and indexes if they don't exist."""
    CONFIG_DIR.mkdir(exist_ok=True)
    with get_conn() as conn:
        conn.executescript(SCHEMA_SQL)
        conn.executescript(INDEXES_SQL)
        ensure_quote_category(conn)
        ensure_quote_ai_prompt(conn)
        ensure_schema_version(conn)
        conn.commit()


def ensure_quote_category(conn: sqlite3.Connection) -> None:
    """Ensure quotes table has the content type column for existing installs."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA table_info(quotes)")
    columns = {row[1] for row in cursor.fetchall()}
    if "category" not in columns:
        cursor.execute("ALTER TABLE quotes ADD COLUMN category TEXT")


def ensure_quote_ai_prompt(conn: sqlite3.Connection) -> None:
    """Ensure quotes table has the ai_prompt trace column."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA table_info(quotes)")
    columns = {row[1] for row in cursor.fetchall()}
    if "ai_prompt" not in columns:
        cursor.execute("ALTER TABLE quotes ADD COLUMN ai_prompt TEXT")


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Read the SQLite schema version from PRAGMA user_version."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA user_version")
    row = cursor.fetchone()
    return int(row[0]) if row else 0


def set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Set the SQLite schema version via PRAGMA user_version."""
    conn.execute(f"PRAGMA user_version = {int(version)}")


def ensure_schema_version(conn: sqlite3.Connection) -> None:
    """Ensure the current schema version is written to the database."""
    current = get_schema_version(conn)
    if current != SCHEMA_VERSION:
        set_schema_version(conn, SCHEMA_VERSION)


def reset_user_data(conn: sqlite3.Connection) -> Dict[str, int]:
    """Delete all per-user rows (favorites, history, limits, daily picks).

    Quotes, categories, synonyms and search contexts are kept.
    """
    cursor = conn.cursor()
    deleted = {}
    for table in USER_DATA_TABLES:
        cursor.execute(f"DELETE FROM {table}")
        deleted[table] = cursor.rowcount
    conn.commit()
    return deleted


def decode_json(value: Any, default: Any) -> Any:
    """Decode a JSON text column, falling back to default for NULL or bad data."""
    if value is None or value == "":
        return default
    try:
        decoded = json.loads(value)
    except (TypeError, ValueError):
        return default
    return decoded if isinstance(decoded, type(default)) else default


def now_ms() -> int:
    """Current time as integer milliseconds since the epoch."""
    return int(time.time() * 1000)


def utc_today() -> date:
    """Today's calendar date in UTC."""
    return datetime.now(timezone.utc).date()


@contextmanager
def get_conn():
    """Context manager for SQLite connection, using row_factory for dict-like rows."""
    conn = sqlite3.connect(DB_PATH, detect_types=sqlite3.PARSE_DECLTYPES, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def get_db():
    """FastAPI dependency that yields a DB connection and closes it afterwards."""
    with get_conn() as conn:
        yield conn
