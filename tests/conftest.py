import json
from pathlib import Path

import pytest

import config
from db import database
from utils.quotes import insert_quote

TEST_CONFIG = """
[llm]
api_url = "https://llm.test/v1/chat/completions"
api_key = ""
model = "test/model"
timeout = 5

[search]
max_searches_per_day = 10
max_ai_searches_per_day = 10

[session]
secret = "test-secret"
session_minutes = 60

[admin]
token = "admin-token"

[logging]
level = "WARNING"
"""

ENV_OVERRIDES = (
    "OPENROUTER_API_KEY",
    "LLM_MODEL",
    "LLM_API_URL",
    "LLM_TIMEOUT",
    "SESSION_SECRET",
    "ADMIN_TOKEN",
    "MAX_SEARCHES_PER_DAY",
    "MAX_AI_SEARCHES_PER_DAY",
    "LOG_LEVEL",
)


@pytest.fixture
def app_env(tmp_path, monkeypatch) -> Path:
    """Point config and database at a temporary directory."""
    config_dir = tmp_path / ".solace"
    config_dir.mkdir()
    config_path = config_dir / "config.toml"
    config_path.write_text(TEST_CONFIG, encoding="utf-8")

    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_path)
    monkeypatch.setattr(database, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(database, "DB_PATH", config_dir / "solace.db")
    database.init_db()
    return config_dir


@pytest.fixture
def conn(app_env):
    with database.get_conn() as connection:
        yield connection


def add_quote(conn, text, language="en", **fields):
    quote_id = insert_quote(conn, text=text, language=language, **fields)
    conn.commit()
    return quote_id


def add_category(conn, name, keywords_en=(), keywords_de=()):
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO search_categories (name, display_name_de, display_name_en, keywords_de, keywords_en)
        VALUES (?, ?, ?, ?, ?)
        """,
        (name, name.title(), name.title(), json.dumps(list(keywords_de)), json.dumps(list(keywords_en))),
    )
    conn.commit()
    return cursor.lastrowid


def add_synonym_group(conn, name, terms_en=(), terms_de=()):
    cursor = conn.cursor()
    cursor.execute(
        "INSERT INTO synonym_groups (group_name, terms_de, terms_en) VALUES (?, ?, ?)",
        (name, json.dumps(list(terms_de)), json.dumps(list(terms_en))),
    )
    conn.commit()
    return cursor.lastrowid
