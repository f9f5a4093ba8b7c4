# SQL schema for Solace database

SCHEMA_VERSION = 3

SCHEMA_SQL = """
-- Quotes (static seed data and AI generated)
CREATE TABLE IF NOT EXISTS quotes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    text TEXT NOT NULL,
    author TEXT,
    reference TEXT,
    source TEXT NOT NULL DEFAULT 'static' CHECK(source IN ('static', 'ai_generated')),
    category TEXT CHECK(category IN ('bible', 'quote', 'saying', 'poem')),
    language TEXT NOT NULL,
    is_premium INTEGER NOT NULL DEFAULT 0,
    context TEXT,
    explanation TEXT,
    situations TEXT NOT NULL DEFAULT '[]',
    tags TEXT NOT NULL DEFAULT '[]',
    translations TEXT NOT NULL DEFAULT '{}',
    ai_prompt TEXT,
    created_at INTEGER NOT NULL
);

-- Search categories (static taxonomy)
CREATE TABLE IF NOT EXISTS search_categories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT UNIQUE NOT NULL,
    display_name_de TEXT NOT NULL,
    display_name_en TEXT NOT NULL,
    keywords_de TEXT NOT NULL DEFAULT '[]',
    keywords_en TEXT NOT NULL DEFAULT '[]'
);

-- Search contexts (distinct normalized queries)
CREATE TABLE IF NOT EXISTS search_contexts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    search_query TEXT NOT NULL,
    normalized_query TEXT NOT NULL,
    category_id INTEGER,
    language TEXT NOT NULL,
    search_count INTEGER NOT NULL DEFAULT 1,
    created_at INTEGER NOT NULL,
    last_used_at INTEGER NOT NULL,
    UNIQUE (normalized_query, language),
    FOREIGN KEY (category_id) REFERENCES search_categories (id) ON DELETE SET NULL
);

-- Quote/context edges
CREATE TABLE IF NOT EXISTS quote_context_mappings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    quote_id INTEGER NOT NULL,
    context_id INTEGER NOT NULL,
    relevance_score REAL NOT NULL CHECK(relevance_score BETWEEN 0 AND 100),
    is_ai_generated INTEGER NOT NULL DEFAULT 0,
    created_at INTEGER NOT NULL,
    UNIQUE (quote_id, context_id),
    FOREIGN KEY (quote_id) REFERENCES quotes (id) ON DELETE CASCADE,
    FOREIGN KEY (context_id) REFERENCES search_contexts (id) ON DELETE CASCADE
);

-- Daily search quota per user
CREATE TABLE IF NOT EXISTS user_search_limits (
    user_id TEXT NOT NULL,
    date TEXT NOT NULL,
    search_count INTEGER NOT NULL DEFAULT 0,
    ai_search_count INTEGER NOT NULL DEFAULT 0,
    last_search_at INTEGER NOT NULL,
    PRIMARY KEY (user_id, date)
);

-- Quotes shown to a user
CREATE TABLE IF NOT EXISTS user_quote_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    quote_id INTEGER NOT NULL,
    shown_at TEXT NOT NULL,
    UNIQUE (user_id, quote_id, shown_at),
    FOREIGN KEY (quote_id) REFERENCES quotes (id) ON DELETE CASCADE
);

-- Searches performed by a user
CREATE TABLE IF NOT EXISTS user_search_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    search_context_id INTEGER NOT NULL,
    searched_at INTEGER NOT NULL,
    FOREIGN KEY (search_context_id) REFERENCES search_contexts (id) ON DELETE CASCADE
);

-- Saved quotes
CREATE TABLE IF NOT EXISTS user_favorites (
    user_id TEXT NOT NULL,
    quote_id INTEGER NOT NULL,
    created_at INTEGER NOT NULL,
    PRIMARY KEY (user_id, quote_id),
    FOREIGN KEY (quote_id) REFERENCES quotes (id) ON DELETE CASCADE
);

-- Curated synonym groups
CREATE TABLE IF NOT EXISTS synonym_groups (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    group_name TEXT UNIQUE NOT NULL,
    terms_de TEXT NOT NULL DEFAULT '[]',
    terms_en TEXT NOT NULL DEFAULT '[]'
);

-- One quote of the day per date and language, shared by all users
CREATE TABLE IF NOT EXISTS daily_quotes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT NOT NULL,
    language TEXT NOT NULL,
    quote_id INTEGER NOT NULL,
    selected_at INTEGER NOT NULL,
    UNIQUE (date, language),
    FOREIGN KEY (quote_id) REFERENCES quotes (id) ON DELETE CASCADE
);
"""

# Indexes for performance
INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_quotes_language ON quotes (language);
CREATE INDEX IF NOT EXISTS idx_quotes_source ON quotes (source);
CREATE INDEX IF NOT EXISTS idx_quotes_language_source ON quotes (language, source);
CREATE INDEX IF NOT EXISTS idx_contexts_category ON search_contexts (category_id);
CREATE INDEX IF NOT EXISTS idx_contexts_language_used ON search_contexts (language, last_used_at);
CREATE INDEX IF NOT EXISTS idx_mappings_context ON quote_context_mappings (context_id, relevance_score);
CREATE INDEX IF NOT EXISTS idx_mappings_quote ON quote_context_mappings (quote_id);
CREATE INDEX IF NOT EXISTS idx_quote_history_user_date ON user_quote_history (user_id, shown_at);
CREATE INDEX IF NOT EXISTS idx_search_history_user_date ON user_search_history (user_id, searched_at);
CREATE INDEX IF NOT EXISTS idx_favorites_user ON user_favorites (user_id);
CREATE INDEX IF NOT EXISTS idx_daily_quotes_language ON daily_quotes (language, date);
"""
