import random
from datetime import date, timedelta

import pytest

from conftest import add_category, add_quote, add_synonym_group
from utils.contexts import add_quote_context_mapping, save_search_context
from utils.history import get_excluded_quote_ids, record_quote_history
from utils.quotes import add_favorite
from utils.smart_search import quote_matches_text, shuffle_with_relevance_bias, smart_search

TODAY = date(2026, 3, 1)


def _context_with_quotes(conn, query, count, score=80, language="en", category_id=None):
    context_id = save_search_context(conn, query, query, language, category_id)
    quote_ids = []
    for index in range(count):
        quote_id = add_quote(conn, f"Placeholder saying number {index} of {count}", language=language)
        add_quote_context_mapping(conn, quote_id, context_id, score, False)
        quote_ids.append(quote_id)
    return context_id, quote_ids


def test_two_mappings_are_insufficient(conn):
    _context_with_quotes(conn, "lonely nights", 2)

    result = smart_search(conn, "Lonely nights", "en")

    assert result["source"] == "insufficient"
    assert result["needs_ai"] is True


def test_three_mappings_are_cached(conn):
    context_id, quote_ids = _context_with_quotes(conn, "lonely nights", 3)

    result = smart_search(conn, "Lonely nights!", "en", rng=random.Random(1))

    assert result["source"] == "cached"
    assert result["needs_ai"] is False
    assert result["context_id"] == context_id
    assert sorted(q["id"] for q in result["quotes"]) == sorted(quote_ids)
    assert all(q["relevance_score"] == 80 for q in result["quotes"])


def test_cached_results_capped_at_result_limit(conn):
    _context_with_quotes(conn, "lonely nights", 8)

    result = smart_search(conn, "lonely nights", "en")

    assert result["source"] == "cached"
    assert len(result["quotes"]) == 5


def test_favorites_are_never_returned(conn):
    _, quote_ids = _context_with_quotes(conn, "lonely nights", 4)
    add_favorite(conn, "user-1", quote_ids[0])

    result = smart_search(conn, "lonely nights", "en", user_id="user-1", today=TODAY)

    assert result["source"] == "cached"
    assert quote_ids[0] not in {q["id"] for q in result["quotes"]}


def test_recently_shown_quotes_excluded(conn):
    _, quote_ids = _context_with_quotes(conn, "lonely nights", 3)
    record_quote_history(conn, "user-1", quote_ids[0], today=TODAY - timedelta(days=10))

    result = smart_search(conn, "lonely nights", "en", user_id="user-1", today=TODAY)

    assert result["source"] == "insufficient"
    assert quote_ids[0] not in {q["id"] for q in result["quotes"]}


def test_reuse_windows_for_free_and_premium(conn):
    quote_id = add_quote(conn, "The Lord is my shepherd; I shall not want.")
    record_quote_history(conn, "free", quote_id, today=TODAY - timedelta(days=10))
    record_quote_history(conn, "premium", quote_id, today=TODAY - timedelta(days=10))
    record_quote_history(conn, "old", quote_id, today=TODAY - timedelta(days=40))
    record_quote_history(conn, "old-premium", quote_id, today=TODAY - timedelta(days=40))

    assert quote_id in get_excluded_quote_ids(conn, "free", False, TODAY)
    assert quote_id in get_excluded_quote_ids(conn, "premium", True, TODAY)
    assert quote_id not in get_excluded_quote_ids(conn, "old", False, TODAY)
    assert quote_id in get_excluded_quote_ids(conn, "old-premium", True, TODAY)
    assert get_excluded_quote_ids(conn, None, False, TODAY) == set()


def test_synonym_cross_match_is_penalized(conn):
    add_synonym_group(conn, "heartbreak", terms_en=["heartbreak", "breakup"])
    _context_with_quotes(conn, "heartbreak", 3, score=80)

    result = smart_search(conn, "breakup", "en")

    assert result["source"] == "cached"
    assert result["context_id"] is None
    assert result["synonyms_used"] is True
    assert all(q["relevance_score"] == pytest.approx(72) for q in result["quotes"])


def test_exact_match_keeps_raw_score_over_cross_match(conn):
    add_synonym_group(conn, "heartbreak", terms_en=["heartbreak", "breakup"])
    exact_id, quote_ids = _context_with_quotes(conn, "breakup", 3, score=70)
    cross_id = save_search_context(conn, "heartbreak", "heartbreak", "en")
    add_quote_context_mapping(conn, quote_ids[0], cross_id, 100, False)

    result = smart_search(conn, "breakup", "en")

    scores = {q["id"]: q["relevance_score"] for q in result["quotes"]}
    assert result["context_id"] == exact_id
    assert scores[quote_ids[0]] == pytest.approx(90)
    assert scores[quote_ids[1]] == 70


def test_category_tier(conn):
    work_id = add_category(conn, "work", keywords_en=["job", "boss", "office"])
    _context_with_quotes(conn, "job stress", 3, score=75, category_id=work_id)

    result = smart_search(conn, "boss yelling", "en")

    assert result["source"] == "category"
    assert result["category"]["name"] == "work"
    assert len(result["quotes"]) == 3
    assert all(q["is_ai_generated"] is False for q in result["quotes"])


def test_full_text_tier_assigns_flat_score(conn):
    for text in ("Give thanks in all circumstances.", "Gratitude turns what we have into enough.", "A grateful heart is a magnet."):
        add_quote(conn, text, tags=["gratitude"])
    add_quote(conn, "Unrelated words about weather.")

    result = smart_search(conn, "gratitude", "en")

    assert result["source"] == "database"
    assert len(result["quotes"]) == 3
    assert all(q["relevance_score"] == 50 for q in result["quotes"])


def test_full_text_searches_translations_and_returns_partial(conn):
    quote_id = add_quote(
        conn,
        "Give thanks to the Lord, for he is good.",
        translations={"de": {"text": "Danket dem Herrn, denn er ist freundlich.", "tags": ["Dankbarkeit"]}},
    )

    result = smart_search(conn, "Dankbarkeit", "de")

    assert result["source"] == "insufficient"
    assert [q["id"] for q in result["quotes"]] == [quote_id]


def test_quote_matches_text_keywords_only_hit_primary_fields():
    quote = {
        "text": "Peace I leave with you.",
        "context": "Spoken at the last supper",
        "tags": [],
        "situations": [],
        "translations": {},
    }

    assert quote_matches_text(quote, "last supper", [])
    assert not quote_matches_text(quote, "", ["supper"])
    assert quote_matches_text(quote, "", ["peace"])


def test_smart_search_does_not_write(conn):
    _context_with_quotes(conn, "lonely nights", 3)
    cursor = conn.cursor()
    before = cursor.execute("SELECT search_count, last_used_at FROM search_contexts").fetchall()

    smart_search(conn, "lonely nights", "en", user_id="user-1", today=TODAY)

    after = cursor.execute("SELECT search_count, last_used_at FROM search_contexts").fetchall()
    assert [tuple(row) for row in before] == [tuple(row) for row in after]


def test_shuffle_keeps_band_order():
    quotes = [{"id": i, "relevance_score": score} for i, score in enumerate([50, 90, 65, 85, 55, 79, 80])]

    for seed in range(10):
        shuffled = shuffle_with_relevance_bias(quotes, rng=random.Random(seed))
        scores = [q["relevance_score"] for q in shuffled]
        assert sorted(scores[:3]) == [80, 85, 90]
        assert sorted(scores[3:5]) == [65, 79]
        assert sorted(scores[5:]) == [50, 55]
