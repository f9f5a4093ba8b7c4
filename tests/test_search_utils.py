from utils.search import context_key, extract_keywords, keywords_overlap, normalize_query


def test_normalize_query_strips_punctuation_and_short_words():
    assert normalize_query("Ich habe Liebeskummer!") == "ich habe liebeskummer"
    assert normalize_query("I am   so tired, of it.") == "tired"


def test_normalize_query_keeps_umlauts_and_sharp_s():
    assert normalize_query("Ärger über die Straße") == "ärger über die straße"


def test_normalize_query_is_idempotent():
    once = normalize_query("  Stress at WORK -- again?? ")
    assert normalize_query(once) == once


def test_normalize_query_preserves_word_order():
    assert normalize_query("mother city") != normalize_query("city mother")


def test_normalize_query_empty_input():
    assert normalize_query("") == ""
    assert normalize_query(None) == ""
    assert normalize_query("!!! ok") == ""


def test_extract_keywords_matches_normalized_words():
    assert extract_keywords("Fear of the future.") == ["fear", "the", "future"]


def test_context_key_falls_back_for_short_queries():
    assert context_key("Liebeskummer") == "liebeskummer"
    assert context_key("  OK  ") == "ok"


def test_keywords_overlap_is_substring_either_way():
    assert keywords_overlap(["heart"], ["heartbreak"])
    assert keywords_overlap(["heartbreak"], ["heart"])
    assert not keywords_overlap(["stress"], ["grief"])
    assert not keywords_overlap([], ["grief"])
