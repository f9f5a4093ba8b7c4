from datetime import date, timedelta

from conftest import add_quote
from utils.contexts import add_quote_context_mapping, save_search_context
from utils.history import (
    get_daily_quote_history,
    get_search_history,
    record_quote_history,
    record_user_search,
)

TODAY = date(2026, 3, 1)


def test_record_user_search_deduplicates_double_submit(conn):
    context_id = save_search_context(conn, "grief", "grief", "en")

    first = record_user_search(conn, "user-1", context_id)
    second = record_user_search(conn, "user-1", context_id)

    assert first == second
    cursor = conn.cursor()
    assert cursor.execute("SELECT COUNT(*) FROM user_search_history").fetchone()[0] == 1


def test_record_user_search_after_window_adds_row(conn):
    context_id = save_search_context(conn, "grief", "grief", "en")
    first = record_user_search(conn, "user-1", context_id)
    conn.execute("UPDATE user_search_history SET searched_at = searched_at - 120000 WHERE id = ?", (first,))
    conn.commit()

    second = record_user_search(conn, "user-1", context_id)

    assert second != first


def test_record_quote_history_once_per_day(conn):
    quote_id = add_quote(conn, "Come to me, all you who are weary.")

    assert record_quote_history(conn, "user-1", quote_id, TODAY)["already_recorded"] is False
    assert record_quote_history(conn, "user-1", quote_id, TODAY)["already_recorded"] is True
    assert record_quote_history(conn, "user-1", quote_id, TODAY + timedelta(days=1))["already_recorded"] is False

    cursor = conn.cursor()
    assert cursor.execute("SELECT COUNT(*) FROM user_quote_history").fetchone()[0] == 2


def test_daily_history_is_newest_first_and_limited(conn):
    for offset in range(5):
        quote_id = add_quote(conn, f"Daily reading number {offset}")
        record_quote_history(conn, "user-1", quote_id, TODAY - timedelta(days=offset))

    entries = get_daily_quote_history(conn, "user-1", 3)

    assert [entry["shown_at"] for entry in entries] == ["2026-03-01", "2026-02-28", "2026-02-27"]
    assert entries[0]["quote"]["text"] == "Daily reading number 0"


def test_search_history_includes_mapped_quotes(conn):
    context_id = save_search_context(conn, "Lonely nights", "lonely nights", "en")
    for score in (90, 70, 60, 50):
        quote_id = add_quote(conn, f"Comfort in the night, score {score}")
        add_quote_context_mapping(conn, quote_id, context_id, score, True)
    record_user_search(conn, "user-1", context_id)

    history = get_search_history(conn, "user-1")

    assert len(history) == 1
    assert history[0]["search_query"] == "Lonely nights"
    assert [q["relevance_score"] for q in history[0]["quotes"]] == [90, 70, 60]
