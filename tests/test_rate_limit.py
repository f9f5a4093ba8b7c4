from datetime import date, timedelta

from utils.rate_limit import check_rate_limit, increment_ai_search_count, increment_search_count

TODAY = date(2026, 3, 1)


def test_fresh_user_has_full_quota(conn):
    status = check_rate_limit(conn, "user-1", TODAY)

    assert status.search_count == 0
    assert status.ai_search_count == 0
    assert status.can_search is True
    assert status.can_use_ai is True
    assert status.remaining == 10


def test_increment_returns_new_count(conn):
    assert increment_search_count(conn, "user-1", TODAY) == 1
    assert increment_search_count(conn, "user-1", TODAY) == 2
    assert increment_ai_search_count(conn, "user-1", TODAY) == 1

    status = check_rate_limit(conn, "user-1", TODAY)
    assert status.search_count == 2
    assert status.ai_search_count == 1


def test_ai_counter_starts_its_own_row(conn):
    assert increment_ai_search_count(conn, "user-1", TODAY) == 1

    status = check_rate_limit(conn, "user-1", TODAY)
    assert status.search_count == 0
    assert status.ai_search_count == 1


def test_limit_boundary_and_next_day_reset(conn):
    for _ in range(9):
        increment_search_count(conn, "user-1", TODAY)
    assert check_rate_limit(conn, "user-1", TODAY).can_search is True

    increment_search_count(conn, "user-1", TODAY)
    status = check_rate_limit(conn, "user-1", TODAY)
    assert status.can_search is False
    assert status.remaining == 0

    tomorrow = check_rate_limit(conn, "user-1", TODAY + timedelta(days=1))
    assert tomorrow.can_search is True
    assert tomorrow.search_count == 0


def test_single_row_per_user_and_day(conn):
    for _ in range(3):
        increment_search_count(conn, "user-1", TODAY)
        increment_ai_search_count(conn, "user-1", TODAY)

    cursor = conn.cursor()
    cursor.execute("SELECT COUNT(*) FROM user_search_limits WHERE user_id = 'user-1'")
    assert cursor.fetchone()[0] == 1


def test_limits_come_from_settings(conn):
    increment_search_count(conn, "user-1", TODAY)

    status = check_rate_limit(
        conn, "user-1", TODAY, {"max_searches_per_day": 1, "max_ai_searches_per_day": 0}
    )
    assert status.can_search is False
    assert status.can_use_ai is False
    assert status.max_searches == 1
