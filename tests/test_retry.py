import sqlite3

import pytest

from utils.retry import with_retry


def test_retries_transient_errors_with_growing_delay():
    delays = []
    attempts = {"count": 0}

    def flaky():
        attempts["count"] += 1
        if attempts["count"] < 3:
            raise sqlite3.OperationalError("database is locked")
        return "saved"

    assert with_retry(flaky, sleep=delays.append) == "saved"
    assert delays == [0.5, 1.0]


def test_gives_up_after_all_delays():
    delays = []

    def always_locked():
        raise sqlite3.OperationalError("database is locked")

    with pytest.raises(sqlite3.OperationalError):
        with_retry(always_locked, sleep=delays.append)
    assert delays == [0.5, 1.0, 2.0]


def test_other_errors_propagate_immediately():
    delays = []

    def broken():
        raise sqlite3.IntegrityError("constraint failed")

    with pytest.raises(sqlite3.IntegrityError):
        with_retry(broken, sleep=delays.append)
    assert delays == []
