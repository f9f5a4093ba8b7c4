import json

import pytest
from fastapi.testclient import TestClient

from db import database
from main import app
from utils.auth import create_session_token
from utils.seed import seed_all

ADMIN = {"X-Admin-Token": "admin-token"}

GENERATED = [
    {
        "en": {
            "text": "Be strong and courageous; do not be afraid.",
            "reference": "Joshua 1:9",
            "type": "bible",
            "tags": ["courage"],
            "relevantQueries": ["fear of surgery"],
        },
        "de": {
            "text": "Sei stark und mutig; fürchte dich nicht.",
            "reference": "Josua 1,9",
            "tags": ["Mut"],
        },
        "relevanceScore": 88,
    }
]


def _auth(user_id="user-1", is_premium=False):
    token = create_session_token(user_id, "test-secret", 60, is_premium)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(app_env):
    with database.get_conn() as conn:
        seed_all(conn)
    return TestClient(app)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_anonymous_search_uses_seeded_quotes(client):
    response = client.post("/search", json={"query": "trust", "language": "en"})

    assert response.status_code == 200
    data = response.json()
    assert data["source"] == "database"
    assert data["rate_limit"] is None
    assert "Proverbs 3:5" in [quote["reference"] for quote in data["quotes"]]


def test_blank_query_is_rejected(client):
    assert client.post("/search", json={"query": "   "}).status_code == 400


def test_signed_in_search_generates_with_ai(client, monkeypatch):
    prompts = []

    def fake_llm(prompt):
        prompts.append(prompt)
        return json.dumps(GENERATED, ensure_ascii=False)

    monkeypatch.setattr("utils.orchestrator.call_llm", fake_llm)

    response = client.post("/search", json={"query": "Angst vor der Operation", "language": "de"}, headers=_auth())

    assert response.status_code == 200
    data = response.json()
    assert data["source"] == "ai"
    assert data["was_ai_generated"] is True
    assert data["quotes"][0]["text"] == "Sei stark und mutig; fürchte dich nicht."
    assert data["rate_limit"]["search_count"] == 1
    assert data["rate_limit"]["ai_search_count"] == 1
    assert len(prompts) == 1


def test_signed_in_search_without_api_key_is_unavailable(client):
    response = client.post("/search", json={"query": "zebra migration patterns"}, headers=_auth())

    assert response.status_code == 503


def test_rate_limit_requires_session(client):
    assert client.get("/search/rate-limit").status_code == 401

    data = client.get("/search/rate-limit", headers=_auth()).json()
    assert data["search_count"] == 0
    assert data["remaining"] == 10


def test_categories_and_synonyms(client):
    categories = client.get("/search/categories").json()
    assert len(categories) == 10

    expanded = client.post("/search/synonyms", json={"terms": ["sad"], "language": "en"}).json()
    assert expanded["original_terms"] == ["sad"]
    assert "sad" in expanded["expanded_terms"]


def test_daily_quote_and_seen(client):
    daily = client.get("/quotes/daily", params={"language": "en"}, headers=_auth())
    assert daily.status_code == 200
    quote_id = daily.json()["id"]

    assert client.get("/quotes/daily").json()["id"] == quote_id
    assert client.get(f"/quotes/{quote_id}").json()["id"] == quote_id
    assert client.get("/quotes/99999").status_code == 404

    seen = client.post(f"/quotes/{quote_id}/seen", headers=_auth())
    assert seen.json()["already_recorded"] is True


def test_favorites_round_trip(client):
    headers = _auth()
    quote_id = client.get("/quotes/daily").json()["id"]

    assert client.get("/favorites").status_code == 401
    assert client.post("/favorites/99999", headers=headers).status_code == 404
    assert client.post(f"/favorites/{quote_id}", headers=headers).json()["already_favorited"] is False
    assert [quote["id"] for quote in client.get("/favorites", headers=headers).json()] == [quote_id]
    assert client.delete(f"/favorites/{quote_id}", headers=headers).json()["removed"] is True
    assert client.get("/favorites", headers=headers).json() == []


def test_history_limits_depend_on_premium(client):
    client.get("/quotes/daily", headers=_auth())

    free = client.get("/history/daily", headers=_auth()).json()
    assert free["limit"] == 3
    assert len(free["entries"]) == 1
    assert client.get("/history/searches", headers=_auth()).status_code == 403

    premium = client.get("/history/daily", headers=_auth(is_premium=True)).json()
    assert premium["limit"] == 7
    assert client.get("/history/searches", headers=_auth(is_premium=True)).json() == {"entries": []}


def test_admin_requires_token(client):
    assert client.post("/admin/seed").status_code == 403
    assert client.post("/admin/seed", headers={"X-Admin-Token": "wrong"}).status_code == 403

    seeded = client.post("/admin/seed", headers=ADMIN).json()
    assert seeded == {"categories": 0, "synonym_groups": 0, "quotes": 0}


def test_admin_reset_clears_user_data(client):
    client.get("/quotes/daily", headers=_auth())

    data = client.post("/admin/reset", headers=ADMIN).json()

    assert data["success"] is True
    assert data["deleted"]["daily_quotes"] == 1
    assert data["deleted"]["user_quote_history"] == 1


def test_admin_backfill_dry_run(client):
    data = client.post("/admin/translations/backfill", json={"dry_run": True}, headers=ADMIN).json()

    assert data == {"dry_run": True, "quotes_found": 0, "quotes": []}
