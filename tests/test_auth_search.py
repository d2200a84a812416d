"""
Tests for /api/auth/login and /api/search.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from bugboy.faults import FaultInjector
from bugboy.main import create_app
from bugboy.routes.auth import MAX_ATTEMPTS
from bugboy.store import MockStore

SARAH = {"email": "sarah.chen@company.com", "password": "admin123"}


def login(client, **overrides):
    return client.post("/api/auth/login", json={**SARAH, **overrides})


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


class TestLogin:
    def test_login(self, client, store):
        resp = login(client)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["token"].startswith("sess_")
        assert data["user"] == {
            "id": "usr_1a2b3c",
            "email": "sarah.chen@company.com",
            "name": "Sarah Chen",
            "role": "admin",
        }
        assert data["token"] in store.sessions
        assert store.users.get("usr_1a2b3c")["last_login_at"].year >= 2025

    def test_remember_me_extends_session(self, client):
        expires = datetime.fromisoformat(login(client, rememberMe=True).json()["data"]["expiresAt"])
        assert expires - datetime.now(timezone.utc) > timedelta(days=29)

    def test_email_is_case_insensitive(self, client):
        assert login(client, email="Sarah.Chen@Company.com").status_code == 200

    def test_wrong_password(self, client):
        resp = login(client, password="nope")
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid email or password"

    def test_unknown_email_same_answer(self, client):
        resp = login(client, email="nobody@company.com")
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid email or password"

    def test_missing_fields(self, client):
        resp = client.post("/api/auth/login", json={"email": "sarah.chen@company.com"})
        assert resp.status_code == 400

    def test_lockout_after_repeated_failures(self, client):
        for _ in range(MAX_ATTEMPTS):
            assert login(client, password="nope").status_code == 401

        resp = login(client)
        assert resp.status_code == 429
        assert "unlockAt" in resp.json()

    def test_success_clears_failures(self, client, store):
        for _ in range(MAX_ATTEMPTS - 1):
            login(client, password="nope")
        assert login(client).status_code == 200
        assert "sarah.chen@company.com" not in store.login_attempts

    def test_dropped_lookup_is_not_a_failed_attempt(self, settings):
        """A dropped user read answers 503 and never counts towards lockout."""
        store = MockStore(FaultInjector(drop_rate=1.0, min_delay=0, max_delay=0))
        with TestClient(create_app(settings=settings, store=store)) as client:
            for _ in range(MAX_ATTEMPTS + 1):
                resp = login(client)
                assert resp.status_code == 503
                assert resp.json()["success"] is False
        assert store.login_attempts.get("sarah.chen@company.com", []) == []
        assert len(store.sessions) == 0


class TestSession:
    def test_valid_session(self, client):
        token = login(client).json()["data"]["token"]
        data = client.get("/api/auth/login", headers=bearer(token)).json()["data"]
        assert data["authenticated"] is True
        assert data["session"]["user"]["id"] == "usr_1a2b3c"

    def test_no_token(self, client):
        assert client.get("/api/auth/login").json()["data"] == {"authenticated": False}

    def test_expired_session(self, client, store):
        token = login(client).json()["data"]["token"]
        store.sessions._rows[token]["expires_at"] = datetime.now(timezone.utc) - timedelta(seconds=1)
        data = client.get("/api/auth/login", headers=bearer(token)).json()["data"]
        assert data["authenticated"] is False


class TestLogout:
    def test_logout(self, client, store):
        token = login(client).json()["data"]["token"]
        resp = client.delete("/api/auth/login", headers=bearer(token))
        assert resp.status_code == 200
        assert token not in store.sessions

    def test_logout_twice(self, client):
        token = login(client).json()["data"]["token"]
        client.delete("/api/auth/login", headers=bearer(token))
        resp = client.delete("/api/auth/login", headers=bearer(token))
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid session"

    @pytest.mark.parametrize("headers, error", [
        ({}, "No authorization token provided"),
        ({"Authorization": "Token abc"}, "Invalid authorization format"),
    ])
    def test_bad_header(self, client, headers, error):
        resp = client.delete("/api/auth/login", headers=headers)
        assert resp.status_code == 401
        assert resp.json()["error"] == error


class TestSearch:
    def test_products_by_name(self, client):
        data = client.get("/api/search?q=widget&type=product").json()["data"]
        assert data["total"] == 2
        assert all(r["score"] == 1.0 for r in data["results"])

    def test_description_match_scores_lower(self, client):
        results = client.get("/api/search?q=gold&type=product").json()["data"]["results"]
        assert results == [{
            "type": "product",
            "id": "prod_003",
            "title": "Premium Cable Kit",
            "description": "$49.99 - Accessories",
            "score": 0.5,
        }]

    def test_uncategorised_product(self, client):
        results = client.get("/api/search?q=sensor").json()["data"]["results"]
        assert results[0]["description"] == "$899.99 - Uncategorized"

    def test_user_partial_match(self, client):
        results = client.get("/api/search?q=sarah zebra&type=user").json()["data"]["results"]
        assert [(r["id"], r["score"]) for r in results] == [("usr_1a2b3c", 0.5)]

    def test_sorted_by_score(self, client):
        results = client.get("/api/search?q=widget enterprise").json()["data"]["results"]
        scores = [r["score"] for r in results]
        assert scores == sorted(scores, reverse=True)

    def test_limit(self, client):
        data = client.get("/api/search?q=company&limit=2").json()["data"]
        assert data["total"] == 3
        assert data["returned"] == 2

    def test_non_numeric_limit_uses_default(self, client):
        data = client.get("/api/search?q=company&limit=lots").json()["data"]
        assert data["returned"] == 3

    @pytest.mark.parametrize("q", ["", "   "])
    def test_empty_query(self, client, q):
        resp = client.get(f"/api/search?q={q}")
        assert resp.status_code == 400

    def test_invalid_type(self, client):
        assert client.get("/api/search?q=widget&type=order").status_code == 400
