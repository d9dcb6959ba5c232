from __future__ import annotations

from fastapi.testclient import TestClient

from app.config import settings
from app.main import app
from app.modules.users.service import NICKNAME_MAX_SUFFIX

SITE = settings.site_url.rstrip("/")


def test_login_redirects_to_provider(client):
    resp = client.get("/api/v1/auth/login", follow_redirects=False)
    assert resp.status_code == 307
    assert resp.headers["location"].startswith("https://accounts.example.com/authorize")


def test_login_keeps_verifier_in_cookie(client):
    resp = client.get("/api/v1/auth/login", follow_redirects=False)
    cookie = resp.headers["set-cookie"]
    assert f"{settings.pkce_cookie_name}=verifier-1" in cookie
    assert "Path=/api/v1/auth" in cookie
    assert "httponly" in cookie.lower()


def test_concurrent_sign_ins_keep_their_own_verifier(client, auth):
    auth.add_code("code-a", "u-a", "first@example.com")
    client.get("/api/v1/auth/login", follow_redirects=False)
    with TestClient(app) as second_browser:
        second_browser.get("/api/v1/auth/login", follow_redirects=False)
        auth.add_code("code-b", "u-b", "second@example.com")
        second_browser.get("/api/v1/auth/callback", params={"code": "code-b"}, follow_redirects=False)

    resp = client.get("/api/v1/auth/callback", params={"code": "code-a"}, follow_redirects=False)

    assert resp.headers["location"] == f"{SITE}/map"
    assert auth.exchanged == [("code-b", "verifier-2"), ("code-a", "verifier-1")]


def test_callback_discards_verifier_cookie(client, auth):
    auth.add_code("code-5", "u-5", "once@example.com")
    client.get("/api/v1/auth/login", follow_redirects=False)
    resp = client.get("/api/v1/auth/callback", params={"code": "code-5"}, follow_redirects=False)
    assert f'{settings.pkce_cookie_name}=""' in resp.headers["set-cookie"]


def test_first_sign_in_creates_user_and_goes_to_map(client, db, auth):
    auth.add_code("code-1", "u-1", "newbie@example.com")
    resp = client.get("/api/v1/auth/callback", params={"code": "code-1"}, follow_redirects=False)
    assert resp.status_code == 307
    assert resp.headers["location"] == f"{SITE}/map"
    assert "access_token=token-u-1" in resp.headers["set-cookie"]
    assert "httponly" in resp.headers["set-cookie"].lower()
    assert db.rows("users")[0]["nickname"] == "newbie"
    assert db.rows("users")[0]["auth_provider"] == "google"


def test_sign_in_with_colliding_local_part(client, db, auth):
    db.seed("users", id="u-0", email="a@x.com", nickname="a", auth_provider="google")
    auth.add_code("code-2", "u-2", "a@y.com")
    client.get("/api/v1/auth/callback", params={"code": "code-2"}, follow_redirects=False)
    assert [u["nickname"] for u in db.rows("users")] == ["a", "a1"]


def test_first_sign_in_without_free_nickname_goes_to_onboarding(client, db, auth):
    for i, nickname in enumerate(["jo", *[f"jo{n}" for n in range(1, NICKNAME_MAX_SUFFIX + 1)]]):
        db.seed("users", id=f"seed-{i}", email=f"jo@host{i}.com", nickname=nickname, auth_provider="google")
    auth.add_code("code-3", "u-3", "jo@example.com")
    resp = client.get("/api/v1/auth/callback", params={"code": "code-3"}, follow_redirects=False)
    assert resp.headers["location"] == f"{SITE}/onboarding"


def test_returning_user_without_nickname_goes_to_onboarding(client, db, auth):
    db.seed("users", id="u-4", email="late@example.com", nickname=None, auth_provider="google")
    auth.add_code("code-4", "u-4", "late@example.com")
    resp = client.get("/api/v1/auth/callback", params={"code": "code-4"}, follow_redirects=False)
    assert resp.headers["location"] == f"{SITE}/onboarding"
    assert len(db.rows("users")) == 1


def test_callback_without_code_goes_to_login(client):
    resp = client.get("/api/v1/auth/callback", follow_redirects=False)
    assert resp.headers["location"] == f"{SITE}/login"


def test_callback_with_bad_code_goes_to_login(client, db):
    resp = client.get("/api/v1/auth/callback", params={"code": "forged"}, follow_redirects=False)
    assert resp.headers["location"] == f"{SITE}/login"
    assert db.rows("users") == []


def test_me(client, owner):
    _, headers = owner
    resp = client.get("/api/v1/auth/me", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["has_nickname"] is True
    assert resp.json()["user"]["nickname"] == "owner"


def test_me_requires_login(client):
    resp = client.get("/api/v1/auth/me")
    assert resp.status_code == 401


def test_me_rejects_unknown_token(client):
    resp = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401


def test_logout_clears_cookie(client, auth, owner):
    _, headers = owner
    resp = client.post("/api/v1/auth/logout", headers=headers)
    assert resp.status_code == 200
    assert auth.logged_out == ["token-owner-1"]
    assert 'access_token=""' in resp.headers["set-cookie"] or "Max-Age=0" in resp.headers["set-cookie"]
    assert client.get("/api/v1/auth/me", headers=headers).status_code == 401


def test_health_is_public(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.headers["X-Frame-Options"] == "DENY"
