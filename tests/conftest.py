from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.core.dependencies import get_auth_service
from app.database.supabase_client import get_supabase
from app.main import app
from app.modules.geo.routes import get_geo_service
from tests.fakes import FakeAuthService, FakeSupabase


@pytest.fixture
def db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def auth() -> FakeAuthService:
    return FakeAuthService()


@pytest.fixture
def client(db, auth):
    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_auth_service] = lambda: auth
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.pop(get_supabase, None)
    app.dependency_overrides.pop(get_auth_service, None)
    app.dependency_overrides.pop(get_geo_service, None)


@pytest.fixture
def owner(db, auth):
    """A signed-in user who finished onboarding. Returns (user_row, headers)."""
    user = db.seed("users", id="owner-1", email="owner@example.com", nickname="owner", auth_provider="google")
    return user, auth.login(user["id"], user["email"])


@pytest.fixture
def other(db, auth):
    user = db.seed("users", id="other-1", email="other@example.com", nickname="other", auth_provider="google")
    return user, auth.login(user["id"], user["email"])
