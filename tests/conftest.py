"""
Shared fixtures: an in-memory store per test and a client bound to the app
"""
import os

# Settings are read once and cached, so these must be set before app imports
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DEBUG"] = "false"

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from app.core.config import get_settings
from app.database import create_db_engine, create_session_factory, init_db
from app.models.post import Post
from app.models.profile import Account, Profile
from app.services.cache import ProfileSnapshotCache

BASE_TIME = datetime(2026, 1, 1, 12, 0, 0)


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = create_session_factory(engine)()
    yield session
    session.close()


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def cache():
    return ProfileSnapshotCache(ttl_seconds=300)


@pytest.fixture
def make_profile(db):
    """Insert an account and its profile without going through sign-up"""
    def _make(username, full_name=None):
        account = Account(email=f"{username}@example.com", password_hash="not-a-real-hash")
        db.add(account)
        db.flush()
        profile = Profile(id=account.id, username=username, full_name=full_name or username)
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile
    return _make


@pytest.fixture
def make_post(db):
    """Insert a post whose age is given in minutes before BASE_TIME"""
    def _make(author, content, minutes_ago=0):
        post = Post(
            user_id=author.id,
            content=content,
            created_at=BASE_TIME - timedelta(minutes=minutes_ago)
        )
        db.add(post)
        db.commit()
        db.refresh(post)
        return post
    return _make


@pytest.fixture
def client():
    from app.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sign_up(client):
    """Register through the API; returns (user_id, auth headers)"""
    def _sign_up(username, password="password123"):
        resp = client.post("/api/v1/auth/signup", json={
            "email": f"{username}@example.com",
            "password": password,
            "username": username
        })
        assert resp.status_code == 201, resp.text
        data = resp.json()
        return data["user_id"], {"Authorization": f"Bearer {data['access_token']}"}
    return _sign_up
