import os
import sys

import pytest

# Settings are read at import time, so the environment goes first.
os.environ.update({
    "APP_ENV": "test",
    "DATABASE_URL": "sqlite://",
    "JWT_SECRET": "test-secret",
    "GOOGLE_CLIENT_ID": "client-id",
    "GOOGLE_CLIENT_SECRET": "client-secret",
    "GOOGLE_REDIRECT_URI": "http://testserver/auth/google/callback",
    "FRONTEND_URL": "http://frontend.test",
    "FERNET_KEY": "MDEyMzQ1Njc4OWFiY2RlZjAxMjM0NTY3ODlhYmNkZWY=",
    "REQUIRE_ALLOWLIST": "true",
    "HTTP_RETRY_BACKOFF": "0",
    "HTTP_MAX_ATTEMPTS": "3",
})

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from fastapi.testclient import TestClient  # noqa: E402

from contentboard.auth.google import GoogleProfile  # noqa: E402
from contentboard.db import models  # noqa: E402,F401
from contentboard.db.base import Base, SessionLocal, engine  # noqa: E402
from contentboard.db.store import Store  # noqa: E402
from contentboard.deps import get_codec  # noqa: E402
from contentboard.errors import AdapterError  # noqa: E402
from contentboard.main import app  # noqa: E402
from contentboard.services.adapters.base import NormalizedPost, PlatformAdapter, base_metrics  # noqa: E402


class FakeGoogle:
    """Stands in for GoogleOAuthClient; records the codes it was handed."""

    def __init__(self, profile=None, exchange_error=None, profile_error=None):
        self.profile = profile or GoogleProfile(id="g-1", email="a@x.com", name="Ada", picture="http://img/a.png")
        self.exchange_error = exchange_error
        self.profile_error = profile_error
        self.codes = []

    def authorization_url(self, state):
        return f"https://accounts.example/auth?state={state}"

    def exchange_code(self, code):
        self.codes.append(code)
        if self.exchange_error:
            raise self.exchange_error
        return "google-access-token"

    def fetch_profile(self, access_token):
        if self.profile_error:
            raise self.profile_error
        return self.profile


class FakeAdapter(PlatformAdapter):
    platform_type = "linkedin"

    def __init__(self, posts=None, likes=1, broken=(), list_error=None, ping_error=None):
        super().__init__({})
        self.posts = posts if posts is not None else [{"id": "p1"}, {"id": "p2"}]
        self.likes = likes
        self.broken = set(broken)
        self.list_error = list_error
        self.ping_error = ping_error

    def list_posts(self):
        if self.list_error:
            raise self.list_error
        return self.posts

    def normalize(self, raw):
        return NormalizedPost(content_id=raw["id"], title=f"title {raw['id']}", content="body")

    def fetch_metrics(self, content_id):
        if content_id in self.broken:
            raise AdapterError(f"metrics for {content_id} unavailable")
        return base_metrics(likes=self.likes, comments=1, engagement_rate=2.5)

    def ping(self):
        if self.ping_error:
            raise self.ping_error


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db):
    return Store(db)


@pytest.fixture
def client():
    c = TestClient(app)
    yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(store, db):
    def _make(email="a@x.com", role="user", google_id=None):
        user = store.upsert_user(google_id=google_id or f"g-{email}", email=email, name=email.split("@")[0])
        user.role = role
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def login(client, make_user):
    """Create a user with the given role and put its session cookie on the client."""
    def _login(role="user", email="a@x.com"):
        user = make_user(email=email, role=role)
        client.cookies.set("auth_token", get_codec().issue(user))
        return user
    return _login
