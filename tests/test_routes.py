from urllib.parse import parse_qs, urlparse

from contentboard.errors import AdapterError
from contentboard.routers.auth_google import get_provider
from contentboard.routers.sync_api import get_generator, get_reconciler
from contentboard.services.adapters.base import base_metrics
from contentboard.services.sync import ContentSyncReconciler

from conftest import FakeAdapter, FakeGoogle


def test_health(client):
    assert client.get("/api/health").json()["status"] == "ok"


def test_google_status_reports_configuration(client):
    body = client.get("/auth/google/status").json()
    assert body["has_client_id"] is True
    assert body["allowlist_enforced"] is True


def test_full_login_flow_sets_cookie(client, store):
    store.add_allowed_email("a@x.com")
    app = client.app
    app.dependency_overrides[get_provider] = lambda: FakeGoogle()

    start = client.get("/auth/google", follow_redirects=False)
    assert start.status_code == 302
    state = parse_qs(urlparse(start.headers["location"]).query)["state"][0]

    cb = client.get("/auth/google/callback", params={"code": "c", "state": state}, follow_redirects=False)
    assert cb.status_code == 302
    assert cb.headers["location"] == "http://frontend.test/dashboard"
    set_cookie = cb.headers["set-cookie"].lower()
    assert set_cookie.startswith("auth_token=")
    assert "httponly" in set_cookie

    me = client.get("/api/auth/user")
    assert me.status_code == 200
    body = me.json()
    assert body["email"] == "a@x.com"
    assert body["role"] == "user"
    assert "id" not in body and "google_id" not in body


def test_callback_with_bad_state_redirects_to_login(client):
    client.app.dependency_overrides[get_provider] = lambda: FakeGoogle()
    cb = client.get("/auth/google/callback", params={"code": "c", "state": "forged"}, follow_redirects=False)
    assert cb.status_code == 302
    assert cb.headers["location"] == "http://frontend.test/login?error=invalid_state"
    assert "set-cookie" not in cb.headers


def test_protected_routes_need_a_session(client):
    assert client.get("/api/auth/user").status_code == 401
    assert client.get("/api/metrics/overview").status_code == 401
    client.cookies.set("auth_token", "garbage")
    resp = client.get("/api/posts")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Authentication required"


def test_session_for_deleted_user_is_rejected(client, login, db):
    user = login("user")
    db.delete(user)
    db.commit()
    assert client.get("/api/auth/user").status_code == 401


def test_logout_clears_cookie(client, login):
    login("user")
    assert client.get("/api/auth/user").status_code == 200
    resp = client.post("/api/auth/logout")
    assert resp.json() == {"ok": True}
    header = resp.headers["set-cookie"].lower()
    assert header.startswith("auth_token=")
    assert "max-age=0" in header


def test_overview_and_post_listing(client, login, store):
    login("viewer")
    platform = store.upsert_platform("youtube", {"apiKey": "k", "channelId": "c"})
    store.upsert_content_post(platform, "vid1", "One", "", [], None, base_metrics(likes=3))
    store.upsert_content_post(platform, "vid2", "Two", "", [], None, base_metrics(likes=5))

    overview = client.get("/api/metrics/overview").json()
    assert overview == {"totalPosts": 2, "avgPerformanceScore": 0, "topPlatform": "youtube", "recentPosts": 2}

    posts = client.get("/api/posts", params={"platform": "youtube"}).json()
    assert {p["contentId"] for p in posts} == {"vid1", "vid2"}
    assert client.get("/api/posts/top").json() == []
    assert client.get("/api/posts/999").status_code == 404


def test_listing_rejects_unknown_sort_column(client, login):
    login("user")
    assert client.get("/api/posts", params={"order_by": "title"}).status_code == 400


def test_sync_requires_admin(client, login):
    login("user")
    resp = client.post("/api/sync/linkedin")
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Insufficient permissions"


def test_admin_sync_of_unconfigured_platform_is_404(client, login):
    login("admin")
    assert client.post("/api/sync/youtube").status_code == 404


def test_admin_sync_runs_reconciler(client, login, store):
    login("admin")
    store.upsert_platform("linkedin", {"accessToken": "t"})
    client.app.dependency_overrides[get_reconciler] = lambda: ContentSyncReconciler(
        store, adapter_factory=lambda ptype, creds: FakeAdapter()
    )
    body = client.post("/api/sync/linkedin").json()
    assert body["synced"] == 2
    assert client.get("/api/platforms/linkedin/validate").json() == {"platform": "linkedin", "valid": True}


def test_failed_sync_is_502(client, login, store):
    login("admin")
    store.upsert_platform("linkedin", {"accessToken": "t"})
    client.app.dependency_overrides[get_reconciler] = lambda: ContentSyncReconciler(
        store, adapter_factory=lambda ptype, creds: FakeAdapter(list_error=AdapterError("401"))
    )
    resp = client.post("/api/sync/linkedin")
    assert resp.status_code == 502


def test_analyze_endpoint(client, login, store):
    login("user")
    platform = store.upsert_platform("linkedin", {"accessToken": "t"})
    post = store.upsert_content_post(platform, "urn:li:share:9", "Hi", "Hi", [], None, base_metrics())
    client.app.dependency_overrides[get_generator] = lambda: (lambda prompt: '{"performanceScore": 77}')

    body = client.post(f"/api/posts/{post.id}/analyze").json()
    assert body["aiAnalysis"]["performanceScore"] == 77
    assert client.get("/api/posts/top").json()[0]["contentId"] == "urn:li:share:9"


def test_allowlist_admin_endpoints(client, login):
    login("admin", email="boss@x.com")
    created = client.post("/api/admin/allowed-emails", json={"email": "New@X.com"})
    assert created.status_code == 201
    assert created.json()["email"] == "new@x.com"
    assert [r["email"] for r in client.get("/api/admin/allowed-emails").json()] == ["new@x.com"]

    assert client.delete("/api/admin/allowed-emails/new@x.com").status_code == 204
    assert client.delete("/api/admin/allowed-emails/new@x.com").status_code == 404
    assert client.post("/api/admin/allowed-emails", json={"email": "nope"}).status_code == 400


def test_platform_endpoints_hide_credentials(client, login):
    login("admin")
    put = client.put("/api/admin/platforms/instagram", json={"credentials": {"accessToken": "t", "userId": "1"}})
    assert put.status_code == 200
    listed = client.get("/api/platforms").json()
    assert listed[0]["type"] == "instagram"
    assert "credentials" not in listed[0] and "credentials_encrypted" not in listed[0]
    assert client.put("/api/admin/platforms/tiktok", json={"credentials": {}}).status_code == 400
