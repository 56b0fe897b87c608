from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from contentboard.auth.google import GoogleOAuthClient
from contentboard.errors import AuthError, FailureReason
from contentboard.services.http_retry import request_with_retry


def _client(handler):
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return GoogleOAuthClient("cid", "csecret", "http://localhost/cb", http=http, sleep=lambda s: None)


def test_authorization_url_carries_state_and_prompt():
    url = GoogleOAuthClient("cid", "csecret", "http://localhost/cb").authorization_url("st4te")
    q = parse_qs(urlparse(url).query)
    assert url.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
    assert q["state"] == ["st4te"]
    assert q["client_id"] == ["cid"]
    assert q["response_type"] == ["code"]
    assert q["access_type"] == ["offline"]
    assert q["prompt"] == ["select_account"]
    assert q["scope"] == ["openid email profile"]


def test_exchange_code_posts_form_and_returns_token():
    seen = {}

    def handler(request):
        seen["body"] = parse_qs(request.content.decode())
        return httpx.Response(200, json={"access_token": "at-1", "expires_in": 3600})

    assert _client(handler).exchange_code("the-code") == "at-1"
    assert seen["body"]["code"] == ["the-code"]
    assert seen["body"]["grant_type"] == ["authorization_code"]


def test_exchange_code_rejection_is_token_exchange_failed():
    client = _client(lambda r: httpx.Response(400, json={"error": "invalid_grant"}))
    with pytest.raises(AuthError) as exc:
        client.exchange_code("bad")
    assert exc.value.reason is FailureReason.TOKEN_EXCHANGE_FAILED


def test_fetch_profile_maps_fields():
    def handler(request):
        assert request.headers["Authorization"] == "Bearer at-1"
        return httpx.Response(200, json={"id": "123", "email": "a@x.com", "name": "Ada", "picture": "http://p"})

    profile = _client(handler).fetch_profile("at-1")
    assert (profile.id, profile.email, profile.name, profile.picture) == ("123", "a@x.com", "Ada", "http://p")


def test_fetch_profile_without_email_fails():
    client = _client(lambda r: httpx.Response(200, json={"id": "123"}))
    with pytest.raises(AuthError) as exc:
        client.fetch_profile("at-1")
    assert exc.value.reason is FailureReason.PROFILE_FETCH_FAILED


def test_retry_recovers_from_transient_5xx():
    calls = []

    def handler(request):
        calls.append(1)
        if len(calls) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"ok": True})

    sleeps = []
    with httpx.Client(transport=httpx.MockTransport(handler)) as c:
        resp = request_with_retry(c, "GET", "https://api.example/x", max_attempts=3, backoff=1, sleep=sleeps.append)
    assert resp.status_code == 200
    assert sleeps == [1, 2]


def test_retry_gives_up_and_returns_last_response():
    with httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(429))) as c:
        resp = request_with_retry(c, "GET", "https://api.example/x", max_attempts=2, backoff=0, sleep=lambda s: None)
    assert resp.status_code == 429


def test_retry_reraises_transport_errors():
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    with httpx.Client(transport=httpx.MockTransport(handler)) as c:
        with pytest.raises(httpx.ConnectError):
            request_with_retry(c, "GET", "https://api.example/x", max_attempts=2, backoff=0, sleep=lambda s: None)


def test_retry_rejects_zero_attempts():
    with httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200))) as c:
        with pytest.raises(ValueError):
            request_with_retry(c, "GET", "https://api.example/x", max_attempts=0)
