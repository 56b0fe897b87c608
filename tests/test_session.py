from datetime import timedelta
from types import SimpleNamespace

import pytest
from fastapi import Response

from contentboard.auth.session import COOKIE_NAME, SessionCodec, clear_auth_cookie, set_auth_cookie
from contentboard.clock import utcnow
from contentboard.errors import ConfigError, ExpiredToken, MalformedToken

USER = SimpleNamespace(id=7, email="a@x.com", role="admin")


def test_issue_then_verify_returns_identity():
    codec = SessionCodec("s3cret")
    claims = codec.verify(codec.issue(USER))
    assert claims.user_id == 7
    assert claims.email == "a@x.com"
    assert claims.role == "admin"


def test_expired_token_is_rejected():
    codec = SessionCodec("s3cret", clock=lambda: utcnow() - timedelta(days=8))
    token = codec.issue(USER)
    with pytest.raises(ExpiredToken):
        SessionCodec("s3cret").verify(token)


def test_token_signed_with_other_secret_is_malformed():
    token = SessionCodec("other").issue(USER)
    with pytest.raises(MalformedToken):
        SessionCodec("s3cret").verify(token)


def test_tampered_and_empty_tokens_are_malformed():
    codec = SessionCodec("s3cret")
    token = codec.issue(USER)
    with pytest.raises(MalformedToken):
        codec.verify(token[:-4] + "AAAA")
    with pytest.raises(MalformedToken):
        codec.verify("")
    with pytest.raises(MalformedToken):
        codec.verify("not-a-jwt")


def test_missing_secret_is_a_config_error():
    with pytest.raises(ConfigError):
        SessionCodec("")


def test_auth_cookie_attributes():
    resp = Response()
    set_auth_cookie(resp, "tok", secure=True)
    header = resp.headers["set-cookie"].lower()
    assert header.startswith(f"{COOKIE_NAME}=tok")
    assert "httponly" in header
    assert "secure" in header
    assert "samesite=lax" in header
    assert "path=/" in header
    assert "max-age=604800" in header


def test_clear_cookie_expires_it():
    resp = Response()
    clear_auth_cookie(resp, secure=False)
    header = resp.headers["set-cookie"].lower()
    assert header.startswith(f"{COOKIE_NAME}=")
    assert "max-age=0" in header


def test_app_codec_uses_configured_ttl(monkeypatch):
    from contentboard import deps
    from contentboard.config import settings

    monkeypatch.setattr(settings, "session_ttl_days", 3)
    monkeypatch.setattr(deps, "_codec", None)
    assert deps.get_codec().ttl == timedelta(days=3)
