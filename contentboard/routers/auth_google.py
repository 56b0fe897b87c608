# contentboard/routers/auth_google.py
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from contentboard.auth.google import GoogleOAuthClient
from contentboard.auth.handshake import OAuthHandshake
from contentboard.auth.session import SessionCodec, clear_auth_cookie, set_auth_cookie
from contentboard.auth.state_store import SqlStateStore
from contentboard.config import settings
from contentboard.db.models import User
from contentboard.db.store import Store
from contentboard.deps import get_codec, get_current_user, get_db

router = APIRouter(tags=["google-auth"])


def get_provider() -> GoogleOAuthClient:
    return GoogleOAuthClient.from_settings()


def get_handshake(
    db: Session = Depends(get_db),
    codec: SessionCodec = Depends(get_codec),
    provider: GoogleOAuthClient = Depends(get_provider),
) -> OAuthHandshake:
    return OAuthHandshake(
        store=Store(db),
        states=SqlStateStore(db, ttl_seconds=settings.oauth_state_ttl_seconds),
        codec=codec,
        provider=provider,
        require_allowlist=settings.require_allowlist,
        frontend_url=settings.frontend_url,
    )


def user_payload(user: User) -> Dict[str, Any]:
    return {
        "email": user.email,
        "name": user.name,
        "avatar_url": user.avatar_url,
        "role": user.role,
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "last_login": user.last_login.isoformat() if user.last_login else None,
    }


@router.get("/auth/google/status")
def status() -> Dict[str, Any]:
    return {
        "status": "ok",
        "has_client_id": bool(settings.google_client_id),
        "has_secret": bool(settings.google_client_secret),
        "has_redirect_uri": bool(settings.google_redirect_uri),
        "allowlist_enforced": settings.require_allowlist,
    }


@router.get("/auth/google")
def login(handshake: OAuthHandshake = Depends(get_handshake)) -> RedirectResponse:
    return RedirectResponse(handshake.initiate(), status_code=302)


@router.get("/auth/google/callback")
def callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    handshake: OAuthHandshake = Depends(get_handshake),
) -> RedirectResponse:
    result = handshake.handle_callback(code, state, error)
    response = RedirectResponse(result.redirect_to, status_code=302)
    if result.ok:
        set_auth_cookie(
            response, result.token,
            secure=settings.cookie_secure,
            max_age=settings.session_ttl_days * 24 * 3600,
        )
    return response


@router.get("/api/auth/user")
def current_user(user: User = Depends(get_current_user)) -> Dict[str, Any]:
    return user_payload(user)


@router.post("/api/auth/logout")
def logout() -> JSONResponse:
    response = JSONResponse({"ok": True})
    clear_auth_cookie(response, secure=settings.cookie_secure)
    return response
