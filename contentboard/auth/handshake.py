# contentboard/auth/handshake.py
"""Google login: initiate -> callback -> session issuance.

Every failure ends in a redirect to /login?error=<reason> where reason is a
FailureReason value; provider payloads and exception text stay in the logs.
"""
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional
from urllib.parse import urlencode

import structlog

from contentboard.auth.session import SessionCodec
from contentboard.auth.state_store import StateStore
from contentboard.clock import utcnow
from contentboard.db.models import User
from contentboard.db.store import Store
from contentboard.errors import AuthError, FailureReason

logger = structlog.get_logger()

STATE_BYTES = 32  # 256 bits


@dataclass
class CallbackResult:
    redirect_to: str
    token: Optional[str] = None
    reason: Optional[FailureReason] = None
    user: Optional[User] = None

    @property
    def ok(self) -> bool:
        return self.token is not None


class OAuthHandshake:
    def __init__(
        self,
        store: Store,
        states: StateStore,
        codec: SessionCodec,
        provider,
        require_allowlist: bool = True,
        frontend_url: str = "",
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.states = states
        self.codec = codec
        self.provider = provider
        self.require_allowlist = require_allowlist
        self.frontend_url = frontend_url.rstrip("/")
        self.clock = clock

    @property
    def success_url(self) -> str:
        return f"{self.frontend_url}/dashboard"

    def failure_url(self, reason: FailureReason) -> str:
        return f"{self.frontend_url}/login?{urlencode({'error': reason.value})}"

    def initiate(self) -> str:
        state = secrets.token_urlsafe(STATE_BYTES)
        self.states.put(state, self.clock())
        return self.provider.authorization_url(state)

    def handle_callback(
        self,
        code: Optional[str],
        state: Optional[str],
        provider_error: Optional[str] = None,
    ) -> CallbackResult:
        try:
            user = self._complete(code, state, provider_error)
            token = self.codec.issue(user)
        except AuthError as e:
            return self._fail(e.reason, e.detail)
        except Exception:
            logger.exception("oauth_callback_internal_error")
            return self._fail(FailureReason.INTERNAL_ERROR)

        logger.info("oauth_login_succeeded", user_id=user.id, role=user.role)
        return CallbackResult(redirect_to=self.success_url, token=token, user=user)

    def _complete(self, code, state, provider_error) -> User:
        if provider_error:
            raise AuthError(FailureReason.OAUTH_FAILED, f"provider returned error={provider_error}")

        # CSRF: state is checked (and burned) before any network call
        if not state or not self.states.consume_if_valid(state):
            raise AuthError(FailureReason.INVALID_STATE)

        if not code:
            raise AuthError(FailureReason.MISSING_CODE)

        access_token = self.provider.exchange_code(code)
        profile = self.provider.fetch_profile(access_token)

        if self.require_allowlist and not self.store.is_email_allowed(profile.email):
            logger.warning("security_unauthorized_email", email=profile.email, google_id=profile.id)
            raise AuthError(FailureReason.UNAUTHORIZED_EMAIL)

        return self.store.upsert_user(
            google_id=profile.id,
            email=profile.email,
            name=profile.name,
            avatar_url=profile.picture,
            now=self.clock(),
        )

    def _fail(self, reason: FailureReason, detail: str = "") -> CallbackResult:
        if reason is FailureReason.INVALID_STATE:
            logger.warning("security_invalid_oauth_state")
        elif reason is not FailureReason.UNAUTHORIZED_EMAIL:
            logger.warning("oauth_callback_failed", reason=reason.value, detail=detail)
        return CallbackResult(redirect_to=self.failure_url(reason), reason=reason)
