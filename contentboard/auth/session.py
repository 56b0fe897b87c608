# contentboard/auth/session.py
"""Signed session tokens (HS256 JWT) and the auth_token cookie that carries them."""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from fastapi import Response
from jose import jwt, exceptions as jose_errors

from contentboard.clock import utcnow
from contentboard.errors import ConfigError, ExpiredToken, MalformedToken

COOKIE_NAME = "auth_token"
ALGORITHM = "HS256"
DEFAULT_TTL = timedelta(days=7)


@dataclass(frozen=True)
class SessionClaims:
    user_id: int
    email: str
    role: str


class SessionCodec:
    def __init__(self, secret: str, ttl: timedelta = DEFAULT_TTL, clock: Callable[[], datetime] = utcnow):
        if not secret:
            raise ConfigError("JWT_SECRET environment variable is required")
        self._secret = secret
        self.ttl = ttl
        self.clock = clock

    def issue(self, user) -> str:
        """Encode {userId, email, role}; a role or identity change needs a fresh token."""
        now = self.clock()
        claims = {
            "userId": user.id,
            "email": user.email,
            "role": user.role,
            "iat": now,
            "exp": now + self.ttl,
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> SessionClaims:
        if not token:
            raise MalformedToken("empty token")
        try:
            data = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except jose_errors.ExpiredSignatureError as e:
            raise ExpiredToken(str(e)) from e
        except jose_errors.JWTError as e:
            raise MalformedToken(str(e)) from e

        user_id = data.get("userId")
        email = data.get("email")
        role = data.get("role")
        if not isinstance(user_id, int) or not email or not role:
            raise MalformedToken("token is missing identity claims")
        return SessionClaims(user_id=user_id, email=email, role=role)


def set_auth_cookie(response: Response, token: str, secure: bool, max_age: Optional[int] = None) -> None:
    response.set_cookie(
        COOKIE_NAME,
        token,
        max_age=max_age if max_age is not None else int(DEFAULT_TTL.total_seconds()),
        path="/",
        httponly=True,
        secure=secure,
        samesite="lax",
    )


def clear_auth_cookie(response: Response, secure: bool) -> None:
    response.delete_cookie(COOKIE_NAME, path="/", httponly=True, secure=secure, samesite="lax")
