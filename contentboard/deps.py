from datetime import timedelta
from typing import Generator, Optional

import structlog
from fastapi import Cookie, Depends, HTTPException
from sqlalchemy.orm import Session

from contentboard.auth.session import COOKIE_NAME, SessionCodec
from contentboard.config import settings
from contentboard.db.base import SessionLocal, engine, Base
from contentboard.db import models
from contentboard.db.store import Store
from contentboard.errors import InvalidSessionToken

logger = structlog.get_logger()

_codec: Optional[SessionCodec] = None


def init_db() -> None:
    Base.metadata.create_all(bind=engine)


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_store(db: Session = Depends(get_db)) -> Store:
    return Store(db)


def get_codec() -> SessionCodec:
    global _codec
    if _codec is None:
        _codec = SessionCodec(settings.jwt_secret, ttl=timedelta(days=settings.session_ttl_days))
    return _codec


def get_current_user(
    auth_token: Optional[str] = Cookie(default=None, alias=COOKIE_NAME),
    store: Store = Depends(get_store),
    codec: SessionCodec = Depends(get_codec),
) -> models.User:
    # one message for every failure mode: missing, expired, forged, deleted user
    if not auth_token:
        raise HTTPException(401, "Authentication required")
    try:
        claims = codec.verify(auth_token)
    except InvalidSessionToken as e:
        logger.info("session_rejected", kind=type(e).__name__)
        raise HTTPException(401, "Authentication required")
    user = store.get_user(claims.user_id)
    if not user:
        raise HTTPException(401, "Authentication required")
    return user


def require_role(minimum: models.Role):
    def _check(user: models.User = Depends(get_current_user)) -> models.User:
        try:
            role = models.Role(user.role)
        except ValueError:
            role = models.Role.VIEWER
        if role.rank < minimum.rank:
            raise HTTPException(403, "Insufficient permissions")
        return user
    return _check
