# contentboard/auth/state_store.py
from datetime import datetime, timedelta
from typing import Callable, Protocol

import structlog
from sqlalchemy.orm import Session

from contentboard.clock import utcnow
from contentboard.db.models import OAuthState

logger = structlog.get_logger()


class StateStore(Protocol):
    def put(self, state: str, issued_at: datetime) -> None: ...

    def consume_if_valid(self, state: str) -> bool: ...


class SqlStateStore:
    """One-time CSRF states kept in the oauth_states table with a TTL.

    consume_if_valid deletes the row whether or not it is still fresh, so a
    state can never be presented twice.
    """

    def __init__(self, db: Session, ttl_seconds: int = 600, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock

    def put(self, state: str, issued_at: datetime) -> None:
        self.db.add(OAuthState(state=state, issued_at=issued_at))
        self.db.commit()

    def consume_if_valid(self, state: str) -> bool:
        if not state:
            return False
        row = self.db.query(OAuthState).filter(OAuthState.state == state).first()
        if not row:
            return False
        issued_at = row.issued_at
        # the DELETE's rowcount decides which of two racing callbacks wins
        deleted = self.db.query(OAuthState).filter(OAuthState.state == state).delete(synchronize_session=False)
        self.db.commit()
        if not deleted:
            return False
        return self.clock() - issued_at <= self.ttl

    def sweep(self) -> int:
        cutoff = self.clock() - self.ttl
        deleted = self.db.query(OAuthState).filter(OAuthState.issued_at < cutoff).delete(synchronize_session=False)
        self.db.commit()
        return deleted


def sweep_expired_states(session_factory, ttl_seconds: int) -> int:
    """Scheduler entry point: each run gets its own session."""
    db = session_factory()
    try:
        deleted = SqlStateStore(db, ttl_seconds=ttl_seconds).sweep()
        if deleted:
            logger.info("oauth_states_swept", deleted=deleted)
        return deleted
    finally:
        db.close()
