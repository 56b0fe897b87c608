from datetime import datetime, timedelta

from contentboard.auth.state_store import SqlStateStore, sweep_expired_states
from contentboard.clock import utcnow
from contentboard.db.base import SessionLocal
from contentboard.db.models import OAuthState

T0 = datetime(2024, 1, 1, 12, 0, 0)


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def test_state_is_single_use(db):
    clock = Clock(T0)
    states = SqlStateStore(db, clock=clock)
    states.put("abc", T0)
    assert states.consume_if_valid("abc") is True
    assert states.consume_if_valid("abc") is False


def test_unknown_or_empty_state_is_rejected(db):
    states = SqlStateStore(db, clock=Clock(T0))
    assert states.consume_if_valid("nope") is False
    assert states.consume_if_valid("") is False


def test_expired_state_is_rejected_and_burned(db):
    clock = Clock(T0)
    states = SqlStateStore(db, ttl_seconds=600, clock=clock)
    states.put("old", T0)
    clock.now = T0 + timedelta(minutes=11)
    assert states.consume_if_valid("old") is False
    assert db.query(OAuthState).count() == 0


def test_state_at_exact_ttl_is_still_valid(db):
    clock = Clock(T0)
    states = SqlStateStore(db, ttl_seconds=600, clock=clock)
    states.put("edge", T0)
    clock.now = T0 + timedelta(seconds=600)
    assert states.consume_if_valid("edge") is True


def test_sweep_removes_only_expired(db):
    now = utcnow()
    db.add(OAuthState(state="stale", issued_at=now - timedelta(hours=1)))
    db.add(OAuthState(state="fresh", issued_at=now))
    db.commit()

    assert sweep_expired_states(SessionLocal, ttl_seconds=600) == 1
    db.expire_all()
    assert [s.state for s in db.query(OAuthState).all()] == ["fresh"]
