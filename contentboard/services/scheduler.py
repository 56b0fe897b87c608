from typing import Any, Dict, Optional

import structlog
from apscheduler.schedulers.background import BackgroundScheduler

from contentboard.auth.state_store import sweep_expired_states
from contentboard.config import settings
from contentboard.db.base import SessionLocal
from contentboard.db.store import Store
from contentboard.services.sync import ContentSyncReconciler

logger = structlog.get_logger()

_sweeper: Optional[BackgroundScheduler] = None


def run_once() -> Dict[str, Any]:
    # each job run gets its own session
    db = SessionLocal()
    try:
        results = ContentSyncReconciler(Store(db)).sync_all_active()
        logger.info("scheduled_sync_finished", results=results)
        return {"status": "done", "results": results}
    finally:
        db.close()


def start_state_sweeper() -> None:
    global _sweeper
    if _sweeper and _sweeper.running:
        return
    _sweeper = BackgroundScheduler(timezone="UTC")
    _sweeper.add_job(
        sweep_expired_states,
        "interval",
        seconds=settings.oauth_state_sweep_seconds,
        kwargs={"session_factory": SessionLocal, "ttl_seconds": settings.oauth_state_ttl_seconds},
        id="oauth_state_sweep",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    _sweeper.start()


def stop_state_sweeper() -> None:
    global _sweeper
    if _sweeper and _sweeper.running:
        _sweeper.shutdown(wait=False)
    _sweeper = None
