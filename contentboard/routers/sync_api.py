# contentboard/routers/sync_api.py
from typing import Any, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from fastapi import APIRouter, Depends

from contentboard.config import settings
from contentboard.db.models import Role, User
from contentboard.db.store import Store
from contentboard.deps import get_store, require_role
from contentboard.errors import ValidationError
from contentboard.routers.dashboard import post_payload
from contentboard.services import analysis
from contentboard.services.scheduler import run_once
from contentboard.services.sync import ContentSyncReconciler

router = APIRouter(prefix="/api", tags=["sync"])

scheduler: Optional[BackgroundScheduler] = None


def get_reconciler(store: Store = Depends(get_store)) -> ContentSyncReconciler:
    return ContentSyncReconciler(store)


def get_generator() -> analysis.Generator:
    return analysis.default_generator()


@router.post("/sync/all")
def sync_all(
    reconciler: ContentSyncReconciler = Depends(get_reconciler),
    user: User = Depends(require_role(Role.ADMIN)),
) -> Dict[str, Any]:
    return {"results": reconciler.sync_all_active()}


@router.post("/sync/scheduler/start")
def start(cron: Optional[str] = None, user: User = Depends(require_role(Role.ADMIN))) -> Dict[str, Any]:
    # standard 5-field cron: m h dom mon dow
    global scheduler
    if scheduler and scheduler.running:
        return {"status": "already-running"}
    cron = cron or settings.sync_cron
    try:
        trigger = CronTrigger.from_crontab(cron, timezone="UTC")
    except ValueError as e:
        raise ValidationError(f"Invalid cron expression: {cron}") from e

    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(run_once, trigger, id="platform_sync", replace_existing=True, max_instances=1, coalesce=True)
    scheduler.start()
    return {"status": "started", "cron": cron}


@router.post("/sync/scheduler/stop")
def stop(user: User = Depends(require_role(Role.ADMIN))) -> Dict[str, Any]:
    global scheduler
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        return {"status": "stopped"}
    return {"status": "not-running"}


@router.get("/sync/scheduler/status")
def status(user: User = Depends(require_role(Role.USER))) -> Dict[str, Any]:
    return {"running": bool(scheduler and scheduler.running)}


@router.post("/sync/{platform_type}")
def sync_platform(
    platform_type: str,
    reconciler: ContentSyncReconciler = Depends(get_reconciler),
    user: User = Depends(require_role(Role.ADMIN)),
) -> Dict[str, Any]:
    posts = reconciler.sync_platform(platform_type)
    return {"platform": platform_type, "synced": len(posts), "posts": [post_payload(p) for p in posts]}


@router.post("/posts/{post_id}/metrics")
def refresh_post_metrics(
    post_id: int,
    reconciler: ContentSyncReconciler = Depends(get_reconciler),
    user: User = Depends(require_role(Role.USER)),
) -> Dict[str, Any]:
    return post_payload(reconciler.sync_post_metrics(post_id))


@router.post("/posts/{post_id}/analyze")
def analyze(
    post_id: int,
    user: User = Depends(require_role(Role.USER)),
    store: Store = Depends(get_store),
    generate: analysis.Generator = Depends(get_generator),
) -> Dict[str, Any]:
    return post_payload(analysis.analyze_post(store, post_id, generate))


@router.get("/platforms/{platform_type}/validate")
def validate_platform(
    platform_type: str,
    reconciler: ContentSyncReconciler = Depends(get_reconciler),
    user: User = Depends(require_role(Role.USER)),
) -> Dict[str, Any]:
    return {"platform": platform_type, "valid": reconciler.validate_credentials(platform_type)}


def shutdown_scheduler() -> None:
    global scheduler
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
    scheduler = None
