from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from contentboard.db.models import ContentPost, User
from contentboard.db.store import Store
from contentboard.deps import get_current_user, get_store
from contentboard.errors import PostNotFound
from contentboard.services.metrics import compute_overview

router = APIRouter(prefix="/api", tags=["dashboard"])


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def post_payload(p: ContentPost) -> Dict[str, Any]:
    out = {
        "id": p.id,
        "contentId": p.content_id,
        "platform": p.platform_type,
        "title": p.title,
        "content": p.content,
        "mediaUrls": p.media_urls or [],
        "publishedAt": _iso(p.published_at),
        "metrics": p.metrics or {},
        "createdAt": _iso(p.created_at),
        "updatedAt": _iso(p.updated_at),
        "script": None,
        "aiAnalysis": None,
    }
    if p.script_source:
        out["script"] = {
            "source": p.script_source,
            "title": p.script_title,
            "content": p.script_content,
            "url": p.script_url,
            "uploadedAt": _iso(p.script_uploaded_at),
        }
    if p.ai_generated_at:
        out["aiAnalysis"] = {
            "performanceScore": p.performance_score,
            "strengths": p.strengths or [],
            "weaknesses": p.weaknesses or [],
            "recommendations": p.recommendations or [],
            "contentStructureAnalysis": p.content_structure or {},
            "trendAnalysis": p.trend_analysis or {},
            "generatedAt": _iso(p.ai_generated_at),
        }
    return out


@router.get("/metrics/overview")
def metrics_overview(store: Store = Depends(get_store), user: User = Depends(get_current_user)) -> Dict[str, Any]:
    return compute_overview(store.list_content_posts())


@router.get("/posts/top")
def top_posts(
    limit: int = Query(5, ge=1, le=50),
    store: Store = Depends(get_store),
    user: User = Depends(get_current_user),
) -> List[Dict[str, Any]]:
    return [post_payload(p) for p in store.top_performing_posts(limit)]


@router.get("/posts")
def list_posts(
    platform: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    order_by: str = "published_at",
    order: str = Query("desc", pattern="^(asc|desc)$"),
    store: Store = Depends(get_store),
    user: User = Depends(get_current_user),
) -> List[Dict[str, Any]]:
    rows = store.list_content_posts(
        platform_type=platform,
        limit=limit,
        offset=offset,
        order_by=order_by,
        descending=order == "desc",
    )
    return [post_payload(p) for p in rows]


@router.get("/posts/{post_id}")
def get_post(post_id: int, store: Store = Depends(get_store), user: User = Depends(get_current_user)) -> Dict[str, Any]:
    post = store.get_content_post(post_id)
    if not post:
        raise PostNotFound(post_id)
    return post_payload(post)
