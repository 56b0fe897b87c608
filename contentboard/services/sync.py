# contentboard/services/sync.py
"""Pull posts from platform adapters and reconcile them into content_posts by content_id."""
from datetime import datetime
from typing import Any, Callable, Dict, List

import structlog

from contentboard.clock import utcnow
from contentboard.db.models import ContentPost, Platform
from contentboard.db.store import Store
from contentboard.errors import PlatformNotConfigured, PostNotFound, SyncFailed
from contentboard.services.adapters.base import PlatformAdapter
from contentboard.services.adapters.registry import build_adapter

logger = structlog.get_logger()

AdapterFactory = Callable[[str, Dict[str, Any]], PlatformAdapter]


class ContentSyncReconciler:
    def __init__(
        self,
        store: Store,
        adapter_factory: AdapterFactory = build_adapter,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.adapter_factory = adapter_factory
        self.clock = clock

    def _platform(self, platform_type: str) -> Platform:
        platform = self.store.get_platform(platform_type)
        if not platform:
            raise PlatformNotConfigured(platform_type)
        return platform

    def _adapter_for(self, platform: Platform) -> PlatformAdapter:
        return self.adapter_factory(platform.type, self.store.platform_credentials(platform))

    def sync_platform(self, platform_type: str) -> List[ContentPost]:
        """Create-or-update every post the platform lists.

        A failing listing call aborts with SyncFailed; a failing individual
        post is logged and left out of the result. last_sync_at moves
        whenever the listing itself succeeded.
        """
        platform = self._platform(platform_type)
        log = logger.bind(platform=platform_type)
        try:
            adapter = self._adapter_for(platform)
            raw_posts = adapter.list_posts()
        except Exception as e:
            log.error("sync_listing_failed", error=str(e))
            raise SyncFailed(platform_type, e) from e

        synced: List[ContentPost] = []
        for raw in raw_posts:
            try:
                synced.append(self._reconcile(platform, adapter, raw))
            except Exception:
                self.store.rollback()
                log.exception("sync_post_failed", raw_id=raw.get("id") if isinstance(raw, dict) else None)

        self.store.mark_platform_synced(platform, self.clock())
        log.info("sync_completed", listed=len(raw_posts), synced=len(synced))
        return synced

    def _reconcile(self, platform: Platform, adapter: PlatformAdapter, raw: Dict[str, Any]) -> ContentPost:
        normalized = adapter.normalize(raw)
        existing = self.store.find_content_post_by_external_id(normalized.content_id)
        metrics = adapter.fetch_metrics(normalized.content_id)
        if existing:
            return self.store.update_post_metrics(existing, metrics, self.clock())
        return self.store.upsert_content_post(
            platform,
            content_id=normalized.content_id,
            title=normalized.title,
            content=normalized.content,
            media_urls=normalized.media_urls,
            published_at=normalized.published_at,
            metrics=metrics,
            now=self.clock(),
        )

    def sync_post_metrics(self, post_id: int) -> ContentPost:
        post = self.store.get_content_post(post_id)
        if not post:
            raise PostNotFound(post_id)
        platform = self._platform(post.platform_type)
        adapter = self._adapter_for(platform)
        metrics = adapter.fetch_metrics(post.content_id)
        return self.store.update_post_metrics(post, metrics, self.clock())

    def validate_credentials(self, platform_type: str) -> bool:
        platform = self.store.get_platform(platform_type)
        if not platform:
            return False
        try:
            return bool(self._adapter_for(platform).validate())
        except Exception as e:
            logger.info("credential_validation_error", platform=platform_type, error=str(e))
            return False

    def sync_all_active(self) -> List[Dict[str, Any]]:
        results = []
        for platform in self.store.list_platforms(active_only=True):
            try:
                posts = self.sync_platform(platform.type)
                results.append({"platform": platform.type, "status": "ok", "synced": len(posts)})
            except SyncFailed:
                results.append({"platform": platform.type, "status": "failed", "synced": 0})
        return results
