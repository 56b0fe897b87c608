# contentboard/services/adapters/instagram.py
from typing import Any, Dict, List

from contentboard.errors import AdapterError
from contentboard.services.adapters.base import (
    NormalizedPost,
    PlatformAdapter,
    base_metrics,
    parse_iso_timestamp,
    to_int,
)

API_BASE = "https://graph.instagram.com"
MEDIA_FIELDS = "id,caption,media_type,media_url,permalink,thumbnail_url,timestamp"
INSIGHT_METRICS = "likes,comments,shares,saves,impressions,reach,profile_visits"


class InstagramAdapter(PlatformAdapter):
    platform_type = "instagram"
    required_credentials = ("accessToken", "userId")

    def _params(self, **extra) -> Dict[str, Any]:
        return {"access_token": self.credentials["accessToken"], **extra}

    def list_posts(self) -> List[Dict[str, Any]]:
        data = self._get(
            f"{API_BASE}/{self.credentials['userId']}/media",
            params=self._params(fields=MEDIA_FIELDS, limit=50),
        )
        return data.get("data") or []

    def normalize(self, raw: Dict[str, Any]) -> NormalizedPost:
        if not raw.get("id"):
            raise AdapterError("instagram media without id")
        caption = raw.get("caption") or ""
        media_url = raw.get("media_url")
        return NormalizedPost(
            content_id=str(raw["id"]),
            title=caption[:100] or "Instagram Post",
            content=caption,
            media_urls=[media_url] if media_url else [],
            published_at=parse_iso_timestamp(raw.get("timestamp")),
        )

    def fetch_metrics(self, content_id: str) -> Dict[str, Any]:
        insights = self._get(
            f"{API_BASE}/{content_id}/insights",
            params=self._params(metric=INSIGHT_METRICS),
        )
        values: Dict[str, Any] = {}
        for insight in insights.get("data") or []:
            points = insight.get("values") or [{}]
            values[insight.get("name")] = points[0].get("value") or 0

        engagement = self._get(
            f"{API_BASE}/{content_id}",
            params=self._params(fields="like_count,comments_count"),
        )
        likes = to_int(engagement.get("like_count"))
        comments = to_int(engagement.get("comments_count"))
        shares = to_int(values.get("shares"))
        saves = to_int(values.get("saves"))
        impressions = to_int(values.get("impressions")) or 1
        rate = (likes + comments + shares + saves) / impressions * 100

        metrics = base_metrics(likes, comments, shares, rate)
        metrics.update({
            "saves": saves,
            "reach": to_int(values.get("reach")),
            "impressions": impressions,
            "profileVisits": to_int(values.get("profile_visits")),
        })
        if "video_views" in values:
            metrics["views"] = to_int(values["video_views"])
        return metrics

    def ping(self) -> None:
        self._get(f"{API_BASE}/{self.credentials['userId']}", params=self._params(fields="id"))
