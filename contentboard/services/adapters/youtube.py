# contentboard/services/adapters/youtube.py
import re
from typing import Any, Dict, List

from contentboard.errors import AdapterError
from contentboard.services.adapters.base import (
    NormalizedPost,
    PlatformAdapter,
    base_metrics,
    parse_iso_timestamp,
    to_int,
)

API_BASE = "https://www.googleapis.com/youtube/v3"

# YouTube reports no view-duration data on the public API; assume 40% watched
WATCH_RATIO = 0.4

_DURATION = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")


def parse_duration(value: str) -> int:
    """ISO-8601 video duration ('PT4M13S') to seconds; 0 if unrecognised."""
    match = _DURATION.fullmatch(value or "")
    if not match:
        return 0
    hours, minutes, seconds = (int(g or 0) for g in match.groups())
    return hours * 3600 + minutes * 60 + seconds


class YouTubeAdapter(PlatformAdapter):
    platform_type = "youtube"
    required_credentials = ("apiKey", "channelId")

    def _params(self, **extra) -> Dict[str, Any]:
        return {"key": self.credentials["apiKey"], **extra}

    def list_posts(self) -> List[Dict[str, Any]]:
        channel = self._get(
            f"{API_BASE}/channels",
            params=self._params(part="contentDetails", id=self.credentials["channelId"]),
        )
        items = channel.get("items") or []
        uploads = (
            ((items[0].get("contentDetails") or {}).get("relatedPlaylists") or {}).get("uploads")
            if items else None
        )
        if not uploads:
            raise AdapterError("No uploads playlist found")

        videos = self._get(
            f"{API_BASE}/playlistItems",
            params=self._params(part="snippet", playlistId=uploads, maxResults=50),
        )
        return videos.get("items") or []

    def normalize(self, raw: Dict[str, Any]) -> NormalizedPost:
        snippet = raw.get("snippet") or {}
        video_id = (snippet.get("resourceId") or {}).get("videoId")
        if not video_id:
            raise AdapterError("playlist item without videoId")
        thumb = ((snippet.get("thumbnails") or {}).get("high") or {}).get("url")
        return NormalizedPost(
            content_id=video_id,
            title=snippet.get("title") or "YouTube Video",
            content=snippet.get("description") or "",
            media_urls=[thumb] if thumb else [],
            published_at=parse_iso_timestamp(snippet.get("publishedAt")),
        )

    def fetch_metrics(self, content_id: str) -> Dict[str, Any]:
        data = self._get(
            f"{API_BASE}/videos",
            params=self._params(part="statistics,contentDetails", id=content_id),
        )
        items = data.get("items") or []
        if not items:
            raise AdapterError(f"Video {content_id} not found")
        stats = items[0].get("statistics") or {}
        duration = parse_duration((items[0].get("contentDetails") or {}).get("duration", ""))

        views = to_int(stats.get("viewCount"))
        likes = to_int(stats.get("likeCount"))
        comments = to_int(stats.get("commentCount"))
        rate = (likes + comments) / views * 100 if views > 0 else 0.0

        # the public API has no share count
        metrics = base_metrics(likes, comments, 0, rate)
        metrics.update({
            "views": views,
            "watchTime": int(views * duration * WATCH_RATIO),
            "subscribers": to_int(stats.get("subscriberCount")),
            "averageViewDuration": int(duration * WATCH_RATIO),
        })
        return metrics

    def ping(self) -> None:
        data = self._get(
            f"{API_BASE}/channels",
            params=self._params(part="statistics", id=self.credentials["channelId"]),
        )
        if not data.get("items"):
            raise AdapterError("channel not found")
