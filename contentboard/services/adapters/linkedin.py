# contentboard/services/adapters/linkedin.py
from datetime import datetime, timezone
from typing import Any, Dict, List
from urllib.parse import quote

from contentboard.errors import AdapterError
from contentboard.services.adapters.base import NormalizedPost, PlatformAdapter, base_metrics, to_int

API_BASE = "https://api.linkedin.com/v2"
ME_URL = f"{API_BASE}/me"
SHARES_URL = f"{API_BASE}/shares"
SOCIAL_ACTIONS_URL = f"{API_BASE}/socialActions"


class LinkedInAdapter(PlatformAdapter):
    platform_type = "linkedin"
    required_credentials = ("accessToken",)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.credentials['accessToken']}",
            "X-Restli-Protocol-Version": "2.0.0",
        }

    def member_id(self) -> str:
        data = self._get(ME_URL, params={"projection": "(id)"}, headers=self._headers())
        member = str(data.get("id", "")) if isinstance(data, dict) else ""
        if not member:
            raise AdapterError("linkedin /me returned no id")
        return member

    def ping(self) -> None:
        self.member_id()

    def list_posts(self) -> List[Dict[str, Any]]:
        owner = self.credentials.get("memberUrn") or f"urn:li:person:{self.member_id()}"
        data = self._get(
            SHARES_URL,
            params={"q": "owners", "owners": owner, "sortBy": "CREATED", "count": 50},
            headers=self._headers(),
        )
        return data.get("elements") or []

    def normalize(self, raw: Dict[str, Any]) -> NormalizedPost:
        content_id = raw.get("id")
        if not content_id:
            raise AdapterError("linkedin share without id")
        text = (raw.get("text") or {}).get("text") or ""
        created_ms = (raw.get("created") or {}).get("time")
        published_at = (
            datetime.fromtimestamp(created_ms / 1000, tz=timezone.utc).replace(tzinfo=None)
            if created_ms
            else None
        )
        entities = (raw.get("content") or {}).get("contentEntities") or []
        media = [e["entityLocation"] for e in entities if e.get("entityLocation")]
        return NormalizedPost(
            content_id=str(content_id),
            title=text[:100] or "LinkedIn Post",
            content=text,
            media_urls=media,
            published_at=published_at,
        )

    def fetch_metrics(self, content_id: str) -> Dict[str, Any]:
        stats = self._get(f"{SOCIAL_ACTIONS_URL}/{quote(content_id, safe='')}", headers=self._headers())
        likes = to_int((stats.get("likesSummary") or {}).get("totalLikes"))
        comments = to_int((stats.get("commentsSummary") or {}).get("totalComments"))
        shares = to_int((stats.get("sharesSummary") or {}).get("totalShares"))
        impressions = to_int(stats.get("impressions"))
        rate = (likes + comments + shares) / (impressions or 1) * 100

        metrics = base_metrics(likes, comments, shares, rate)
        metrics.update({
            "impressions": impressions,
            "clickThroughRate": float(stats.get("clickThroughRate") or 0),
            "reach": to_int(stats.get("reach")),
        })
        return metrics
