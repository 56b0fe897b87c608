# contentboard/services/adapters/base.py
"""Contract every platform adapter implements, plus the HTTP plumbing they share."""
import contextlib
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
import structlog

from contentboard.errors import AdapterError
from contentboard.services.http_retry import default_timeout, request_with_retry

logger = structlog.get_logger()

_TZ_NO_COLON = re.compile(r"([+-]\d{2})(\d{2})$")


@dataclass
class NormalizedPost:
    content_id: str
    title: str
    content: str
    media_urls: List[str] = field(default_factory=list)
    published_at: Optional[datetime] = None


def base_metrics(likes: int = 0, comments: int = 0, shares: int = 0, engagement_rate: float = 0.0) -> Dict[str, Any]:
    return {
        "likes": int(likes),
        "comments": int(comments),
        "shares": int(shares),
        "engagementRate": float(engagement_rate),
    }


def parse_iso_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse '2024-01-15T10:00:00Z' / '...+0000' / '...+00:00' into naive UTC."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _TZ_NO_COLON.sub(r"\1:\2", text)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise AdapterError(f"Unparseable timestamp: {value!r}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class PlatformAdapter(ABC):
    platform_type: str = ""
    required_credentials: tuple = ()

    def __init__(self, credentials: Dict[str, Any], http: Optional[httpx.Client] = None, sleep=time.sleep):
        missing = [k for k in self.required_credentials if not credentials.get(k)]
        if missing:
            raise AdapterError(f"{self.platform_type} credentials missing: {', '.join(missing)}")
        self.credentials = credentials
        self._http = http
        self._sleep = sleep

    def _client(self):
        if self._http is not None:
            return contextlib.nullcontext(self._http)
        return httpx.Client(timeout=default_timeout())

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> Any:
        try:
            with self._client() as c:
                resp = request_with_retry(c, "GET", url, params=params or {}, headers=headers or {}, sleep=self._sleep)
        except httpx.HTTPError as e:
            raise AdapterError(f"{self.platform_type} request failed: {e}") from e
        if resp.status_code != 200:
            logger.warning(
                "adapter_http_error",
                platform=self.platform_type,
                url=url,
                status=resp.status_code,
                body=resp.text[:300],
            )
            raise AdapterError(f"{self.platform_type} API returned {resp.status_code}")
        try:
            return resp.json()
        except ValueError as e:
            raise AdapterError(f"{self.platform_type} API returned invalid JSON") from e

    @abstractmethod
    def list_posts(self) -> List[Dict[str, Any]]:
        """Raw post payloads, newest first as the API returns them."""

    @abstractmethod
    def fetch_metrics(self, content_id: str) -> Dict[str, Any]:
        """Metrics dict; always carries likes/comments/shares/engagementRate."""

    @abstractmethod
    def normalize(self, raw: Dict[str, Any]) -> NormalizedPost:
        ...

    @abstractmethod
    def ping(self) -> None:
        """Cheapest authenticated call; raises AdapterError when credentials are dead."""

    def validate(self) -> bool:
        try:
            self.ping()
            return True
        except AdapterError as e:
            logger.info("adapter_validation_failed", platform=self.platform_type, error=str(e))
            return False
