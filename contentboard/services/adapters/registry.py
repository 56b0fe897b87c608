from typing import Any, Dict, Optional, Type

import httpx

from contentboard.errors import ValidationError
from contentboard.services.adapters.base import PlatformAdapter
from contentboard.services.adapters.instagram import InstagramAdapter
from contentboard.services.adapters.linkedin import LinkedInAdapter
from contentboard.services.adapters.youtube import YouTubeAdapter

ADAPTERS: Dict[str, Type[PlatformAdapter]] = {
    LinkedInAdapter.platform_type: LinkedInAdapter,
    YouTubeAdapter.platform_type: YouTubeAdapter,
    InstagramAdapter.platform_type: InstagramAdapter,
}


def build_adapter(platform_type: str, credentials: Dict[str, Any], http: Optional[httpx.Client] = None) -> PlatformAdapter:
    try:
        cls = ADAPTERS[platform_type]
    except KeyError:
        raise ValidationError(f"Unsupported platform: {platform_type}")
    return cls(credentials, http=http)
