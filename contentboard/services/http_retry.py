# contentboard/services/http_retry.py
import time
from typing import Callable, Optional

import httpx
import structlog

from contentboard.config import settings

logger = structlog.get_logger()

RETRYABLE_STATUS = (429, 500, 502, 503, 504)


def default_timeout() -> httpx.Timeout:
    return httpx.Timeout(settings.http_timeout, connect=5)


def request_with_retry(
    client: httpx.Client,
    method: str,
    url: str,
    max_attempts: Optional[int] = None,
    backoff: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs,
) -> httpx.Response:
    """Send a request, retrying transport errors and 429/5xx with linear backoff.

    The last response is returned as-is once attempts run out; status
    handling is left to the caller.
    """
    max_attempts = settings.http_max_attempts if max_attempts is None else max_attempts
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
    backoff = settings.http_retry_backoff if backoff is None else backoff
    for attempt in range(1, max_attempts + 1):
        try:
            resp = client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.warning("http_request_error", url=url, attempt=attempt, error=str(e))
            if attempt < max_attempts:
                sleep(backoff * attempt)
                continue
            raise
        if resp.status_code in RETRYABLE_STATUS and attempt < max_attempts:
            logger.warning("http_retrying", url=url, attempt=attempt, status=resp.status_code)
            sleep(backoff * attempt)
            continue
        return resp
    raise RuntimeError(f"{method} {url} failed after {max_attempts} attempts")
