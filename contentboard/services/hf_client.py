from typing import Any, Dict, Optional

import httpx
import structlog

from contentboard.config import settings
from contentboard.errors import AdapterError, ConfigError
from contentboard.services.http_retry import request_with_retry

logger = structlog.get_logger()

INFERENCE_URL = "https://api-inference.huggingface.co/models/{model}"


class HFClient:
    """Text generation over the HuggingFace inference API.

    A cold model answers 503 while it loads; request_with_retry covers that.
    """

    def __init__(self, api_token: Optional[str] = None, timeout: float = 60.0, http: Optional[httpx.Client] = None):
        self.api_token = api_token or settings.hf_api_token
        if not self.api_token:
            raise ConfigError("HF_API_TOKEN is not set. Put it in .env or set it in the environment.")
        self.client = http or httpx.Client(timeout=timeout)

    def text_generation(self, model: str, inputs: str, params: Optional[Dict[str, Any]] = None) -> str:
        body: Dict[str, Any] = {"inputs": inputs, "parameters": params or {}}
        try:
            r = request_with_retry(
                self.client, "POST", INFERENCE_URL.format(model=model),
                headers={"Authorization": f"Bearer {self.api_token}"},
                json=body,
            )
        except httpx.RequestError as e:
            raise AdapterError(f"HuggingFace request failed: {e}") from e
        if r.status_code != 200:
            logger.error("hf_generation_failed", model=model, status=r.status_code, body=r.text[:300])
            raise AdapterError(f"HuggingFace API error {r.status_code}")

        try:
            data = r.json()
        except ValueError as e:
            raise AdapterError("HuggingFace API returned invalid JSON") from e
        first = data[0] if isinstance(data, list) and data else data
        if isinstance(first, dict) and "generated_text" in first:
            return first["generated_text"]
        return str(data)
