import json
from typing import Any, Dict

import structlog
from cryptography.fernet import Fernet, InvalidToken

from contentboard.config import settings
from contentboard.errors import ConfigError

logger = structlog.get_logger()


def _fernet() -> Fernet:
    if not settings.fernet_key:
        raise ConfigError("FERNET_KEY is missing in .env")
    return Fernet(settings.fernet_key.encode())


def encrypt_credentials(bundle: Dict[str, Any]) -> str:
    return _fernet().encrypt(json.dumps(bundle).encode()).decode()


def decrypt_credentials(cipher: str) -> Dict[str, Any]:
    try:
        return json.loads(_fernet().decrypt(cipher.encode()).decode())
    except (TypeError, InvalidToken) as e:
        # Usually means FERNET_KEY was rotated without re-saving credentials
        logger.error("credentials_decrypt_failed", error=type(e).__name__)
        raise
