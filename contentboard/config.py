import os
from typing import List

from dotenv import load_dotenv

from contentboard.errors import ConfigError

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    app_env: str = os.getenv("APP_ENV", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./contentboard.db")
    frontend_url: str = os.getenv("FRONTEND_URL", "").rstrip("/")

    google_client_id: str = os.getenv("GOOGLE_CLIENT_ID", "")
    google_client_secret: str = os.getenv("GOOGLE_CLIENT_SECRET", "")
    google_redirect_uri: str = os.getenv("GOOGLE_REDIRECT_URI", "")
    google_scopes: str = os.getenv("GOOGLE_SCOPES", "openid email profile")

    # Signs the auth_token cookie. Rotating it logs everybody out.
    jwt_secret: str = os.getenv("JWT_SECRET", "")
    session_ttl_days: int = int(os.getenv("SESSION_TTL_DAYS", "7"))
    cookie_secure: bool = _env_bool("COOKIE_SECURE", os.getenv("APP_ENV", "development") == "production")

    # Gate registration on the allowed_emails table.
    require_allowlist: bool = _env_bool("REQUIRE_ALLOWLIST", True)
    oauth_state_ttl_seconds: int = int(os.getenv("OAUTH_STATE_TTL_SECONDS", "600"))
    oauth_state_sweep_seconds: int = int(os.getenv("OAUTH_STATE_SWEEP_SECONDS", "300"))

    fernet_key: str = os.getenv("FERNET_KEY", "")

    http_timeout: float = float(os.getenv("HTTP_TIMEOUT", "30"))
    http_max_attempts: int = int(os.getenv("HTTP_MAX_ATTEMPTS", "3"))
    http_retry_backoff: float = float(os.getenv("HTTP_RETRY_BACKOFF", "2"))

    sync_cron: str = os.getenv("SYNC_CRON", "0 */6 * * *")

    hf_api_token: str = os.getenv("HF_API_TOKEN", "")
    analysis_model: str = os.getenv("ANALYSIS_MODEL", "mistralai/Mistral-7B-Instruct-v0.3")

    def missing(self) -> List[str]:
        required = {
            "GOOGLE_CLIENT_ID": self.google_client_id,
            "GOOGLE_CLIENT_SECRET": self.google_client_secret,
            "GOOGLE_REDIRECT_URI": self.google_redirect_uri,
            "JWT_SECRET": self.jwt_secret,
            "DATABASE_URL": self.database_url,
            "FERNET_KEY": self.fernet_key,
        }
        return [name for name, value in required.items() if not value]

    def validate(self) -> None:
        """Raise ConfigError naming every required variable that is unset."""
        missing = self.missing()
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

settings = Settings()
