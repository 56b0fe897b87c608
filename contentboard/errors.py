from enum import Enum


class FailureReason(str, Enum):
    """Closed set of reasons sent back to /login?error=..."""

    OAUTH_FAILED = "oauth_failed"
    INVALID_STATE = "invalid_state"
    MISSING_CODE = "missing_code"
    TOKEN_EXCHANGE_FAILED = "token_exchange_failed"
    PROFILE_FETCH_FAILED = "profile_fetch_failed"
    UNAUTHORIZED_EMAIL = "unauthorized_email"
    INTERNAL_ERROR = "internal_error"


class ConfigError(RuntimeError):
    """Required configuration is absent. Fatal at startup."""


class AuthError(Exception):
    def __init__(self, reason: FailureReason, detail: str = ""):
        super().__init__(detail or reason.value)
        self.reason = reason
        self.detail = detail


class InvalidSessionToken(Exception):
    pass


class ExpiredToken(InvalidSessionToken):
    pass


class MalformedToken(InvalidSessionToken):
    pass


class NotFoundError(LookupError):
    pass


class PlatformNotConfigured(NotFoundError):
    def __init__(self, platform_type: str):
        super().__init__(f"Platform {platform_type} not configured")
        self.platform_type = platform_type


class PostNotFound(NotFoundError):
    def __init__(self, post_id):
        super().__init__(f"Post {post_id} not found")
        self.post_id = post_id


class AdapterError(Exception):
    """An external platform API call failed (network, auth, quota, bad payload)."""


class SyncFailed(AdapterError):
    def __init__(self, platform_type: str, cause: Exception):
        super().__init__(f"Sync of {platform_type} failed: {cause}")
        self.platform_type = platform_type
        self.cause = cause


class ValidationError(ValueError):
    pass
