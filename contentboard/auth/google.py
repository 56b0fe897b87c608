# contentboard/auth/google.py
import contextlib
import time
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode, quote

import httpx
import structlog

from contentboard.config import settings
from contentboard.errors import AuthError, FailureReason
from contentboard.services.http_retry import default_timeout, request_with_retry

logger = structlog.get_logger()

AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"


@dataclass(frozen=True)
class GoogleProfile:
    id: str
    email: str
    name: Optional[str] = None
    picture: Optional[str] = None


class GoogleOAuthClient:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scopes: str = "openid email profile",
        http: Optional[httpx.Client] = None,
        sleep=time.sleep,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = scopes
        self._http = http
        self._sleep = sleep

    @classmethod
    def from_settings(cls) -> "GoogleOAuthClient":
        return cls(
            settings.google_client_id,
            settings.google_client_secret,
            settings.google_redirect_uri,
            scopes=settings.google_scopes,
        )

    def _client(self):
        if self._http is not None:
            return contextlib.nullcontext(self._http)
        return httpx.Client(timeout=default_timeout())

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.scopes,
            "state": state,
            "access_type": "offline",
            "prompt": "select_account",
        }
        qs = urlencode(params, quote_via=quote, safe=":/")
        return f"{AUTH_URL}?{qs}"

    def exchange_code(self, code: str) -> str:
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        try:
            with self._client() as c:
                resp = request_with_retry(
                    c, "POST", TOKEN_URL,
                    data=data,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                    sleep=self._sleep,
                )
            if resp.status_code != 200:
                logger.error("google_token_exchange_failed", status=resp.status_code, body=resp.text[:500])
                raise AuthError(FailureReason.TOKEN_EXCHANGE_FAILED)
            access_token = resp.json().get("access_token")
        except httpx.HTTPError as e:
            logger.error("google_token_exchange_error", error=str(e))
            raise AuthError(FailureReason.TOKEN_EXCHANGE_FAILED) from e
        except ValueError as e:
            logger.error("google_token_exchange_bad_json", error=str(e))
            raise AuthError(FailureReason.TOKEN_EXCHANGE_FAILED) from e
        if not access_token:
            logger.error("google_token_exchange_no_access_token")
            raise AuthError(FailureReason.TOKEN_EXCHANGE_FAILED)
        return access_token

    def fetch_profile(self, access_token: str) -> GoogleProfile:
        try:
            with self._client() as c:
                resp = request_with_retry(
                    c, "GET", USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                    sleep=self._sleep,
                )
            if resp.status_code != 200:
                logger.error("google_profile_fetch_failed", status=resp.status_code, body=resp.text[:500])
                raise AuthError(FailureReason.PROFILE_FETCH_FAILED)
            data = resp.json()
        except httpx.HTTPError as e:
            logger.error("google_profile_fetch_error", error=str(e))
            raise AuthError(FailureReason.PROFILE_FETCH_FAILED) from e
        except ValueError as e:
            logger.error("google_profile_bad_json", error=str(e))
            raise AuthError(FailureReason.PROFILE_FETCH_FAILED) from e

        if not isinstance(data, dict) or not data.get("id") or not data.get("email"):
            logger.error("google_profile_incomplete", keys=sorted(data) if isinstance(data, dict) else None)
            raise AuthError(FailureReason.PROFILE_FETCH_FAILED)
        return GoogleProfile(
            id=str(data["id"]),
            email=data["email"],
            name=data.get("name") or data["email"].split("@")[0],
            picture=data.get("picture"),
        )
