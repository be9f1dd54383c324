"""OAuth2 access tokens for a Google service account.

Implements the JWT bearer grant: a self-signed RS256 assertion is exchanged
at Google's token endpoint for a short-lived access token, which is cached
until shortly before it expires.
"""

import asyncio
import time
from typing import Callable, Optional

import httpx
from jose import jwt
from jose.exceptions import JOSEError

from salon.app.core.logging import get_logger
from salon.app.exceptions import NotConfiguredError, StorageError

logger = get_logger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"

ASSERTION_LIFETIME = 3600
REFRESH_MARGIN = 60  # Refresh this many seconds before expiry


class ServiceAccountTokenProvider:
    def __init__(
        self,
        client_email: str,
        private_key: str,
        http_client: httpx.AsyncClient,
        scope: str = SHEETS_SCOPE,
        token_url: str = GOOGLE_TOKEN_URL,
        clock: Callable[[], float] = time.time,
    ):
        if not client_email or not private_key:
            raise NotConfiguredError("Google Service Account credentials not configured")
        self._client_email = client_email
        self._private_key = private_key
        self._http = http_client
        self._scope = scope
        self._token_url = token_url
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at: float = 0.0
        self._lock = asyncio.Lock()

    def build_assertion(self, now: Optional[float] = None) -> str:
        issued_at = int(self._clock() if now is None else now)
        claims = {
            "iss": self._client_email,
            "scope": self._scope,
            "aud": self._token_url,
            "iat": issued_at,
            "exp": issued_at + ASSERTION_LIFETIME,
        }
        try:
            return jwt.encode(claims, self._private_key, algorithm="RS256")
        except JOSEError as e:
            raise NotConfiguredError(f"Invalid Google service account key: {e}") from e

    async def get_token(self) -> str:
        async with self._lock:
            if self._token and self._clock() < self._expires_at - REFRESH_MARGIN:
                return self._token

            logger.debug("Requesting Google access token")
            try:
                response = await self._http.post(
                    self._token_url,
                    data={"grant_type": JWT_BEARER_GRANT, "assertion": self.build_assertion()},
                )
                response.raise_for_status()
            except httpx.HTTPError as e:
                logger.error(f"Google token request failed: {e}")
                raise StorageError("Failed to authenticate with Google") from e

            payload = response.json()
            token = payload.get("access_token")
            if not token:
                raise StorageError("Google token response contained no access token")

            self._token = token
            self._expires_at = self._clock() + int(payload.get("expires_in", ASSERTION_LIFETIME))
            return token

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0
