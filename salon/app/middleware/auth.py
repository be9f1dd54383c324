"""Admin authentication.

A successful login issues an HS256 JWT keyed by the admin password. It is sent
back as the ``admin_token`` cookie, or as a Bearer token by API clients.
Changing the password invalidates every issued token.
"""

import hmac
import time
from typing import Optional

from fastapi import Request
from jose import JWTError, jwt

from salon.app.core.config import settings
from salon.app.exceptions import AuthenticationError, NotConfiguredError

ADMIN_COOKIE_NAME = "admin_token"
ADMIN_SUBJECT = "admin"
JWT_ALGORITHM = "HS256"
CLOCK_SKEW_SECONDS = 60


def get_admin_password() -> str:
    """Configured admin password, stripped of accidental whitespace."""
    return (settings.admin_password or "").strip()


def check_password(candidate: str) -> bool:
    """Constant-time comparison against the configured password.

    Raises:
        NotConfiguredError: if no admin password is configured
    """
    expected = get_admin_password()
    if not expected:
        raise NotConfiguredError("Admin password not configured")
    return hmac.compare_digest(candidate.encode(), expected.encode())


def issue_admin_token(now: Optional[float] = None) -> str:
    issued_at = int(time.time() if now is None else now)
    claims = {
        "sub": ADMIN_SUBJECT,
        "iat": issued_at,
        "exp": issued_at + settings.admin_session_max_age,
    }
    return jwt.encode(claims, get_admin_password(), algorithm=JWT_ALGORITHM)


def decode_admin_token(token: str) -> dict:
    """Decode and check an admin token.

    Raises:
        AuthenticationError: missing, expired or forged token
    """
    secret = get_admin_password()
    if not secret or not token:
        raise AuthenticationError()
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        raise AuthenticationError() from e

    if payload.get("sub") != ADMIN_SUBJECT:
        raise AuthenticationError()
    issued_at = payload.get("iat")
    if not isinstance(issued_at, int) or issued_at > time.time() + CLOCK_SKEW_SECONDS:
        raise AuthenticationError()
    return payload


def get_bearer_token(request: Request) -> str | None:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth.replace("Bearer ", "", 1).strip()


def require_admin(request: Request) -> str:
    """FastAPI dependency guarding admin endpoints.

    Raises:
        AuthenticationError: missing, expired or forged token
    """
    token = request.cookies.get(ADMIN_COOKIE_NAME) or get_bearer_token(request) or ""
    decode_admin_token(token)
    return "admin"


def require_cron_secret(request: Request) -> None:
    """Guard for scheduler-triggered endpoints.

    Open when no ``CRON_SECRET`` is configured.
    """
    secret = settings.cron_secret
    if not secret:
        return
    token = get_bearer_token(request) or ""
    if not hmac.compare_digest(token.encode(), secret.encode()):
        raise AuthenticationError()
