"""Admin login and logout."""

from fastapi import APIRouter, Depends, Response

from salon.app.core.config import settings
from salon.app.core.logging import get_logger
from salon.app.exceptions import AuthenticationError, NotSupportedError
from salon.app.middleware.auth import (
    ADMIN_COOKIE_NAME,
    check_password,
    issue_admin_token,
    require_admin,
)
from salon.app.schemas import LoginRequest

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = get_logger(__name__)


@router.post("/login")
async def login(payload: LoginRequest, response: Response) -> dict[str, bool]:
    """Exchange the admin password for a session cookie."""
    if not check_password(payload.password):
        logger.warning("Failed admin login attempt")
        raise AuthenticationError("Invalid password")

    response.set_cookie(
        ADMIN_COOKIE_NAME,
        issue_admin_token(),
        max_age=settings.admin_session_max_age,
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
    )
    return {"success": True}


@router.post("/logout")
async def logout(response: Response) -> dict[str, bool]:
    response.delete_cookie(ADMIN_COOKIE_NAME)
    return {"success": True}


@router.put("/password", dependencies=[Depends(require_admin)])
async def change_password() -> None:
    raise NotSupportedError(
        "Password change is not supported at runtime",
        hint="Set ADMIN_PASSWORD in the environment and restart the service",
    )
