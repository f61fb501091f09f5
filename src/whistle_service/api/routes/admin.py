"""
Admin API Routes

Admin login issuing the session token.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from whistle_service.api.dependencies import AUTH_COOKIE, get_authenticator, get_settings
from whistle_service.config.settings import Settings
from whistle_service.core.auth import AdminAuthenticator
from whistle_service.models import AdminLoginRequest, AdminLoginResponse

router = APIRouter(prefix="/admin", tags=["admin"])
logger = logging.getLogger(__name__)


@router.post(
    "/login",
    response_model=AdminLoginResponse,
    response_model_exclude_none=True,
    summary="Admin Login",
    description="""
Exchange admin credentials for a session token.

On success the token is returned in the body (for `Authorization: Bearer`
and the notification stream) and set as an http-only `auth` cookie.

Failures are answered after a fixed delay with a generic message that does
not reveal whether the username or the password was wrong.
    """,
    responses={
        200: {"description": "Login succeeded"},
        401: {"description": "Invalid username or password"}
    }
)
async def admin_login(
    request: AdminLoginRequest,
    response: Response,
    authenticator: AdminAuthenticator = Depends(get_authenticator),
    settings: Settings = Depends(get_settings)
):
    """Admin login"""
    if authenticator.verify_credentials(request.username, request.password):
        token = authenticator.create_token(request.username)
        response.set_cookie(
            AUTH_COOKIE,
            token,
            httponly=True,
            secure=settings.is_production,
            samesite="strict",
            max_age=authenticator.expire_minutes * 60,
            path="/"
        )
        logger.info("Admin login succeeded")
        return AdminLoginResponse(success=True, token=token)

    await asyncio.sleep(settings.login_failure_delay_seconds)
    logger.warning("Admin login failed")
    return JSONResponse(
        status_code=401,
        content={"success": False, "error": "Invalid username or password"}
    )
