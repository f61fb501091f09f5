"""
API Dependencies

Accessors for the process-scoped objects the application lifespan places on
``app.state``, plus the admin authentication guard.
"""

from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, Request

from whistle_service.config.settings import Settings
from whistle_service.core.auth import AdminAuthenticator
from whistle_service.core.exceptions import Unauthorized
from whistle_service.core.notification_hub import NotificationHub
from whistle_service.core.report_manager import ReportManager

AUTH_COOKIE = "auth"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_report_manager(request: Request) -> ReportManager:
    """Dependency for getting the ReportManager instance"""
    return request.app.state.report_manager


def get_hub(request: Request) -> NotificationHub:
    return request.app.state.hub


def get_authenticator(request: Request) -> AdminAuthenticator:
    return request.app.state.authenticator


def require_admin(
    request: Request,
    authorization: Optional[str] = Header(None),
    authenticator: AdminAuthenticator = Depends(get_authenticator)
) -> Dict[str, Any]:
    """Authenticate an admin by cookie first, then bearer token"""
    token = request.cookies.get(AUTH_COOKIE)
    if not token and authorization and authorization.startswith("Bearer "):
        token = authorization[len("Bearer "):]

    try:
        return authenticator.verify_token(token)
    except Unauthorized as e:
        raise HTTPException(
            status_code=401,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"}
        )
