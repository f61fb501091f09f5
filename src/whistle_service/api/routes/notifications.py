"""
Notification API Routes

Server-Sent Events stream for live admin viewers, plus alert settings and
manual email alerts.
"""

import logging
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from whistle_service.api.dependencies import (
    get_hub,
    get_report_manager,
    get_settings,
    require_admin,
)
from whistle_service.config.settings import Settings
from whistle_service.core.exceptions import ReportNotFoundError, Unauthorized
from whistle_service.core.notification_hub import Connection, NotificationHub
from whistle_service.core.report_manager import ReportManager
from whistle_service.models import (
    EmailAlertRequest,
    NotificationSettingsResponse,
    ReportCategory,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)


async def sse_frames(hub: NotificationHub, connection: Connection) -> AsyncIterator[str]:
    """Render a connection's events as SSE frames; disconnects when done"""
    try:
        async for event in connection.events():
            yield f"data: {event.to_wire()}\n\n"
    finally:
        hub.disconnect(connection.id)


@router.get(
    "/stream",
    summary="Live Notification Stream",
    description="""
Long-lived Server-Sent Events stream for admin viewers.

**Events** (one JSON object per `data:` frame):
- `{"type": "connected", "message": "Notifications active"}` first
- `{"type": "heartbeat", "timestamp": ...}` periodically
- `{"type": "new_report" | "urgent_report", "reportId", "category", "severity", "timestamp"}`

Events published while a viewer is disconnected are not replayed.

**Authorization**: admin token in the `token` query parameter
    """,
    responses={
        200: {"description": "Event stream opened"},
        401: {"description": "Missing or invalid token"}
    }
)
async def stream_notifications(
    token: Optional[str] = Query(None, description="Admin token"),
    hub: NotificationHub = Depends(get_hub)
):
    """Stream notifications"""
    try:
        connection = await hub.subscribe(token)
    except Unauthorized:
        raise HTTPException(status_code=401, detail="Unauthorized")

    return StreamingResponse(
        sse_frames(hub, connection),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get(
    "/settings",
    response_model=NotificationSettingsResponse,
    summary="Notification Settings",
    description="Active alert channels and the number of live viewers. **Authorization**: Admin",
)
async def get_notification_settings(
    admin: Dict[str, Any] = Depends(require_admin),
    hub: NotificationHub = Depends(get_hub),
    settings: Settings = Depends(get_settings)
) -> NotificationSettingsResponse:
    """Get notification settings"""
    return NotificationSettingsResponse(
        email_enabled=hub.email_alerter is not None and hub.email_alerter.enabled,
        heartbeat_interval_seconds=settings.heartbeat_interval_seconds,
        categories=[c.value for c in ReportCategory],
        active_viewers=hub.connection_count
    )


@router.post(
    "/email",
    summary="Send Email Alert",
    description="""
Manually send the urgent-report email for a stored report.

**Authorization**: Admin
    """,
    responses={
        200: {"description": "Email sent"},
        404: {"description": "Report not found"},
        502: {"description": "SMTP relay refused or unreachable"},
        503: {"description": "Email alerts not configured"}
    }
)
async def send_email_alert(
    request: EmailAlertRequest,
    admin: Dict[str, Any] = Depends(require_admin),
    hub: NotificationHub = Depends(get_hub),
    manager: ReportManager = Depends(get_report_manager)
):
    """Send an email alert for a report"""
    alerter = hub.email_alerter
    if alerter is None or not alerter.enabled:
        raise HTTPException(status_code=503, detail="Email service not configured")

    try:
        report = await manager.get_report(request.report_id)
    except ReportNotFoundError:
        raise HTTPException(status_code=404, detail="Report not found")

    if not await alerter.send_alert(report):
        raise HTTPException(status_code=502, detail="Failed to send email notification")

    return {"success": True, "message": "Email notification sent"}


@router.post(
    "/test-email",
    summary="Test Email Alerts",
    description="""
Send a test email to the configured alert recipient, so operators can check
the SMTP relay settings before an urgent report arrives.

**Authorization**: Admin
    """,
    responses={
        200: {"description": "Test email sent"},
        502: {"description": "SMTP relay refused or unreachable"},
        503: {"description": "Email alerts not configured"}
    }
)
async def send_test_email(
    admin: Dict[str, Any] = Depends(require_admin),
    hub: NotificationHub = Depends(get_hub)
):
    """Send a test email"""
    alerter = hub.email_alerter
    if alerter is None or not alerter.enabled:
        raise HTTPException(status_code=503, detail="Email service not configured")

    if not await alerter.send_test():
        raise HTTPException(status_code=502, detail="Failed to send test email")

    return {"success": True, "message": "Test email sent"}
