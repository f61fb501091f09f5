"""Data models for Whistle Service"""

from .report import (
    EncryptedEnvelope,
    Report,
    ReportCategory,
    ReportPayload,
    ReportSeverity,
    ReportStatus,
    VideoMetadata,
)
from .events import (
    ConnectedEvent,
    HeartbeatEvent,
    NewReportEvent,
    NotificationEvent,
    UrgentReportEvent,
    event_for_report,
    parse_event,
)
from .requests import (
    AdminLoginRequest,
    AdminLoginResponse,
    CreateReportRequest,
    CreateReportResponse,
    EmailAlertRequest,
    HealthResponse,
    NotificationSettingsResponse,
    ReportListResponse,
    ReportStatusResponse,
    UpdateReportRequest,
)

__all__ = [
    "EncryptedEnvelope",
    "Report",
    "ReportCategory",
    "ReportPayload",
    "ReportSeverity",
    "ReportStatus",
    "VideoMetadata",
    "ConnectedEvent",
    "HeartbeatEvent",
    "NewReportEvent",
    "NotificationEvent",
    "UrgentReportEvent",
    "event_for_report",
    "parse_event",
    "AdminLoginRequest",
    "AdminLoginResponse",
    "CreateReportRequest",
    "CreateReportResponse",
    "EmailAlertRequest",
    "HealthResponse",
    "NotificationSettingsResponse",
    "ReportListResponse",
    "ReportStatusResponse",
    "UpdateReportRequest",
]
