"""
API Request and Response Models

Pydantic models for API input/output validation.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .report import (
    EncryptedEnvelope,
    Report,
    ReportStatus,
    VideoMetadata,
)


class CreateReportRequest(BaseModel):
    """Anonymous report submission, either plaintext or encrypted

    Category and severity are plain strings here so the report manager
    owns the accept/reject decision and its error messages.
    """

    message: Optional[str] = Field(None, description="Report text (plain submissions)")
    category: Optional[str] = Field(None, description="Report category (plain submissions)")
    severity: Optional[str] = Field(None, description="Priority level")
    photo_url: Optional[str] = Field(None, description="Uploaded photo URL")
    video_url: Optional[str] = Field(None, description="Uploaded video URL")
    video_metadata: Optional[VideoMetadata] = Field(None, description="Attached video metadata")
    encrypted_data: Optional[EncryptedEnvelope] = Field(None, description="Client-side encrypted envelope")
    is_encrypted: bool = Field(default=False, description="Whether encrypted_data carries the content")


class CreateReportResponse(BaseModel):
    """Minimal acknowledgement returned to the anonymous submitter"""

    id: str
    message: str = Field(default="Report submitted successfully")
    created_at: datetime


class ReportStatusResponse(BaseModel):
    """Anonymous status lookup; never carries report content"""

    id: str
    status: ReportStatus
    created_at: datetime
    admin_response: Optional[str] = None
    admin_response_at: Optional[datetime] = None

    @classmethod
    def from_report(cls, report: Report) -> "ReportStatusResponse":
        """Create response from Report model"""
        return cls(
            id=report.id,
            status=report.status,
            created_at=report.created_at,
            admin_response=report.admin_response,
            admin_response_at=report.admin_response_at
        )


class ReportListResponse(BaseModel):
    """Admin report listing"""

    reports: List[Report] = Field(default_factory=list)
    total: int = Field(..., ge=0)


class UpdateReportRequest(BaseModel):
    """Admin update of workflow status and/or response"""

    status: Optional[ReportStatus] = Field(None, description="New status")
    admin_response: Optional[str] = Field(None, description="Response shown on the status page")


class AdminLoginRequest(BaseModel):
    username: str
    password: str


class AdminLoginResponse(BaseModel):
    success: bool
    token: Optional[str] = None
    error: Optional[str] = None


class EmailAlertRequest(BaseModel):
    """Manually trigger an email alert for a stored report"""

    report_id: str = Field(..., description="Report to alert about")


class NotificationSettingsResponse(BaseModel):
    """Which alert channels are active"""

    email_enabled: bool
    push_enabled: bool = True
    urgent_alerts: bool = True
    heartbeat_interval_seconds: float
    categories: List[str]
    active_viewers: int = Field(..., ge=0)


class HealthResponse(BaseModel):
    """Health check response"""

    status: str = Field(default="healthy")
    service: str = Field(default="whistle-service")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    store_available: bool = Field(default=True)
    active_viewers: int = Field(default=0, ge=0)
