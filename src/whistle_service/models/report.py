"""
Report Data Models

Core domain models for anonymous reports and their encrypted envelopes.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReportCategory(str, Enum):
    """Report category classification"""
    HARASSMENT = "harassment"
    MEDICAL = "medical"
    EMERGENCY = "emergency"
    SAFETY = "safety"
    FEEDBACK = "feedback"


class ReportSeverity(str, Enum):
    """Submitter-chosen priority"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ReportStatus(str, Enum):
    """Admin workflow status"""
    PENDING = "pending"
    REVIEWED = "reviewed"
    FLAGGED = "flagged"
    RESOLVED = "resolved"


class VideoMetadata(BaseModel):
    """Metadata describing an attached video"""

    duration_seconds: float = Field(
        ...,
        ge=0,
        validation_alias=AliasChoices("duration_seconds", "duration"),
        description="Video duration in seconds"
    )
    size_bytes: int = Field(
        ...,
        ge=0,
        validation_alias=AliasChoices("size_bytes", "size"),
        description="Video size in bytes"
    )
    format: str = Field(..., description="Video MIME type")
    is_recorded: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_recorded", "isRecorded"),
        description="Recorded in-app rather than picked from disk"
    )
    width: Optional[int] = Field(None, ge=0)
    height: Optional[int] = Field(None, ge=0)
    upload_method: Optional[Literal["direct", "resumable"]] = Field(
        None,
        validation_alias=AliasChoices("upload_method", "uploadMethod")
    )


class ReportPayload(BaseModel):
    """Plaintext report content, before encryption or after decryption"""

    message: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    photo_url: Optional[str] = None
    video_url: Optional[str] = None
    video_metadata: Optional[VideoMetadata] = None


class EncryptedEnvelope(BaseModel):
    """Encrypted representation of a ReportPayload"""

    encrypted_message: str = Field(
        ..., validation_alias=AliasChoices("encrypted_message", "encryptedMessage")
    )
    encrypted_category: str = Field(
        ..., validation_alias=AliasChoices("encrypted_category", "encryptedCategory")
    )
    encrypted_photo_url: Optional[str] = Field(
        None, validation_alias=AliasChoices("encrypted_photo_url", "encryptedPhotoUrl")
    )
    encrypted_video_url: Optional[str] = Field(
        None, validation_alias=AliasChoices("encrypted_video_url", "encryptedVideoUrl")
    )
    encrypted_video_metadata: Optional[str] = Field(
        None, validation_alias=AliasChoices("encrypted_video_metadata", "encryptedVideoMetadata")
    )
    iv: str = Field(..., description="Hex-encoded 16 byte envelope IV")
    timestamp: str = Field(..., description="ISO-8601 time of encryption")

    model_config = {"frozen": True}


class Report(BaseModel):
    """Server-owned report record"""

    id: str = Field(..., description="Unique report identifier")
    status: ReportStatus = Field(default=ReportStatus.PENDING)
    severity: ReportSeverity = Field(default=ReportSeverity.MEDIUM)
    is_encrypted: bool = Field(default=False)

    # Plaintext fields (unset for encrypted reports)
    message: Optional[str] = None
    category: Optional[ReportCategory] = None
    photo_url: Optional[str] = None
    video_url: Optional[str] = None
    video_metadata: Optional[VideoMetadata] = None

    encrypted_data: Optional[EncryptedEnvelope] = None

    admin_response: Optional[str] = None
    admin_response_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    @property
    def display_category(self) -> str:
        """Category safe to put on the wire without decrypting"""
        if self.is_encrypted or self.category is None:
            return "encrypted"
        return self.category.value

    @property
    def is_urgent(self) -> bool:
        return (
            self.severity == ReportSeverity.URGENT
            or self.category == ReportCategory.EMERGENCY
        )

    class Config:
        json_schema_extra = {
            "example": {
                "id": "report_6f1c2b0f4d0a4c35a1f1f3c2a9e8d7b6",
                "status": "pending",
                "severity": "medium",
                "is_encrypted": False,
                "message": "Someone is following people near the east gate",
                "category": "safety",
                "created_at": "2025-11-16T10:30:00Z"
            }
        }
