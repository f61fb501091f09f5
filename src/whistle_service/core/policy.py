"""
Attachment Policy

Video limits enforced authoritatively by the report manager and checked
early by the client tooling before upload.
"""

from whistle_service.core.exceptions import ValidationError
from whistle_service.models.report import VideoMetadata

MAX_VIDEO_SIZE_MB = 100
MAX_VIDEO_SIZE_BYTES = MAX_VIDEO_SIZE_MB * 1024 * 1024
MAX_VIDEO_DURATION_SECONDS = 5 * 60
ALLOWED_VIDEO_FORMATS = ("video/mp4", "video/webm", "video/quicktime")


def check_video_metadata(metadata: VideoMetadata) -> None:
    """
    Validate video metadata against the attachment limits

    Args:
        metadata: Metadata of the attached video

    Raises:
        ValidationError: If size, duration or format is out of policy
    """
    if metadata.size_bytes > MAX_VIDEO_SIZE_BYTES:
        raise ValidationError(
            f"Video file too large. Maximum size is {MAX_VIDEO_SIZE_MB}MB"
        )

    if metadata.duration_seconds > MAX_VIDEO_DURATION_SECONDS:
        raise ValidationError(
            f"Video too long. Maximum duration is {MAX_VIDEO_DURATION_SECONDS // 60} minutes"
        )

    if metadata.format not in ALLOWED_VIDEO_FORMATS:
        raise ValidationError(
            f"Invalid video format. Allowed formats: {', '.join(ALLOWED_VIDEO_FORMATS)}"
        )
