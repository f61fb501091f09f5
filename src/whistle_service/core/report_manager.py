"""
Report Manager

Core business logic for accepting anonymous reports and the admin workflow.
"""

import logging
from typing import List, Optional, Tuple
from uuid import uuid4

from whistle_service.core.exceptions import ReportNotFoundError, ValidationError
from whistle_service.core.notification_hub import NotificationHub
from whistle_service.core.policy import check_video_metadata
from whistle_service.infrastructure.store.provider import ReportStore
from whistle_service.models.report import (
    Report,
    ReportCategory,
    ReportSeverity,
    ReportStatus,
    utcnow,
)
from whistle_service.models.requests import CreateReportRequest, ReportStatusResponse

logger = logging.getLogger(__name__)


class ReportManager:
    """Business logic for report intake and review"""

    def __init__(self, store: ReportStore, hub: Optional[NotificationHub] = None):
        self.store = store
        self.hub = hub

    def _parse_severity(self, severity: Optional[str]) -> ReportSeverity:
        if not severity:
            return ReportSeverity.MEDIUM
        try:
            return ReportSeverity(severity)
        except ValueError:
            raise ValidationError("Invalid severity level")

    def _validate_encrypted(self, request: CreateReportRequest) -> None:
        envelope = request.encrypted_data
        if (
            envelope is None
            or not envelope.encrypted_message.strip()
            or not envelope.encrypted_category.strip()
        ):
            raise ValidationError("Invalid encrypted data")

    def _validate_plain(self, request: CreateReportRequest) -> ReportCategory:
        if not request.message or not request.message.strip():
            raise ValidationError("Message is required")

        if not request.category:
            raise ValidationError("Category is required")

        try:
            return ReportCategory(request.category)
        except ValueError:
            raise ValidationError("Invalid category")

    def build_report(self, request: CreateReportRequest) -> Report:
        """
        Validate a submission and build the report to store

        Args:
            request: Anonymous submission

        Returns:
            New report with id, timestamps and initial status assigned

        Raises:
            ValidationError: If the submission is rejected
        """
        # Video limits apply to encrypted and plain submissions alike
        if request.video_metadata is not None:
            check_video_metadata(request.video_metadata)

        if request.is_encrypted:
            self._validate_encrypted(request)
            category = None
        else:
            category = self._validate_plain(request)

        severity = self._parse_severity(request.severity)
        status = ReportStatus.FLAGGED if severity == ReportSeverity.URGENT else ReportStatus.PENDING

        report = Report(
            id=f"report_{uuid4().hex}",
            status=status,
            severity=severity,
            is_encrypted=request.is_encrypted,
            created_at=utcnow()
        )

        if request.is_encrypted:
            # Stored verbatim; the server never holds the key
            report.encrypted_data = request.encrypted_data
        else:
            report.message = request.message.strip()
            report.category = category
            report.photo_url = request.photo_url
            report.video_url = request.video_url
            report.video_metadata = request.video_metadata

        return report

    async def create_report(self, request: CreateReportRequest) -> Report:
        """
        Accept, store and announce a new report

        Notification failures are logged and never fail the submission.

        Raises:
            ValidationError: If the submission is rejected
        """
        report = self.build_report(request)
        await self.store.add(report)

        logger.info(
            f"Report created: {report.id} "
            f"(encrypted={report.is_encrypted}, severity={report.severity.value})"
        )

        if self.hub is not None:
            try:
                self.hub.notify_new_report(report)
            except Exception as e:
                logger.error(f"Failed to notify viewers of report {report.id}: {e!r}")

        return report

    async def get_report(self, report_id: str) -> Report:
        """
        Get a report by id

        Raises:
            ReportNotFoundError: If no such report exists
        """
        report = await self.store.get(report_id)
        if report is None:
            raise ReportNotFoundError(f"Report not found: {report_id}")
        return report

    async def get_status(self, report_id: str) -> ReportStatusResponse:
        """Anonymous status view of a report, without its content"""
        return ReportStatusResponse.from_report(await self.get_report(report_id))

    async def list_reports(
        self,
        status: Optional[ReportStatus] = None
    ) -> Tuple[List[Report], int]:
        """
        List reports newest first

        Returns:
            Tuple of (reports, total_count)
        """
        reports = await self.store.list(status)
        return reports, len(reports)

    async def update_report(
        self,
        report_id: str,
        status: Optional[ReportStatus] = None,
        admin_response: Optional[str] = None
    ) -> Report:
        """
        Apply an admin update

        Setting admin_response also stamps admin_response_at.

        Raises:
            ReportNotFoundError: If no such report exists
        """
        report = await self.get_report(report_id)
        now = utcnow()

        if status is not None:
            report.status = status

        if admin_response is not None:
            report.admin_response = admin_response
            report.admin_response_at = now

        report.updated_at = now
        await self.store.save(report)

        logger.info(f"Updated report {report_id} (status={report.status.value})")
        return report
