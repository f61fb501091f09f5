"""SQL Report Store

Async SQLAlchemy report storage for deployments that need durability.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select

from whistle_service.infrastructure.database.client import DatabaseClient
from whistle_service.infrastructure.database.models import ReportDB
from whistle_service.infrastructure.store.provider import ReportStore
from whistle_service.models.report import (
    EncryptedEnvelope,
    Report,
    ReportCategory,
    ReportSeverity,
    ReportStatus,
    VideoMetadata,
)

logger = logging.getLogger(__name__)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on the way back
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _apply(row: ReportDB, report: Report) -> ReportDB:
    row.status = report.status.value
    row.severity = report.severity.value
    row.is_encrypted = report.is_encrypted
    row.message = report.message
    row.category = report.category.value if report.category else None
    row.photo_url = report.photo_url
    row.video_url = report.video_url
    row.video_metadata = report.video_metadata.model_dump() if report.video_metadata else None
    row.encrypted_data = report.encrypted_data.model_dump() if report.encrypted_data else None
    row.admin_response = report.admin_response
    row.admin_response_at = report.admin_response_at
    row.created_at = report.created_at
    row.updated_at = report.updated_at
    return row


def _to_report(row: ReportDB) -> Report:
    return Report(
        id=row.id,
        status=ReportStatus(row.status),
        severity=ReportSeverity(row.severity),
        is_encrypted=row.is_encrypted,
        message=row.message,
        category=ReportCategory(row.category) if row.category else None,
        photo_url=row.photo_url,
        video_url=row.video_url,
        video_metadata=VideoMetadata.model_validate(row.video_metadata) if row.video_metadata else None,
        encrypted_data=EncryptedEnvelope.model_validate(row.encrypted_data) if row.encrypted_data else None,
        admin_response=row.admin_response,
        admin_response_at=_aware(row.admin_response_at),
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at)
    )


class SqlReportStore(ReportStore):
    """Report store backed by an async SQLAlchemy engine."""

    def __init__(self, database_url: str):
        self.db = DatabaseClient(database_url)

    async def initialize(self) -> None:
        await self.db.initialize()

    async def close(self) -> None:
        await self.db.close()

    async def add(self, report: Report) -> Report:
        async with self.db.session_scope() as session:
            session.add(_apply(ReportDB(id=report.id), report))
        return report

    async def get(self, report_id: str) -> Optional[Report]:
        async with self.db.session_scope() as session:
            row = await session.get(ReportDB, report_id)
            return _to_report(row) if row else None

    async def list(self, status: Optional[ReportStatus] = None) -> List[Report]:
        stmt = select(ReportDB).order_by(ReportDB.created_at.desc())
        if status is not None:
            stmt = stmt.where(ReportDB.status == status.value)

        async with self.db.session_scope() as session:
            result = await session.execute(stmt)
            return [_to_report(row) for row in result.scalars().all()]

    async def save(self, report: Report) -> Report:
        async with self.db.session_scope() as session:
            row = await session.get(ReportDB, report.id)
            if row is None:
                raise LookupError(f"Report not found: {report.id}")
            _apply(row, report)
        return report

    async def health_check(self) -> bool:
        return await self.db.health_check()
