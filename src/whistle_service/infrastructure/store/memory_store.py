"""In-Memory Report Store

Process-scoped report storage. Contents are lost on restart.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from whistle_service.infrastructure.store.provider import ReportStore
from whistle_service.models.report import Report, ReportStatus

logger = logging.getLogger(__name__)


class MemoryReportStore(ReportStore):
    """Dict-backed report store guarded by an asyncio lock."""

    def __init__(self):
        self._reports: Dict[str, Report] = {}
        self._lock = asyncio.Lock()

    async def add(self, report: Report) -> Report:
        async with self._lock:
            if report.id in self._reports:
                raise ValueError(f"Duplicate report id: {report.id}")
            self._reports[report.id] = report.model_copy(deep=True)
        return report

    async def get(self, report_id: str) -> Optional[Report]:
        report = self._reports.get(report_id)
        return report.model_copy(deep=True) if report else None

    async def list(self, status: Optional[ReportStatus] = None) -> List[Report]:
        reports = [
            r.model_copy(deep=True)
            for r in self._reports.values()
            if status is None or r.status == status
        ]
        reports.sort(key=lambda r: r.created_at, reverse=True)
        return reports

    async def save(self, report: Report) -> Report:
        async with self._lock:
            if report.id not in self._reports:
                raise LookupError(f"Report not found: {report.id}")
            self._reports[report.id] = report.model_copy(deep=True)
        return report

    async def health_check(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._reports)
