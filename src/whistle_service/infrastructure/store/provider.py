"""Report Store Interface

Abstract base class defining the contract for report storage implementations.
Supports a process-scoped in-memory store (default) and a SQL database.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from whistle_service.models.report import Report, ReportStatus


class ReportStore(ABC):
    """Abstract report store interface."""

    async def initialize(self) -> None:
        """Prepare the backend (connections, tables). No-op by default."""

    async def close(self) -> None:
        """Release backend resources. No-op by default."""

    @abstractmethod
    async def add(self, report: Report) -> Report:
        """Persist a newly accepted report.

        Args:
            report: Fully populated report

        Returns:
            The stored report
        """
        pass

    @abstractmethod
    async def get(self, report_id: str) -> Optional[Report]:
        """Fetch one report.

        Args:
            report_id: Report identifier

        Returns:
            The report, or None if unknown
        """
        pass

    @abstractmethod
    async def list(self, status: Optional[ReportStatus] = None) -> List[Report]:
        """List reports newest first.

        Args:
            status: Optional status filter

        Returns:
            Matching reports ordered by created_at descending
        """
        pass

    @abstractmethod
    async def save(self, report: Report) -> Report:
        """Overwrite an existing report with updated fields.

        Args:
            report: Report carrying the new field values

        Returns:
            The stored report

        Raises:
            LookupError: If the report does not exist
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is reachable.

        Returns:
            True if healthy, False otherwise
        """
        pass
