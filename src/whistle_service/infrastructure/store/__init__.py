"""Report store infrastructure module.

Provides swappable report persistence via the ReportStore interface.
"""

from whistle_service.infrastructure.store.factory import create_report_store
from whistle_service.infrastructure.store.provider import ReportStore
from whistle_service.infrastructure.store.memory_store import MemoryReportStore
from whistle_service.infrastructure.store.sql_store import SqlReportStore

__all__ = [
    "create_report_store",
    "ReportStore",
    "MemoryReportStore",
    "SqlReportStore",
]
