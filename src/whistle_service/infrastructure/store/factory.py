"""Report Store Factory

Chooses between the in-memory and SQL report stores based on settings.
"""

import logging

from whistle_service.config.settings import Settings
from whistle_service.core.exceptions import ConfigurationError
from whistle_service.infrastructure.store.memory_store import MemoryReportStore
from whistle_service.infrastructure.store.provider import ReportStore
from whistle_service.infrastructure.store.sql_store import SqlReportStore

logger = logging.getLogger(__name__)


def create_report_store(settings: Settings) -> ReportStore:
    """Create the report store selected by REPORT_STORE.

    - "memory" (default): process-scoped store, cleared on restart
    - "database": SQL store using DATABASE_URL

    Raises:
        ConfigurationError: If REPORT_STORE names an unknown backend
    """
    store_type = settings.report_store.lower()

    logger.info(f"Initializing report store: {store_type}")

    if store_type == "memory":
        return MemoryReportStore()

    if store_type == "database":
        return SqlReportStore(settings.database_url)

    raise ConfigurationError(
        f"Unknown REPORT_STORE '{settings.report_store}' (expected memory or database)"
    )
