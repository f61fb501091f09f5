"""Database layer"""

from .client import DatabaseClient
from .models import Base, ReportDB

__all__ = ["DatabaseClient", "Base", "ReportDB"]
