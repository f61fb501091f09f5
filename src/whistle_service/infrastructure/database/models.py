"""
Database Models

SQLAlchemy ORM models for report storage.
"""

from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, String, DateTime, Text, JSON
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReportDB(Base):
    """Report database model"""

    __tablename__ = "reports"

    id = Column(String(64), primary_key=True, index=True)
    status = Column(String(20), nullable=False, index=True)
    severity = Column(String(20), nullable=False, index=True)
    is_encrypted = Column(Boolean, nullable=False, default=False)
    message = Column(Text, nullable=True)
    category = Column(String(50), nullable=True)
    photo_url = Column(Text, nullable=True)
    video_url = Column(Text, nullable=True)
    video_metadata = Column(JSON, nullable=True)
    encrypted_data = Column(JSON, nullable=True)
    admin_response = Column(Text, nullable=True)
    admin_response_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<ReportDB(id='{self.id}', status='{self.status}')>"
