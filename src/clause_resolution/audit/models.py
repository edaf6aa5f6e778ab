"""SQLAlchemy models for the audit system."""

from datetime import datetime, timezone
import uuid

from sqlalchemy import (
    Column,
    String,
    DateTime,
    Integer,
    Index,
    JSON,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JSONType(TypeDecorator):
    """Platform-independent JSON type.
    
    Uses JSONB for PostgreSQL and JSON for other databases (like SQLite).
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(JSONB())
        else:
            return dialect.type_descriptor(JSON())


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class AuditEventModel(Base):
    """Resolution audit events table model."""
    __tablename__ = "resolution_audit_events"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_type = Column(String(50), nullable=False)
    timestamp = Column(DateTime(timezone=True), default=_utcnow)
    agreement_id = Column(String(100), nullable=True)
    party = Column(String(20), nullable=True)
    user_id = Column(String(100), nullable=True)
    details = Column(JSONType)
    metadata_ = Column("metadata", JSONType)

    __table_args__ = (
        Index("idx_resolution_audit_events_event_type", "event_type"),
        Index("idx_resolution_audit_events_timestamp", "timestamp"),
        Index("idx_resolution_audit_events_agreement_id", "agreement_id"),
    )


class ReportSnapshotModel(Base):
    """Matching report history, one row per recomputation of an agreement."""
    __tablename__ = "matching_report_snapshots"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    agreement_id = Column(String(100), nullable=False)
    version = Column(Integer, nullable=False)
    snapshot = Column(JSONType, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        Index("idx_report_snapshots_agreement", "agreement_id"),
        Index("idx_report_snapshots_version", "agreement_id", "version"),
    )
