"""Audit module for the Clause Preference Resolution Engine."""

from .audit_logger import AuditLogger
from .database import DatabaseManager, get_database_url
from .models import (
    AuditEventModel,
    ReportSnapshotModel,
    Base,
)

__all__ = [
    "AuditLogger",
    "DatabaseManager",
    "get_database_url",
    "AuditEventModel",
    "ReportSnapshotModel",
    "Base",
]
