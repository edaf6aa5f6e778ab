"""Audit logger interface for the Clause Preference Resolution Engine."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class AuditEventType(Enum):
    """Types of audit events tracked around resolution runs."""
    CONFIGURATION_LOADED = "configuration_loaded"
    SUBMISSION_REJECTED = "submission_rejected"
    CLAUSE_RESOLVED = "clause_resolved"
    REPORT_GENERATED = "report_generated"


@dataclass
class AuditEvent:
    """
    Audit event record.
    
    Represents a single auditable event, including timestamp, the agreement
    it concerns and event details.
    """
    id: str
    event_type: AuditEventType
    timestamp: datetime
    agreement_id: Optional[str] = None
    party: Optional[str] = None
    user_id: Optional[str] = None
    details: dict = field(default_factory=dict)
    metadata: dict = field(default_factory=dict)

    def __post_init__(self):
        if self.details is None:
            self.details = {}
        if self.metadata is None:
            self.metadata = {}


class IAuditLogger(ABC):
    """
    Abstract interface for audit logging.
    
    Implementations of this interface handle recording and
    querying of audit events for traceability.
    """

    @abstractmethod
    def log_event(self, event: AuditEvent) -> None:
        """
        Record an audit event.
        
        Args:
            event: The audit event to record.
        """
        pass

    @abstractmethod
    def get_events(
        self,
        agreement_id: Optional[str] = None,
        event_type: Optional[AuditEventType] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
    ) -> List[AuditEvent]:
        """
        Query audit events with optional filters.
        
        Args:
            agreement_id: Filter by agreement ID.
            event_type: Filter by event type.
            start_time: Filter events after this time.
            end_time: Filter events before this time.
            
        Returns:
            List of matching audit events.
        """
        pass

    @abstractmethod
    def export_log(
        self,
        agreement_id: str,
        format: str = "json",
    ) -> str:
        """
        Export audit log for an agreement.
        
        Args:
            agreement_id: The agreement ID to export logs for.
            format: Export format ("json" or "csv").
            
        Returns:
            Exported log content as a string.
            
        Raises:
            ValueError: If format is not supported.
        """
        pass
