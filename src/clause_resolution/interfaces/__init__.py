"""Abstract interfaces for the Clause Preference Resolution Engine."""

from .resolution import IAgreementAggregator, IClauseResolver, ITieBreakPolicy
from .audit import AuditEvent, AuditEventType, IAuditLogger

__all__ = [
    "IAgreementAggregator",
    "IClauseResolver",
    "ITieBreakPolicy",
    "AuditEvent",
    "AuditEventType",
    "IAuditLogger",
]
