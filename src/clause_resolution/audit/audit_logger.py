"""Audit logger implementation for the Clause Preference Resolution Engine."""

import csv
import io
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, select

from ..interfaces.audit import AuditEvent, AuditEventType, IAuditLogger
from ..models.resolution import MatchingReport, ResolvedClause
from .database import DatabaseManager
from .models import AuditEventModel, ReportSnapshotModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditLogger(IAuditLogger):
    """
    Audit logger implementation with a SQLAlchemy backend.

    Records resolution runs for traceability, supports querying and
    exporting audit logs, and keeps a version history of matching reports.
    """

    def __init__(
        self,
        db_manager: Optional[DatabaseManager] = None,
        database_url: Optional[str] = None,
    ):
        """
        Initialize the audit logger.

        Args:
            db_manager: Optional DatabaseManager instance. If not provided,
                       a new one will be created.
            database_url: Database URL for creating a new DatabaseManager.
        """
        if db_manager is not None:
            self._db_manager = db_manager
            self._owns_db_manager = False
        else:
            self._db_manager = DatabaseManager(database_url=database_url)
            self._owns_db_manager = True

    def _to_model(self, event: AuditEvent) -> AuditEventModel:
        """Convert AuditEvent dataclass to SQLAlchemy model."""
        return AuditEventModel(
            id=uuid.UUID(event.id) if isinstance(event.id, str) else event.id,
            event_type=event.event_type.value if isinstance(event.event_type, AuditEventType) else event.event_type,
            timestamp=event.timestamp,
            agreement_id=event.agreement_id,
            party=event.party,
            user_id=event.user_id,
            details=event.details or {},
            metadata_=event.metadata or {},
        )

    def _from_model(self, model: AuditEventModel) -> AuditEvent:
        """Convert SQLAlchemy model to AuditEvent dataclass."""
        return AuditEvent(
            id=str(model.id),
            event_type=AuditEventType(model.event_type),
            timestamp=model.timestamp,
            agreement_id=model.agreement_id,
            party=model.party,
            user_id=model.user_id,
            details=model.details or {},
            metadata=model.metadata_ or {},
        )

    def log_event(self, event: AuditEvent) -> None:
        """
        Record an audit event to the database.

        Args:
            event: The audit event to record.
        """
        model = self._to_model(event)
        with self._db_manager.get_session() as session:
            session.add(model)

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
            List of matching audit events, newest first.
        """
        with self._db_manager.get_session() as session:
            query = select(AuditEventModel)

            conditions = []
            if agreement_id:
                conditions.append(AuditEventModel.agreement_id == agreement_id)
            if event_type:
                event_type_value = event_type.value if isinstance(event_type, AuditEventType) else event_type
                conditions.append(AuditEventModel.event_type == event_type_value)
            if start_time:
                conditions.append(AuditEventModel.timestamp >= start_time)
            if end_time:
                conditions.append(AuditEventModel.timestamp <= end_time)

            if conditions:
                query = query.where(and_(*conditions))

            query = query.order_by(AuditEventModel.timestamp.desc())

            result = session.execute(query)
            models = result.scalars().all()

            return [self._from_model(m) for m in models]

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
        if format not in ("json", "csv"):
            raise ValueError(f"Unsupported export format: {format}. Use 'json' or 'csv'.")

        events = self.get_events(agreement_id=agreement_id)

        if format == "json":
            return self._export_json(events)
        else:
            return self._export_csv(events)

    def _export_json(self, events: List[AuditEvent]) -> str:
        """Export events to JSON with a resolution table and confidence summary."""
        resolution_table = []
        for e in events:
            if e.event_type == AuditEventType.CLAUSE_RESOLVED:
                resolution_table.append({
                    "clause_type": e.details.get("clause_type"),
                    "selected_variant": e.details.get("selected_variant"),
                    "method": e.details.get("method"),
                    "confidence": e.details.get("confidence"),
                    "match_status": e.details.get("match_status"),
                    "timestamp": e.timestamp.isoformat() if e.timestamp else None,
                })

        confidence_scores = [
            entry["confidence"] for entry in resolution_table
            if entry.get("confidence") is not None
        ]

        data = {
            "export_timestamp": _utcnow().isoformat(),
            "event_count": len(events),
            "resolution_table": resolution_table,
            "confidence_summary": {
                "total_resolutions": len(resolution_table),
                "average_confidence": sum(confidence_scores) / len(confidence_scores) if confidence_scores else 0,
                "min_confidence": min(confidence_scores) if confidence_scores else 0,
                "max_confidence": max(confidence_scores) if confidence_scores else 0,
            },
            "events": [
                {
                    "id": e.id,
                    "event_type": e.event_type.value if isinstance(e.event_type, AuditEventType) else e.event_type,
                    "timestamp": e.timestamp.isoformat() if e.timestamp else None,
                    "agreement_id": e.agreement_id,
                    "party": e.party,
                    "user_id": e.user_id,
                    "details": e.details,
                    "metadata": e.metadata,
                }
                for e in events
            ],
        }
        return json.dumps(data, indent=2, ensure_ascii=False)

    def _export_csv(self, events: List[AuditEvent]) -> str:
        """Export events to CSV format."""
        output = io.StringIO()
        writer = csv.writer(output)

        writer.writerow([
            "id", "event_type", "timestamp", "agreement_id",
            "party", "user_id", "details", "metadata"
        ])

        for e in events:
            writer.writerow([
                e.id,
                e.event_type.value if isinstance(e.event_type, AuditEventType) else e.event_type,
                e.timestamp.isoformat() if e.timestamp else "",
                e.agreement_id or "",
                e.party or "",
                e.user_id or "",
                json.dumps(e.details, ensure_ascii=False),
                json.dumps(e.metadata, ensure_ascii=False),
            ])

        return output.getvalue()

    # ========== Report History Methods ==========

    def save_report_snapshot(
        self,
        agreement_id: str,
        snapshot: Dict[str, Any],
    ) -> int:
        """
        Save a matching report snapshot for an agreement.

        Reports are recomputed whenever a party re-submits preferences; each
        recomputation becomes a new version.

        Args:
            agreement_id: ID of the agreement.
            snapshot: JSON-serializable report data.

        Returns:
            The version number assigned to this snapshot.
        """
        with self._db_manager.get_session() as session:
            query = select(ReportSnapshotModel.version).where(
                ReportSnapshotModel.agreement_id == agreement_id
            ).order_by(ReportSnapshotModel.version.desc()).limit(1)

            result = session.execute(query)
            latest = result.scalar()
            new_version = (latest or 0) + 1

            session.add(ReportSnapshotModel(
                agreement_id=agreement_id,
                version=new_version,
                snapshot=snapshot,
            ))

            return new_version

    def get_report_snapshot(
        self,
        agreement_id: str,
        version: Optional[int] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Get a report snapshot for an agreement.

        Args:
            agreement_id: ID of the agreement.
            version: Specific version to retrieve. If None, returns latest.

        Returns:
            The snapshot data, or None if not found.
        """
        with self._db_manager.get_session() as session:
            query = select(ReportSnapshotModel).where(
                ReportSnapshotModel.agreement_id == agreement_id
            )

            if version is not None:
                query = query.where(ReportSnapshotModel.version == version)
            else:
                query = query.order_by(ReportSnapshotModel.version.desc())

            query = query.limit(1)

            result = session.execute(query)
            record = result.scalar()

            return record.snapshot if record else None

    def get_report_history(self, agreement_id: str) -> List[Dict[str, Any]]:
        """
        Get all report snapshots for an agreement, oldest first.

        Args:
            agreement_id: ID of the agreement.

        Returns:
            List of records with version number and snapshot.
        """
        with self._db_manager.get_session() as session:
            query = select(ReportSnapshotModel).where(
                ReportSnapshotModel.agreement_id == agreement_id
            ).order_by(ReportSnapshotModel.version.asc())

            result = session.execute(query)
            records = result.scalars().all()

            return [
                {
                    "version": r.version,
                    "snapshot": r.snapshot,
                    "created_at": r.created_at.isoformat() if r.created_at else None,
                }
                for r in records
            ]

    # ========== Convenience Logging Methods ==========

    def log_configuration_loaded(
        self,
        source: str,
        catalogue_count: int,
        tie_break_count: int,
        warnings: Optional[List[str]] = None,
        user_id: Optional[str] = None,
    ) -> None:
        """Log a configuration load event."""
        self.log_event(AuditEvent(
            id=str(uuid.uuid4()),
            event_type=AuditEventType.CONFIGURATION_LOADED,
            timestamp=_utcnow(),
            user_id=user_id,
            details={
                "source": source,
                "catalogue_count": catalogue_count,
                "tie_break_count": tie_break_count,
                "warnings": list(warnings or []),
            },
        ))

    def log_submission_rejected(
        self,
        agreement_id: str,
        party: str,
        error: Dict[str, Any],
        user_id: Optional[str] = None,
    ) -> None:
        """Log a party submission that failed normalization."""
        self.log_event(AuditEvent(
            id=str(uuid.uuid4()),
            event_type=AuditEventType.SUBMISSION_REJECTED,
            timestamp=_utcnow(),
            agreement_id=agreement_id,
            party=party,
            user_id=user_id,
            details=dict(error),
        ))

    def log_clause_resolved(
        self,
        agreement_id: str,
        clause: ResolvedClause,
        user_id: Optional[str] = None,
    ) -> None:
        """Log the outcome of one clause resolution."""
        self.log_event(AuditEvent(
            id=str(uuid.uuid4()),
            event_type=AuditEventType.CLAUSE_RESOLVED,
            timestamp=_utcnow(),
            agreement_id=agreement_id,
            user_id=user_id,
            details={
                "clause_type": clause.clause_type,
                "selected_variant": clause.selected_variant,
                "method": clause.method.value,
                "confidence": clause.confidence,
                "match_status": clause.match_status.value,
            },
        ))

    def log_report_generated(
        self,
        agreement_id: str,
        report: MatchingReport,
        processing_time: Optional[float] = None,
        user_id: Optional[str] = None,
    ) -> None:
        """Log the generation of a matching report."""
        summary = report.summary
        self.log_event(AuditEvent(
            id=str(uuid.uuid4()),
            event_type=AuditEventType.REPORT_GENERATED,
            timestamp=_utcnow(),
            agreement_id=agreement_id,
            user_id=user_id,
            details={
                "template_id": report.template_id,
                "total": summary.total,
                "green_count": summary.green_count,
                "red_count": summary.red_count,
                "method_histogram": dict(summary.method_histogram),
                "processing_time": processing_time,
            },
        ))

    def close(self) -> None:
        """Close the audit logger and release resources."""
        if self._owns_db_manager:
            self._db_manager.close()
