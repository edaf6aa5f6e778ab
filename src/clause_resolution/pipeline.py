"""End-to-end resolution pipeline for the Clause Preference Resolution Engine.

This module wires configuration, normalization, aggregation, audit logging
and timing together so that callers hand in raw intake data for both parties
and receive a finished matching report.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from sqlalchemy.exc import SQLAlchemyError

from .audit.audit_logger import AuditLogger
from .audit.database import DatabaseManager
from .config.config_manager import ConfigurationManager
from .config.models import EngineSettings
from .interfaces.audit import IAuditLogger
from .interfaces.resolution import IAgreementAggregator, ITieBreakPolicy
from .models.catalogue import ClauseCatalogue
from .models.enums import PartyRole
from .models.preference import PartyPreference, RawSubmission
from .models.resolution import MatchingReport
from .performance import PerformanceMonitor, timed_operation
from .resolution.aggregator import AgreementAggregator
from .resolution.clause_resolver import ClauseResolver
from .resolution.exceptions import InvalidPreferenceError
from .resolution.normalizer import PreferenceNormalizer
from .resolution.tie_breaker import StaticTieBreakPolicy
from .serialization import ReportSerializer


logger = logging.getLogger(__name__)

Submission = Union[RawSubmission, PartyPreference]


@dataclass
class PipelineConfig:
    """Configuration for the resolution pipeline."""

    # Database configuration
    database_url: Optional[str] = None

    # Configuration files (catalogues.json, tie_breakers.json, settings.json)
    config_dir: Optional[str] = None

    # Engine settings; overrides whatever settings.json provides
    settings: Optional[EngineSettings] = None

    # Performance configuration
    max_processing_time: float = 5.0  # seconds

    # Feature flags
    enable_audit_logging: bool = False
    enable_report_history: bool = True


@dataclass
class PipelineResult:
    """Result of one pipeline run."""

    success: bool
    agreement_id: str
    report: Optional[MatchingReport] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    processing_time: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "agreement_id": self.agreement_id,
            "report": ReportSerializer.to_dict(self.report) if self.report else None,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "processing_time": self.processing_time,
        }


@dataclass
class PipelineStats:
    """Statistics about pipeline execution."""

    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    rejected_submissions: int = 0
    average_processing_time: float = 0.0
    total_processing_time: float = 0.0


class ResolutionPipeline:
    """
    Boundary service for clause resolution.

    Normalizes both parties' raw submissions against the template's
    catalogues, aggregates them into a matching report and records the
    outcome in the audit trail.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        config_manager: Optional[ConfigurationManager] = None,
        tie_break_policy: Optional[ITieBreakPolicy] = None,
        aggregator: Optional[IAgreementAggregator] = None,
        audit_logger: Optional[IAuditLogger] = None,
    ):
        """
        Initialize the resolution pipeline.

        Args:
            config: Pipeline configuration.
            config_manager: Optional configuration manager (created if not provided).
            tie_break_policy: Optional fallback policy. Defaults to the
                tie-break defaults held by the configuration manager.
            aggregator: Optional aggregator (created if not provided).
            audit_logger: Optional audit logger (created if audit logging is
                enabled and none is provided).
        """
        self.config = config or PipelineConfig()
        self.stats = PipelineStats()
        self.performance_monitor = PerformanceMonitor(
            max_processing_time=self.config.max_processing_time
        )

        self._config_manager = config_manager or ConfigurationManager(
            config_dir=self.config.config_dir
        )
        self._config_warnings: List[str] = []
        if self.config.config_dir:
            self._load_configuration(self.config.config_dir)

        settings = self.config.settings or self._config_manager.settings
        self._settings = settings

        self._db_manager: Optional[DatabaseManager] = None
        self._audit_logger = audit_logger
        if self._audit_logger is None and self.config.enable_audit_logging:
            self._db_manager = DatabaseManager(database_url=self.config.database_url)
            self._db_manager.init_database()
            self._audit_logger = AuditLogger(db_manager=self._db_manager)

        self._tie_break_policy = tie_break_policy or StaticTieBreakPolicy(
            self._config_manager.get_tie_break_defaults()
        )
        self._normalizer = PreferenceNormalizer(settings.unranked_policy)
        self._aggregator = aggregator or AgreementAggregator(
            resolver=ClauseResolver(
                tie_break_policy=self._tie_break_policy,
                settings=settings,
            ),
            max_workers=settings.max_workers,
        )

        if self._audit_logger and self._config_manager.is_loaded:
            self._audit(
                self._audit_logger.log_configuration_loaded,
                source=str(self.config.config_dir),
                catalogue_count=len(self._config_manager.configuration.catalogues),
                tie_break_count=len(self._config_manager.configuration.tie_break_defaults),
                warnings=self._config_warnings,
            )

        logger.info("Resolution pipeline initialized")

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def config_manager(self) -> ConfigurationManager:
        return self._config_manager

    @property
    def audit_logger(self) -> Optional[IAuditLogger]:
        return self._audit_logger

    def _load_configuration(self, config_dir: str) -> None:
        result = self._config_manager.load_from_directory(config_dir)
        self._config_warnings = list(result.warnings)
        for warning in result.warnings:
            logger.warning(f"Configuration: {warning}")
        if not result.is_valid:
            for error in result.errors:
                logger.error(f"Configuration: {error}")
        else:
            logger.info(f"Loaded configuration from {config_dir}")

    def run(
        self,
        template_id: str,
        catalogues: Optional[Sequence[ClauseCatalogue]],
        raw_a: Mapping[str, Submission],
        raw_b: Mapping[str, Submission],
        agreement_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> PipelineResult:
        """
        Resolve every clause of a template from both parties' submissions.

        Args:
            template_id: Identifier of the template being negotiated.
            catalogues: Catalogues in template order. None uses the catalogues
                held by the configuration manager.
            raw_a: Party A's submissions keyed by clause type.
            raw_b: Party B's submissions keyed by clause type.
            agreement_id: Audit trail key. Generated when omitted.
            user_id: Optional user ID for audit logging.

        Returns:
            PipelineResult carrying the matching report.

        Raises:
            InvalidPreferenceError: If either party's submission is invalid.
        """
        start_time = time.perf_counter()
        agreement_id = agreement_id or str(uuid.uuid4())
        result = PipelineResult(success=False, agreement_id=agreement_id)

        if catalogues is None:
            catalogues = self._config_manager.configuration.catalogues

        overall = self.performance_monitor.start_operation(
            "pipeline_execution", template_id=template_id
        )

        try:
            logger.info(f"Resolving template '{template_id}' for agreement {agreement_id}")

            by_type = {c.clause_type: c for c in catalogues}
            with self.performance_monitor.track("normalize_submissions"):
                prefs_a = self._normalize_party(
                    PartyRole.PARTY_A, raw_a, by_type, agreement_id, user_id
                )
                prefs_b = self._normalize_party(
                    PartyRole.PARTY_B, raw_b, by_type, agreement_id, user_id
                )

            with self.performance_monitor.track("aggregate"):
                report = self._aggregator.aggregate(
                    template_id, list(catalogues), prefs_a, prefs_b
                )
            result.report = report

            if self._audit_logger:
                with self.performance_monitor.track("audit"):
                    self._record_report(result, user_id, start_time)

            result.success = True
            result.metadata["performance_stats"] = self.performance_monitor.get_all_stats()
            self.performance_monitor.end_operation(overall, success=True)

        except InvalidPreferenceError as e:
            self.stats.rejected_submissions += 1
            self.performance_monitor.end_operation(overall, success=False, error=str(e))
            raise

        except Exception as e:
            error_msg = f"Pipeline execution failed: {e}"
            result.errors.append(error_msg)
            logger.exception(error_msg)
            self.performance_monitor.end_operation(overall, success=False, error=error_msg)

        finally:
            result.processing_time = time.perf_counter() - start_time
            self._update_stats(result)

        if result.processing_time > self.config.max_processing_time:
            warning = (
                f"Processing time ({result.processing_time:.3f}s) exceeded "
                f"target ({self.config.max_processing_time}s)"
            )
            result.warnings.append(warning)
            logger.warning(warning)

        return result

    @timed_operation("normalize_party")
    def _normalize_party(
        self,
        party: PartyRole,
        submissions: Mapping[str, Submission],
        catalogues: Mapping[str, ClauseCatalogue],
        agreement_id: str,
        user_id: Optional[str],
    ) -> Dict[str, PartyPreference]:
        """Normalize one party's submissions, auditing the first failure."""
        normalized: Dict[str, PartyPreference] = {}
        try:
            for clause_type, submission in submissions.items():
                catalogue = catalogues.get(clause_type)
                if catalogue is None:
                    raise InvalidPreferenceError(
                        message="Submission for a clause type not in the template",
                        clause_type=clause_type,
                    )
                normalized[clause_type] = self._normalizer.normalize(submission, catalogue)
        except InvalidPreferenceError as e:
            logger.warning(f"Rejected {party.value} submission: {e}")
            if self._audit_logger:
                self._audit(
                    self._audit_logger.log_submission_rejected,
                    agreement_id=agreement_id,
                    party=party.value,
                    error=e.to_dict(),
                    user_id=user_id,
                )
            raise
        return normalized

    def _record_report(
        self,
        result: PipelineResult,
        user_id: Optional[str],
        start_time: float,
    ) -> None:
        report = result.report
        for clause in report.clauses:
            if not self._audit(
                self._audit_logger.log_clause_resolved,
                agreement_id=result.agreement_id,
                clause=clause,
                user_id=user_id,
            ):
                result.warnings.append("Audit trail incomplete: clause events not recorded")
                return

        self._audit(
            self._audit_logger.log_report_generated,
            agreement_id=result.agreement_id,
            report=report,
            processing_time=time.perf_counter() - start_time,
            user_id=user_id,
        )

        if self.config.enable_report_history and isinstance(self._audit_logger, AuditLogger):
            try:
                version = self._audit_logger.save_report_snapshot(
                    result.agreement_id, ReportSerializer.to_dict(report)
                )
                result.metadata["report_version"] = version
            except SQLAlchemyError as e:
                logger.warning(f"Failed to save report snapshot: {e}")
                result.warnings.append("Report snapshot not saved")

    def _audit(self, log_method, **kwargs) -> bool:
        """Write an audit record; storage failures never fail a resolution."""
        try:
            log_method(**kwargs)
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Failed to write audit event: {e}")
            return False

    def _update_stats(self, result: PipelineResult) -> None:
        self.stats.total_executions += 1

        if result.success:
            self.stats.successful_executions += 1
        else:
            self.stats.failed_executions += 1

        self.stats.total_processing_time += result.processing_time
        self.stats.average_processing_time = (
            self.stats.total_processing_time / self.stats.total_executions
        )

    def get_stats(self) -> PipelineStats:
        """Get pipeline execution statistics."""
        return self.stats

    def get_performance_stats(self) -> Dict[str, Dict[str, Any]]:
        """Get timing statistics for every pipeline stage."""
        return self.performance_monitor.get_all_stats()

    def close(self) -> None:
        """Close the pipeline and release resources."""
        if self._audit_logger and hasattr(self._audit_logger, "close"):
            self._audit_logger.close()
        if self._db_manager:
            self._db_manager.close()
        logger.info("Resolution pipeline closed")
