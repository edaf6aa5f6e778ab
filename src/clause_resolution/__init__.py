"""
Clause Preference Resolution Engine

Resolves two parties' ranked clause preferences into one agreed variant per
clause type, with a confidence score and a red/green matching report.
"""

__version__ = "0.1.0"

# Export main components
from .models.enums import (
    AcceptanceStatus,
    ConfidenceLevel,
    MatchStatus,
    PartyRole,
    ResolutionMethod,
    RiskLevel,
    UnrankedPolicy,
)
from .models.catalogue import ClauseCatalogue, ClauseVariant, VariantId
from .models.preference import PartyPreference, RawSubmission
from .models.resolution import (
    MatchingReport,
    MatchingResult,
    MutualRankDetail,
    ReportSummary,
    ResolvedClause,
)
from .resolution import (
    AgreementAggregator,
    ClauseResolver,
    DirectMatchDetector,
    InvalidPreferenceError,
    MissingDefaultError,
    OverlapScorer,
    PreferenceNormalizer,
    ResolutionError,
    StaticTieBreakPolicy,
    TieBreakResolver,
    normalize_preference,
)
from .interfaces.audit import AuditEvent, AuditEventType, IAuditLogger
from .audit import AuditLogger, DatabaseManager
from .config import (
    ConfigurationError,
    ConfigurationManager,
    EngineSettings,
    SystemConfiguration,
    TieBreakDefault,
    ValidationResult,
)
from .pipeline import PipelineConfig, PipelineResult, ResolutionPipeline
from .serialization import ReportSerializer, serialize_report

__all__ = [
    "AcceptanceStatus",
    "ConfidenceLevel",
    "MatchStatus",
    "PartyRole",
    "ResolutionMethod",
    "RiskLevel",
    "UnrankedPolicy",
    "ClauseCatalogue",
    "ClauseVariant",
    "VariantId",
    "PartyPreference",
    "RawSubmission",
    "MatchingReport",
    "MatchingResult",
    "MutualRankDetail",
    "ReportSummary",
    "ResolvedClause",
    "AgreementAggregator",
    "ClauseResolver",
    "DirectMatchDetector",
    "InvalidPreferenceError",
    "MissingDefaultError",
    "OverlapScorer",
    "PreferenceNormalizer",
    "ResolutionError",
    "StaticTieBreakPolicy",
    "TieBreakResolver",
    "normalize_preference",
    "AuditEvent",
    "AuditEventType",
    "IAuditLogger",
    "AuditLogger",
    "DatabaseManager",
    "ConfigurationError",
    "ConfigurationManager",
    "EngineSettings",
    "SystemConfiguration",
    "TieBreakDefault",
    "ValidationResult",
    "PipelineConfig",
    "PipelineResult",
    "ResolutionPipeline",
    "ReportSerializer",
    "serialize_report",
]
