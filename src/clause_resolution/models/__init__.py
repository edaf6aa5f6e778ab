"""Data models and enums for the Clause Preference Resolution Engine."""

from .enums import (
    AcceptanceStatus,
    ConfidenceLevel,
    MatchStatus,
    PartyRole,
    ResolutionMethod,
    RiskLevel,
    UnrankedPolicy,
)
from .catalogue import ClauseCatalogue, ClauseVariant, VariantId
from .preference import PartyPreference, RawSubmission
from .resolution import (
    MatchingReport,
    MatchingResult,
    MutualRankDetail,
    ReportSummary,
    ResolvedClause,
)

__all__ = [
    # Enums
    "AcceptanceStatus",
    "ConfidenceLevel",
    "MatchStatus",
    "PartyRole",
    "ResolutionMethod",
    "RiskLevel",
    "UnrankedPolicy",
    # Catalogue models
    "ClauseCatalogue",
    "ClauseVariant",
    "VariantId",
    # Preference models
    "PartyPreference",
    "RawSubmission",
    # Resolution models
    "MatchingReport",
    "MatchingResult",
    "MutualRankDetail",
    "ReportSummary",
    "ResolvedClause",
]
