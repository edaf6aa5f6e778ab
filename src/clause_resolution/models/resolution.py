"""Resolution result models for the Clause Preference Resolution Engine."""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .catalogue import VariantId
from .enums import (
    AcceptanceStatus,
    ConfidenceLevel,
    MatchStatus,
    PartyRole,
    ResolutionMethod,
)


@dataclass(frozen=True)
class ResolvedClause:
    """
    Outcome for one clause type.
    
    Either a mutually agreeable variant with a confidence score, or a red
    `requires_negotiation` flag with no selected variant.
    """
    clause_type: str
    selected_variant: Optional[VariantId]
    method: ResolutionMethod
    confidence: int
    reasoning: str
    alternatives: Tuple[VariantId, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "alternatives", tuple(self.alternatives))
        if not 0 <= self.confidence <= 100:
            raise ValueError("Confidence must be between 0 and 100")

    @property
    def match_status(self) -> MatchStatus:
        if self.method is ResolutionMethod.REQUIRES_NEGOTIATION:
            return MatchStatus.RED
        return MatchStatus.GREEN

    @property
    def requires_negotiation(self) -> bool:
        return self.match_status is MatchStatus.RED

    @property
    def confidence_level(self) -> ConfidenceLevel:
        return ConfidenceLevel.from_score(self.confidence)


@dataclass(frozen=True)
class MutualRankDetail:
    """Each party's rank of, and stance towards, the selected variant."""
    party_a_rank: Optional[int] = None
    party_b_rank: Optional[int] = None
    party_a_status: Optional[AcceptanceStatus] = None
    party_b_status: Optional[AcceptanceStatus] = None

    def rank_for(self, party: PartyRole) -> Optional[int]:
        if party is PartyRole.PARTY_A:
            return self.party_a_rank
        return self.party_b_rank

    def status_for(self, party: PartyRole) -> Optional[AcceptanceStatus]:
        if party is PartyRole.PARTY_A:
            return self.party_a_status
        return self.party_b_status


@dataclass(frozen=True)
class MatchingResult:
    """A resolved clause together with its mutual-rank detail."""
    resolution: ResolvedClause
    ranks: MutualRankDetail = field(default_factory=MutualRankDetail)

    @property
    def clause_type(self) -> str:
        return self.resolution.clause_type


@dataclass(frozen=True)
class ReportSummary:
    """Aggregate counts for presentation by the UI and export layers."""
    total: int
    green_count: int
    red_count: int
    high_confidence_count: int
    method_histogram: Dict[str, int] = field(default_factory=dict)

    @property
    def is_finalizable(self) -> bool:
        """Red clauses block finalization of the agreement."""
        return self.red_count == 0


@dataclass(frozen=True)
class MatchingReport:
    """
    Full matching report for one template.
    
    Results appear in template clause order, one per clause type.
    """
    template_id: str
    results: Tuple[MatchingResult, ...]
    summary: ReportSummary
    generated_at: str = ""

    def __post_init__(self):
        object.__setattr__(self, "results", tuple(self.results))

    @property
    def clauses(self) -> Tuple[ResolvedClause, ...]:
        return tuple(r.resolution for r in self.results)

    def get_result(self, clause_type: str) -> Optional[MatchingResult]:
        """Get the matching result for a clause type."""
        for result in self.results:
            if result.clause_type == clause_type:
                return result
        return None

    def red_clauses(self) -> Tuple[ResolvedClause, ...]:
        return tuple(c for c in self.clauses if c.requires_negotiation)

    def green_clauses(self) -> Tuple[ResolvedClause, ...]:
        return tuple(c for c in self.clauses if not c.requires_negotiation)
