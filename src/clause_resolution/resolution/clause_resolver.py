"""Clause resolution for the Clause Preference Resolution Engine.

This module implements the IClauseResolver interface as a small state
machine. States are evaluated in order and the first one that applies wins:

1. Either party rejected everything  -> requires_negotiation (0)
2. Shared first choice               -> direct_match (95)
3. Mutually acceptable overlap       -> ranking_compromise (<= 90)
4. Configured fallback               -> tie_breaker (30)
5. Anything else                     -> requires_negotiation (0)
"""

import logging
from typing import Optional

from ..config.models import EngineSettings
from ..interfaces.resolution import IClauseResolver, ITieBreakPolicy
from ..models.catalogue import ClauseCatalogue
from ..models.enums import ResolutionMethod
from ..models.preference import PartyPreference
from ..models.resolution import ResolvedClause
from .direct_match import DirectMatchDetector
from .exceptions import MissingDefaultError
from .overlap_scorer import OverlapScorer
from .tie_breaker import TieBreakResolver


logger = logging.getLogger(__name__)


class ClauseResolver(IClauseResolver):
    """
    Resolver for a single clause type.

    Combines direct match detection, rank-weighted overlap scoring and the
    configured tie-break fallback into one deterministic outcome.
    """

    def __init__(
        self,
        tie_break_policy: Optional[ITieBreakPolicy] = None,
        settings: Optional[EngineSettings] = None,
    ):
        """
        Initialize the clause resolver.

        Args:
            tie_break_policy: Source of fallback variants. When omitted no
                clause can be settled by tie-break.
            settings: Engine constants and party labels.
        """
        self._settings = settings or EngineSettings()
        self._direct_detector = DirectMatchDetector()
        self._overlap_scorer = OverlapScorer(
            confidence_step=self._settings.compromise_confidence_step,
            confidence_cap=self._settings.compromise_confidence_cap,
        )
        self._tie_breaker = TieBreakResolver(
            policy=tie_break_policy,
            max_alternatives=self._settings.max_alternatives,
        )

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    def resolve(
        self,
        catalogue: ClauseCatalogue,
        party_a: PartyPreference,
        party_b: PartyPreference,
    ) -> ResolvedClause:
        """
        Resolve one clause type from both parties' normalized preferences.

        Args:
            catalogue: The clause type's variant catalogue.
            party_a: Party A's normalized preference.
            party_b: Party B's normalized preference.

        Returns:
            ResolvedClause describing the outcome.
        """
        clause_type = catalogue.clause_type

        rejected_all = self._resolve_rejected_all(clause_type, party_a, party_b)
        if rejected_all is not None:
            return rejected_all

        direct = self._direct_detector.detect(party_a, party_b)
        if direct is not None:
            logger.debug(f"'{clause_type}' resolved by direct match on '{direct}'")
            return ResolvedClause(
                clause_type=clause_type,
                selected_variant=direct,
                method=ResolutionMethod.DIRECT_MATCH,
                confidence=self._settings.direct_match_confidence,
                reasoning="Both parties selected the same variant",
            )

        overlap = self._overlap_scorer.score(party_a, party_b, catalogue)
        if overlap is not None:
            best = overlap.best
            logger.debug(
                f"'{clause_type}' resolved by compromise on '{best.variant_id}' "
                f"(score {best.score})"
            )
            return ResolvedClause(
                clause_type=clause_type,
                selected_variant=best.variant_id,
                method=ResolutionMethod.RANKING_COMPROMISE,
                confidence=self._overlap_scorer.confidence_for(best.score),
                reasoning=(
                    f"Best compromise: {self._settings.party_a_label} ranked "
                    f"#{best.rank_a}, {self._settings.party_b_label} ranked #{best.rank_b}"
                ),
                alternatives=tuple(overlap.alternatives(self._settings.max_alternatives)),
            )

        try:
            fallback = self._tie_breaker.resolve(catalogue, party_a, party_b)
        except MissingDefaultError as e:
            logger.warning(f"Tie-break unavailable, negotiation required: {e}")
            return ResolvedClause(
                clause_type=clause_type,
                selected_variant=None,
                method=ResolutionMethod.REQUIRES_NEGOTIATION,
                confidence=0,
                reasoning=(
                    "No ranking overlap found and no usable tie-break default "
                    "is configured"
                ),
                alternatives=tuple(
                    catalogue.sort_ids(party_a.ranking + party_b.ranking)
                    [:self._settings.max_alternatives]
                ),
            )

        return ResolvedClause(
            clause_type=clause_type,
            selected_variant=fallback.variant_id,
            method=ResolutionMethod.TIE_BREAKER,
            confidence=self._settings.tie_breaker_confidence,
            reasoning=(
                "No ranking overlap found, using the configured default variant "
                "as tie-breaker"
            ),
            alternatives=fallback.alternatives,
        )

    def _resolve_rejected_all(
        self,
        clause_type: str,
        party_a: PartyPreference,
        party_b: PartyPreference,
    ) -> Optional[ResolvedClause]:
        """Outcome when a party accepts no variant at all, otherwise None."""
        a_empty = not party_a.has_acceptable
        b_empty = not party_b.has_acceptable
        if not (a_empty or b_empty):
            return None

        if a_empty and b_empty:
            reasoning = (
                f"Both {self._settings.party_a_label} and "
                f"{self._settings.party_b_label} have rejected all variants"
            )
        elif a_empty:
            reasoning = f"{self._settings.party_a_label} has rejected all variants"
        else:
            reasoning = f"{self._settings.party_b_label} has rejected all variants"

        logger.debug(f"'{clause_type}' requires negotiation: {reasoning}")
        return ResolvedClause(
            clause_type=clause_type,
            selected_variant=None,
            method=ResolutionMethod.REQUIRES_NEGOTIATION,
            confidence=0,
            reasoning=reasoning,
        )
